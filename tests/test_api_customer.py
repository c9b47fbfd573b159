"""
Tests for the public customer wallet lookup.
"""
from rewardcircle.services.ledger_service import LedgerService

BASE_URL = '/api/orgs/corner-cafe/loyalty'


class TestCustomerLookup:
    """Tests for GET/POST /customer/lookup."""

    def test_lookup_by_phone(self, client, sample_tenant, program_settings, sample_rewards):
        LedgerService(sample_tenant.id).earn('5556667777', 600, actor_id='staff-1', display_name='Ada',
                                             contact_email='ada@example.com')

        response = client.get(f'{BASE_URL}/customer/lookup?contact_phone=(555)%20666-7777')

        assert response.status_code == 200
        data = response.get_json()
        assert data['found'] is True
        assert data['customer']['name'] == 'Ada'
        assert data['customer']['points_balance'] == 1200
        assert 'email' not in data['customer']
        assert data['tier_label'] == 'VIP'
        assert data['next_tier'] is None
        assert data['program']['points_per_dollar'] == 2
        assert [reward['name'] for reward in data['active_rewards']] == ['Free Coffee', 'Espresso Machine']

    def test_lookup_by_email_post(self, client, sample_tenant, program_settings):
        LedgerService(sample_tenant.id).earn('5556667777', 100, actor_id='staff-1',
                                             contact_email='ada@example.com')

        response = client.post(f'{BASE_URL}/customer/lookup', json={'contact_email': 'ADA@example.com'})

        data = response.get_json()
        assert data['found'] is True
        assert data['tier_label'] == 'Starter'
        assert data['next_tier'] == {
            'id': 'vip',
            'name': 'VIP',
            'required_lifetime_points': 1000,
            'points_needed': 800,
        }

    def test_not_found(self, client, sample_tenant):
        response = client.get(f'{BASE_URL}/customer/lookup?contact_phone=5550001111')

        assert response.status_code == 200
        data = response.get_json()
        assert data['found'] is False
        assert data['customer'] is None
        assert data['program']['points_per_dollar'] == 2

    def test_requires_contact(self, client, sample_tenant):
        response = client.get(f'{BASE_URL}/customer/lookup')
        assert response.status_code == 400
        assert response.get_json()['error']['code'] == 'INVALID_CONTACT'

    def test_unknown_tenant(self, client, app):
        response = client.get('/api/orgs/nowhere/loyalty/customer/lookup?contact_phone=5556667777')
        assert response.status_code == 404
        assert response.get_json()['error']['code'] == 'TENANT_NOT_FOUND'

    def test_tenants_are_isolated(self, client, sample_tenant, other_tenant, program_settings):
        LedgerService(sample_tenant.id).earn('5556667777', 100, actor_id='staff-1')

        response = client.get('/api/orgs/book-nook/loyalty/customer/lookup?contact_phone=5556667777')
        assert response.get_json()['found'] is False


class TestAppEndpoints:
    """Tests for app-level routes and error envelopes."""

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json() == {'status': 'healthy', 'service': 'rewardcircle'}

    def test_unknown_route_envelope(self, client):
        response = client.get('/api/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['error']['code'] == 'NOT_FOUND'

    def test_method_not_allowed_envelope(self, client, sample_tenant):
        response = client.delete(f'{BASE_URL}/customer/lookup')
        assert response.status_code == 405
        assert response.get_json()['error']['code'] == 'METHOD_NOT_ALLOWED'
