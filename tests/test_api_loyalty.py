"""
Tests for the earn and redeem endpoints.
"""
from rewardcircle.extensions import db
from rewardcircle.models import Customer

BASE_URL = '/api/orgs/corner-cafe/loyalty'


class TestEarnEndpoint:
    """Tests for POST /earn."""

    def test_earn(self, client, staff_headers, program_settings):
        response = client.post(f'{BASE_URL}/earn', json={
            'contact_phone': '(555) 666-7777',
            'display_name': 'Ada',
            'purchase_amount': 100,
        }, headers=staff_headers)

        assert response.status_code == 200
        assert response.headers['Cache-Control'] == 'no-store'
        data = response.get_json()
        assert data['new_balance'] == 200
        assert data['new_lifetime_points'] == 200
        assert data['new_tier'] == 'starter'
        assert data['base_points_earned'] == 200
        assert data['streak_bonus'] == 0
        assert db.session.get(Customer, data['customer_id']).name == 'Ada'

    def test_owner_can_earn(self, client, owner_headers, program_settings):
        response = client.post(f'{BASE_URL}/earn', json={
            'contact_phone': '5556667777',
            'purchase_amount': '7.25',
        }, headers=owner_headers)
        assert response.status_code == 200
        assert response.get_json()['base_points_earned'] == 15

    def test_invalid_amount(self, client, staff_headers):
        response = client.post(f'{BASE_URL}/earn', json={
            'contact_phone': '5556667777',
            'purchase_amount': 0,
        }, headers=staff_headers)
        assert response.status_code == 400
        assert response.get_json()['error']['code'] == 'INVALID_PURCHASE_AMOUNT'

    def test_missing_phone(self, client, staff_headers):
        response = client.post(f'{BASE_URL}/earn', json={'purchase_amount': 10}, headers=staff_headers)
        assert response.status_code == 400
        assert response.get_json()['error']['code'] == 'INVALID_CONTACT_PHONE'

    def test_non_json_body(self, client, staff_headers):
        response = client.post(f'{BASE_URL}/earn', data='nope', headers=staff_headers)
        assert response.status_code == 400

    def test_request_id_echoed(self, client, staff_headers):
        response = client.post(f'{BASE_URL}/earn', json={}, headers={**staff_headers, 'X-Request-ID': 'abc-123'})
        assert response.headers['X-Request-ID'] == 'abc-123'


class TestRedeemEndpoint:
    """Tests for POST /redeem."""

    def _earn(self, client, headers, amount):
        return client.post(f'{BASE_URL}/earn', json={
            'contact_phone': '5556667777',
            'purchase_amount': amount,
        }, headers=headers).get_json()

    def test_redeem(self, client, staff_headers, program_settings, sample_rewards):
        customer_id = self._earn(client, staff_headers, 600)['customer_id']

        response = client.post(f'{BASE_URL}/redeem', json={
            'customer_id': customer_id,
            'reward_id': sample_rewards['coffee'].id,
        }, headers=staff_headers)

        assert response.status_code == 200
        assert response.get_json() == {
            'customer_id': customer_id,
            'reward_id': sample_rewards['coffee'].id,
            'new_balance': 200,
            'cost_points': 1000,
            'reward_name': 'Free Coffee',
        }

    def test_insufficient_points(self, client, staff_headers, program_settings, sample_rewards):
        customer_id = self._earn(client, staff_headers, 600)['customer_id']

        response = client.post(f'{BASE_URL}/redeem', json={
            'customer_id': customer_id,
            'reward_id': sample_rewards['big'].id,
        }, headers=staff_headers)

        assert response.status_code == 422
        error = response.get_json()['error']
        assert error['code'] == 'INSUFFICIENT_POINTS'
        assert '1200' in error['message'] and '1500' in error['message']
        assert (error['current'], error['required']) == (1200, 1500)

    def test_archived_reward(self, client, staff_headers, program_settings, sample_rewards):
        customer_id = self._earn(client, staff_headers, 600)['customer_id']

        response = client.post(f'{BASE_URL}/redeem', json={
            'customer_id': customer_id,
            'reward_id': sample_rewards['archived'].id,
        }, headers=staff_headers)

        assert response.status_code == 422
        assert response.get_json()['error']['code'] == 'INVALID_REWARD'

    def test_unknown_customer(self, client, staff_headers, sample_rewards):
        response = client.post(f'{BASE_URL}/redeem', json={
            'customer_id': 4242,
            'reward_id': sample_rewards['coffee'].id,
        }, headers=staff_headers)

        assert response.status_code == 404
        assert response.get_json()['error']['code'] == 'CUSTOMER_NOT_FOUND'

    def test_bad_ids(self, client, staff_headers):
        response = client.post(f'{BASE_URL}/redeem', json={'customer_id': 'x', 'reward_id': 1},
                               headers=staff_headers)
        assert response.status_code == 400
