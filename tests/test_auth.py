"""
Tests for tokens, tenant resolution, role checks and the dev override.
"""
import jwt
import pytest

from rewardcircle.extensions import db
from rewardcircle.middleware.auth import decode_access_token, issue_access_token, resolve_tenant
from rewardcircle.models import Role, Tenant
from rewardcircle.services.role_service import RoleService
from rewardcircle.utils.exceptions import AuthenticationError, ValidationError

BASE_URL = '/api/orgs/corner-cafe/loyalty'


class TestAccessTokens:
    """Tests for issuing and decoding access tokens."""

    def test_round_trip_subject(self, app):
        assert decode_access_token(issue_access_token('uid-42')) == 'uid-42'

    def test_expired_token(self, app):
        token = issue_access_token('uid-42', expires_in=-10)
        with pytest.raises(AuthenticationError, match='expired'):
            decode_access_token(token)

    def test_wrong_secret(self, app):
        token = jwt.encode({'sub': 'uid-42', 'exp': 9999999999}, 'another-secret-that-is-long-enough', algorithm='HS256')
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_audience_checked_when_configured(self, app):
        app.config['AUTH_TOKEN_AUDIENCE'] = 'rewardcircle'
        assert decode_access_token(issue_access_token('uid-42')) == 'uid-42'

        token = jwt.encode(
            {'sub': 'uid-42', 'exp': 9999999999, 'aud': 'someone-else'},
            app.config['AUTH_TOKEN_SECRET'], algorithm='HS256'
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(token)


class TestResolveTenant:
    """Tests for tenant resolution."""

    def test_by_slug(self, sample_tenant):
        assert resolve_tenant('Corner-Cafe').id == sample_tenant.id

    def test_unknown_or_inactive(self, sample_tenant):
        assert resolve_tenant('nowhere') is None
        sample_tenant.is_active = False
        db.session.commit()
        assert resolve_tenant('corner-cafe') is None

    def test_locked_slug_wins(self, app, sample_tenant, other_tenant):
        app.config['LOCKED_TENANT_SLUG'] = 'book-nook'
        assert resolve_tenant('corner-cafe').id == other_tenant.id

    def test_auto_create(self, app):
        app.config['AUTO_CREATE_TENANTS'] = True
        tenant = resolve_tenant('new-shop')
        assert tenant.name == 'New Shop'
        assert Tenant.query.filter_by(slug='new-shop').count() == 1


class TestRoleService:
    """Tests for role grants and the role cache."""

    def test_grant_and_lookup(self, sample_tenant):
        service = RoleService(sample_tenant.id)
        assert service.get_role('uid-1') is None

        service.grant_role('uid-1', 'staff')
        assert service.get_role('uid-1') == Role.STAFF

        service.grant_role('uid-1', Role.OWNER)
        assert service.get_role('uid-1') == Role.OWNER

    def test_revoke_evicts_cache(self, sample_tenant):
        service = RoleService(sample_tenant.id)
        service.grant_role('uid-1', 'owner')
        assert service.get_role('uid-1') == Role.OWNER

        assert service.revoke_role('uid-1') is True
        assert service.get_role('uid-1') is None
        assert service.revoke_role('uid-1') is False

    def test_roles_are_per_tenant(self, sample_tenant, other_tenant):
        RoleService(sample_tenant.id).grant_role('uid-1', 'owner')
        assert RoleService(other_tenant.id).get_role('uid-1') is None

    def test_unknown_role_rejected(self, sample_tenant):
        with pytest.raises(ValidationError):
            RoleService(sample_tenant.id).grant_role('uid-1', 'admin')


class TestRouteProtection:
    """Tests for the role decorators on real routes."""

    def test_missing_credentials(self, client, sample_tenant):
        response = client.get(f'{BASE_URL}/admin/settings')
        assert response.status_code == 401
        assert response.get_json()['error']['code'] == 'AUTH_REQUIRED'

    def test_garbage_token(self, client, sample_tenant):
        response = client.get(f'{BASE_URL}/admin/settings', headers={'Authorization': 'Bearer not-a-jwt'})
        assert response.status_code == 401

    def test_staff_cannot_use_owner_routes(self, client, staff_headers):
        response = client.get(f'{BASE_URL}/admin/settings', headers=staff_headers)
        assert response.status_code == 403
        assert response.get_json()['error']['code'] == 'PERMISSION_DENIED'

    def test_customer_cannot_earn(self, client, customer_headers):
        response = client.post(f'{BASE_URL}/earn', json={'contact_phone': '5556667777', 'purchase_amount': 5},
                               headers=customer_headers)
        assert response.status_code == 403

    def test_user_without_role(self, client, sample_tenant):
        headers = {'Authorization': f'Bearer {issue_access_token("stranger")}'}
        assert client.get(f'{BASE_URL}/admin/settings', headers=headers).status_code == 403

    def test_unknown_tenant_looks_like_forbidden(self, client, owner_headers):
        response = client.get('/api/orgs/does-not-exist/loyalty/admin/settings', headers=owner_headers)
        assert response.status_code == 403

    def test_owner_of_other_tenant_denied(self, client, owner_headers, other_tenant):
        response = client.get('/api/orgs/book-nook/loyalty/admin/settings', headers=owner_headers)
        assert response.status_code == 403

    def test_locked_tenant_ignores_url_slug(self, app, client, owner_headers):
        app.config['LOCKED_TENANT_SLUG'] = 'corner-cafe'
        response = client.get('/api/orgs/anything/loyalty/admin/settings', headers=owner_headers)
        assert response.status_code == 200


class TestDevOverride:
    """Tests for the X-Dev-Key development override."""

    def test_disabled_without_dev_key(self, client, sample_tenant):
        response = client.get(f'{BASE_URL}/admin/settings', headers={'X-Dev-Key': 'anything'})
        assert response.status_code == 401

    def test_matching_key_acts_with_role(self, app, client, sample_tenant):
        app.config['DEV_KEY'] = 'local-dev-key'

        owner = client.get(f'{BASE_URL}/admin/settings', headers={'X-Dev-Key': 'local-dev-key'})
        assert owner.status_code == 200

        staff = client.get(f'{BASE_URL}/admin/settings',
                           headers={'X-Dev-Key': 'local-dev-key', 'X-Dev-Role': 'staff'})
        assert staff.status_code == 403

    def test_dev_actor_recorded_on_ledger(self, app, client, sample_tenant):
        app.config['DEV_KEY'] = 'local-dev-key'
        client.post(f'{BASE_URL}/earn', json={'contact_phone': '5556667777', 'purchase_amount': 5},
                    headers={'X-Dev-Key': 'local-dev-key', 'X-Dev-Role': 'staff'})

        from rewardcircle.models import LoyaltyTransaction
        assert LoyaltyTransaction.query.one().staff_actor_id == '__dev__:staff'

    def test_wrong_key_rejected(self, app, client, sample_tenant):
        app.config['DEV_KEY'] = 'local-dev-key'
        response = client.get(f'{BASE_URL}/admin/settings', headers={'X-Dev-Key': 'guess'})
        assert response.status_code == 401
