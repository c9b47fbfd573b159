"""
Shared pytest fixtures for RewardCircle tests.

The ``app`` fixture keeps one application context pushed for the whole
test, so fixtures, services and test-client requests share one database
session.
"""
import pytest

from rewardcircle import create_app
from rewardcircle.extensions import db
from rewardcircle.middleware.auth import issue_access_token
from rewardcircle.models import Role, Tenant
from rewardcircle.services.program_settings import (
    ProgramSettings,
    ProgramSettingsService,
    StreakConfig,
    TierDefinition,
)
from rewardcircle.services.ledger_service import LedgerService
from rewardcircle.services.reward_catalog import RewardCatalog
from rewardcircle.services.role_service import RoleService

TENANT_SLUG = 'corner-cafe'
BASE_URL = f'/api/orgs/{TENANT_SLUG}/loyalty'


@pytest.fixture
def app():
    """Application with a fresh in-memory database."""
    app = create_app('testing')
    ctx = app.app_context()
    ctx.push()
    db.create_all()

    yield app

    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sample_tenant(app):
    tenant = Tenant(name='Corner Cafe', slug=TENANT_SLUG, settings={}, is_active=True)
    db.session.add(tenant)
    db.session.commit()
    return tenant


@pytest.fixture
def other_tenant(app):
    tenant = Tenant(name='Book Nook', slug='book-nook', settings={}, is_active=True)
    db.session.add(tenant)
    db.session.commit()
    return tenant


@pytest.fixture
def program_settings(sample_tenant):
    """2 points per dollar, Starter at 0 and VIP at 1000, streaks off."""
    settings = ProgramSettings(
        points_per_dollar=2,
        tiers=(
            TierDefinition('starter', 'Starter', 0),
            TierDefinition('vip', 'VIP', 1000),
        ),
        streak=StreakConfig(enabled=False, window_days=2, min_visits_for_bonus=3, bonus_points=50),
    )
    return ProgramSettingsService(sample_tenant.id).save_settings(settings)


@pytest.fixture
def streak_settings(sample_tenant):
    """1 point per dollar, streak bonus of 50 from the third visit within 2 days."""
    settings = ProgramSettings(
        points_per_dollar=1,
        tiers=(
            TierDefinition('starter', 'Starter', 0),
            TierDefinition('vip', 'VIP', 1000),
        ),
        streak=StreakConfig(enabled=True, window_days=2, min_visits_for_bonus=3, bonus_points=50),
    )
    return ProgramSettingsService(sample_tenant.id).save_settings(settings)


@pytest.fixture
def ledger(sample_tenant, program_settings):
    return LedgerService(sample_tenant.id)


@pytest.fixture
def sample_rewards(sample_tenant):
    catalog = RewardCatalog(sample_tenant.id)
    rewards = {
        'coffee': catalog.add_reward('Free Coffee', 1000, description='Any size', sort_order=0),
        'big': catalog.add_reward('Espresso Machine', 1500, sort_order=1),
        'archived': catalog.add_reward('Old Mug', 100, sort_order=2, active=False),
    }
    db.session.commit()
    return rewards


def _auth_headers(tenant, user_id, role):
    RoleService(tenant.id).grant_role(user_id, role)
    return {'Authorization': f'Bearer {issue_access_token(user_id)}'}


@pytest.fixture
def owner_headers(sample_tenant):
    return _auth_headers(sample_tenant, 'owner-1', Role.OWNER)


@pytest.fixture
def staff_headers(sample_tenant):
    return _auth_headers(sample_tenant, 'staff-1', Role.STAFF)


@pytest.fixture
def customer_headers(sample_tenant):
    return _auth_headers(sample_tenant, 'customer-1', Role.CUSTOMER)
