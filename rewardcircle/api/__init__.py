"""
Loyalty API blueprints.

Every blueprint is mounted under LOYALTY_URL_PREFIX; the ``org_slug`` URL
argument is consumed by the auth decorators.
"""
from .loyalty import loyalty_bp
from .settings import settings_bp
from .admin import admin_bp
from .customer import customer_bp

LOYALTY_URL_PREFIX = '/api/orgs/<org_slug>/loyalty'

__all__ = [
    'loyalty_bp',
    'settings_bp',
    'admin_bp',
    'customer_bp',
    'LOYALTY_URL_PREFIX',
]
