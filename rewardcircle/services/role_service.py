"""
Tenant role lookups.

Roles live in the tenant_roles table. Lookups go through the shared cache
for ROLE_CACHE_TIMEOUT seconds; grant and revoke evict the cached entry so
changes made through this service apply immediately.
"""
import logging
from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models.tenant import Role, TenantRole
from ..utils.cache import cache, cache_key
from ..utils.exceptions import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

# Cached marker for "no role", so misses are cached too
NO_ROLE = '-'


def _role_key(tenant_id: int, user_id: str) -> str:
    return cache_key('role', tenant_id=tenant_id, user_id=user_id)


class RoleService:
    """Read and manage which identities hold which role in a tenant."""

    def __init__(self, tenant_id: int):
        self.tenant_id = tenant_id

    def get_role(self, user_id: str) -> Optional[Role]:
        """Role held by ``user_id`` in this tenant, or None."""
        if not user_id:
            return None

        key = _role_key(self.tenant_id, user_id)
        cached = cache.get(key)
        if cached is None:
            assignment = TenantRole.query.filter_by(tenant_id=self.tenant_id, user_id=user_id).first()
            cached = assignment.role if assignment else NO_ROLE
            cache.set(key, cached, timeout=current_app.config.get('ROLE_CACHE_TIMEOUT', 60))

        if cached == NO_ROLE:
            return None
        try:
            return Role(cached)
        except ValueError:
            logger.warning('Unknown role %r for user %s in tenant %s', cached, user_id, self.tenant_id)
            return None

    def grant_role(self, user_id: str, role) -> TenantRole:
        """
        Give ``user_id`` a role, replacing any role they already hold.

        Raises:
            ValidationError: Blank user id or unknown role
            PersistenceError: The write did not commit
        """
        user_id = (user_id or '').strip()
        if not user_id:
            raise ValidationError('user_id is required', 'user_id')
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError(f'Unknown role: {role}', 'role')

        assignment = TenantRole.query.filter_by(tenant_id=self.tenant_id, user_id=user_id).first()
        if assignment:
            assignment.role = role.value
        else:
            assignment = TenantRole(tenant_id=self.tenant_id, user_id=user_id, role=role.value)
            db.session.add(assignment)

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error('Granting role failed for %s in tenant %s: %s', user_id, self.tenant_id, e)
            raise PersistenceError('Role could not be saved. Please try again.') from e

        cache.delete(_role_key(self.tenant_id, user_id))
        logger.info('Granted %s to %s in tenant %s', role.value, user_id, self.tenant_id)
        return assignment

    def revoke_role(self, user_id: str) -> bool:
        """Remove any role ``user_id`` holds. Returns False when there was none."""
        assignment = TenantRole.query.filter_by(tenant_id=self.tenant_id, user_id=user_id).first()
        if not assignment:
            return False

        db.session.delete(assignment)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error('Revoking role failed for %s in tenant %s: %s', user_id, self.tenant_id, e)
            raise PersistenceError('Role could not be removed. Please try again.') from e

        cache.delete(_role_key(self.tenant_id, user_id))
        logger.info('Revoked role of %s in tenant %s', user_id, self.tenant_id)
        return True
