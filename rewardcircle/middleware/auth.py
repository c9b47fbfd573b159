"""
Tenant and actor resolution for loyalty API requests.

Every loyalty route lives under ``/api/orgs/<org_slug>/loyalty``. The
decorators here resolve the tenant from the slug (or from the deployment's
LOCKED_TENANT_SLUG), identify the caller and check their role.

Access tokens are HS256 JWTs signed with AUTH_TOKEN_SECRET:
- sub: User id (matches tenant_roles.user_id)
- exp / iat: Expiry and issue time
- aud: Optional, checked when AUTH_TOKEN_AUDIENCE is set

Development override: when DEV_KEY is configured, a request carrying a
matching ``X-Dev-Key`` header acts as ``__dev__:<role>`` with the role taken
from ``X-Dev-Role`` (owner by default).
"""
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import wraps
from typing import Optional

import jwt
from flask import current_app, g, request
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models.tenant import Role, Tenant
from ..services.role_service import RoleService
from ..utils.exceptions import (
    AuthenticationError,
    AuthorizationError,
    PersistenceError,
    TenantNotFoundError,
)

logger = logging.getLogger(__name__)

JWT_ALGORITHM = 'HS256'
DEV_ACTOR_PREFIX = '__dev__'


@dataclass(frozen=True)
class Actor:
    """Authenticated caller and the role they hold in the current tenant."""
    user_id: str
    role: Optional[Role]
    is_dev: bool = False


# ==================== Tokens ====================

def issue_access_token(user_id: str, expires_in: int = None) -> str:
    """
    Sign an access token for ``user_id``.

    Raises:
        RuntimeError: AUTH_TOKEN_SECRET is not configured
    """
    secret = current_app.config.get('AUTH_TOKEN_SECRET')
    if not secret:
        raise RuntimeError('AUTH_TOKEN_SECRET is not configured')

    now = datetime.utcnow()
    ttl = expires_in if expires_in is not None else current_app.config.get('AUTH_TOKEN_TTL_SECONDS', 3600)
    payload = {
        'sub': str(user_id),
        'iat': now,
        'exp': now + timedelta(seconds=ttl),
    }
    audience = current_app.config.get('AUTH_TOKEN_AUDIENCE')
    if audience:
        payload['aud'] = audience

    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Verify an access token and return its subject.

    Raises:
        AuthenticationError: Missing secret, expired or invalid token
    """
    secret = current_app.config.get('AUTH_TOKEN_SECRET')
    if not secret:
        logger.error('AUTH_TOKEN_SECRET is not configured; rejecting bearer token')
        raise AuthenticationError('Token authentication is not configured')

    audience = current_app.config.get('AUTH_TOKEN_AUDIENCE')
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            audience=audience or None,
            options={
                'require': ['sub', 'exp'],
                'verify_aud': bool(audience),
            }
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError('Token expired')
    except jwt.InvalidTokenError as e:
        logger.info('Rejected access token: %s', e)
        raise AuthenticationError('Invalid token')

    user_id = str(payload.get('sub') or '').strip()
    if not user_id:
        raise AuthenticationError('Invalid token')
    return user_id


def get_bearer_token() -> Optional[str]:
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        token = auth_header[len('Bearer '):].strip()
        return token or None
    return None


# ==================== Tenant ====================

def resolve_tenant(slug: Optional[str]) -> Optional[Tenant]:
    """
    Find the active tenant a request is for.

    LOCKED_TENANT_SLUG, when set, wins over the slug in the URL. With
    AUTO_CREATE_TENANTS (development) an unknown slug creates the tenant.

    Returns:
        Tenant, or None when unknown or inactive
    """
    locked = current_app.config.get('LOCKED_TENANT_SLUG')
    slug = (locked or slug or '').strip().lower()
    if not slug:
        return None

    tenant = Tenant.query.filter_by(slug=slug).first()

    if tenant is None and current_app.config.get('AUTO_CREATE_TENANTS'):
        tenant = Tenant(
            name=slug.replace('-', ' ').title(),
            slug=slug,
            settings={},
            is_active=True,
        )
        db.session.add(tenant)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceError('Tenant could not be created. Please try again.') from e
        logger.info('Auto-created tenant %s', slug)

    if tenant is None or not tenant.is_active:
        return None
    return tenant


# ==================== Actor ====================

def _dev_actor() -> Optional[Actor]:
    dev_key = current_app.config.get('DEV_KEY')
    provided = request.headers.get('X-Dev-Key')
    if not dev_key or not provided:
        return None
    if not hmac.compare_digest(provided.encode(), dev_key.encode()):
        logger.warning('Rejected dev override with a wrong key')
        return None

    role_name = (request.headers.get('X-Dev-Role') or Role.OWNER.value).strip().lower()
    try:
        role = Role(role_name)
    except ValueError:
        raise AuthorizationError(f'Unknown dev role: {role_name}')
    return Actor(user_id=f'{DEV_ACTOR_PREFIX}:{role.value}', role=role, is_dev=True)


def resolve_actor(tenant: Optional[Tenant]) -> Actor:
    """
    Identify the caller and look up their role in ``tenant``.

    Raises:
        AuthenticationError: No usable credentials
    """
    actor = _dev_actor()
    if actor:
        return actor

    token = get_bearer_token()
    if not token:
        raise AuthenticationError()

    user_id = decode_access_token(token)
    role = RoleService(tenant.id).get_role(user_id) if tenant else None
    return Actor(user_id=user_id, role=role)


# ==================== Decorators ====================

def require_role(*roles: Role):
    """
    Decorator for tenant routes restricted to some roles.

    Consumes the ``org_slug`` URL argument and sets g.tenant, g.tenant_id
    and g.actor. An unknown tenant answers 403, like a missing role, so the
    response doesn't reveal which tenants exist.

    Usage:
        @bp.route('/earn', methods=['POST'])
        @require_role(Role.OWNER, Role.STAFF)
        def earn():
            tenant_id = g.tenant_id
            ...
    """
    allowed = {Role(role) for role in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            tenant = resolve_tenant(kwargs.pop('org_slug', None))
            actor = resolve_actor(tenant)

            if tenant is None or actor.role not in allowed:
                logger.info(
                    'Denied %s %s for %s (role %s)',
                    request.method, request.path, actor.user_id,
                    actor.role.value if actor.role else None
                )
                raise AuthorizationError()

            g.tenant = tenant
            g.tenant_id = tenant.id
            g.actor = actor
            return f(*args, **kwargs)

        return decorated_function

    return decorator


def require_tenant(f):
    """
    Decorator for public tenant routes (no credentials).

    Consumes ``org_slug`` and sets g.tenant and g.tenant_id.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        tenant = resolve_tenant(kwargs.pop('org_slug', None))
        if tenant is None:
            raise TenantNotFoundError()

        g.tenant = tenant
        g.tenant_id = tenant.id
        return f(*args, **kwargs)

    return decorated_function
