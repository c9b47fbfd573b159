"""
Middleware package for RewardCircle.
"""
from .auth import (
    Actor,
    issue_access_token,
    decode_access_token,
    resolve_tenant,
    resolve_actor,
    require_role,
    require_tenant,
)
from .request_id import init_request_id_tracking

__all__ = [
    'Actor',
    'issue_access_token',
    'decode_access_token',
    'resolve_tenant',
    'resolve_actor',
    'require_role',
    'require_tenant',
    'init_request_id_tracking',
]
