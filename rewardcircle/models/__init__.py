"""
Database models for RewardCircle.
Tenants, loyalty customers, rewards and the points ledger.
"""
from .tenant import Tenant, TenantRole, Role
from .reward import Reward
from .customer import Customer
from .transaction import LoyaltyTransaction, TransactionType, STREAK_BONUS_NOTE

__all__ = [
    'Tenant',
    'TenantRole',
    'Role',
    'Reward',
    'Customer',
    'LoyaltyTransaction',
    'TransactionType',
    'STREAK_BONUS_NOTE',
]
