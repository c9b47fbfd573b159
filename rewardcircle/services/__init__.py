"""
Business logic services for RewardCircle.
"""
from .program_settings import ProgramSettings, ProgramSettingsService, default_settings
from .customer_directory import CustomerDirectory
from .reward_catalog import RewardCatalog
from .ledger_service import LedgerService, EarnResult, RedeemResult, AdjustResult
from .dashboard_service import DashboardService
from .role_service import RoleService

__all__ = [
    'ProgramSettings',
    'ProgramSettingsService',
    'default_settings',
    'CustomerDirectory',
    'RewardCatalog',
    'LedgerService',
    'EarnResult',
    'RedeemResult',
    'AdjustResult',
    'DashboardService',
    'RoleService',
]
