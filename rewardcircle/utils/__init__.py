"""
Shared helpers: logging setup, contact normalization, errors.
"""
from .contact import normalize_email, normalize_phone
from .errors import ErrorCode, error_response, exception_response
from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    CustomerNotFoundError,
    InsufficientBalanceError,
    InsufficientPointsError,
    InvalidRewardError,
    NotFoundError,
    PersistenceError,
    RewardCircleError,
    RewardNotFoundError,
    TenantNotFoundError,
    ValidationError,
)
from .logging_config import setup_logging
