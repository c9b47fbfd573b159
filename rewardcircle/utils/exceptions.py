"""
Custom exceptions for RewardCircle business logic.

Each exception carries a machine-readable code and the HTTP status the API
layer answers with, so services can raise and let the app-level error
handler render a consistent response.
"""


class RewardCircleError(Exception):
    """Base exception for all RewardCircle business logic errors."""

    http_status = 400

    def __init__(self, message: str, code: str = "REWARDCIRCLE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(RewardCircleError):
    """Resource not found."""

    http_status = 404

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with ID {identifier} not found"
        super().__init__(message, f"{resource.upper()}_NOT_FOUND")


class CustomerNotFoundError(NotFoundError):
    """Customer not found in the tenant."""

    def __init__(self, identifier=None):
        super().__init__("Customer", identifier)


class RewardNotFoundError(NotFoundError):
    """Reward not found in the tenant."""

    def __init__(self, identifier=None):
        super().__init__("Reward", identifier)


class TenantNotFoundError(NotFoundError):
    """Tenant not found or inactive."""

    def __init__(self, identifier=None):
        super().__init__("Tenant", identifier)


class ValidationError(RewardCircleError):
    """Invalid input data."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"INVALID_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)


class InvalidRewardError(RewardCircleError):
    """Reward exists but cannot be redeemed (misconfigured or archived)."""

    http_status = 422

    def __init__(self, message: str):
        super().__init__(message, "INVALID_REWARD")


class InsufficientBalanceError(RewardCircleError):
    """Not enough balance for the operation."""

    http_status = 422

    def __init__(self, current: float, required: float, currency: str = "credits"):
        self.current = current
        self.required = required
        message = f"Insufficient {currency}. Current: {current}, Required: {required}"
        super().__init__(message, "INSUFFICIENT_BALANCE")


class InsufficientPointsError(InsufficientBalanceError):
    """Not enough points for the operation."""

    def __init__(self, current: int, required: int):
        super().__init__(current, required, "points")
        self.code = "INSUFFICIENT_POINTS"

    @property
    def shortfall(self) -> int:
        return self.required - self.current


class AuthenticationError(RewardCircleError):
    """Caller could not be identified."""

    http_status = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "AUTH_REQUIRED")


class AuthorizationError(RewardCircleError):
    """User not authorized for this operation."""

    http_status = 403

    def __init__(self, message: str = "Not authorized for this operation"):
        super().__init__(message, "PERMISSION_DENIED")


class PersistenceError(RewardCircleError):
    """The atomic write did not commit; nothing was applied."""

    http_status = 503

    def __init__(self, message: str = "The operation could not be saved. Please try again."):
        super().__init__(message, "PERSISTENCE_FAILURE")
