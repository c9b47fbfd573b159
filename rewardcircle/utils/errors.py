"""
JSON error bodies for the loyalty API.

Every failure leaves the API as::

    {"error": {"message": "...", "code": "INSUFFICIENT_POINTS"}}

Validation failures add ``field``; point shortfalls add ``current`` and
``required`` so a till can show how far off the customer is.
"""
import logging
from enum import Enum
from typing import Optional

from flask import jsonify

from .exceptions import InsufficientBalanceError, RewardCircleError, ValidationError

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Codes used by the framework-level handlers; services bring their own."""
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_response(
    message: str,
    code=ErrorCode.INTERNAL_ERROR,
    status_code: int = 500,
    log_error: bool = True,
    extra: Optional[dict] = None
) -> tuple:
    """
    Build a ``(response, status)`` pair in the error envelope.

    Server errors log at ERROR, client errors at WARNING.
    """
    code_value = code.value if isinstance(code, ErrorCode) else code

    if log_error:
        level = logging.ERROR if status_code >= 500 else logging.WARNING
        logger.log(level, 'API error %s [%s]: %s', status_code, code_value, message)

    body = {'message': message, 'code': code_value}
    if extra:
        body.update(extra)
    return jsonify({'error': body}), status_code


def exception_response(exc: RewardCircleError) -> tuple:
    extra = {}
    if isinstance(exc, ValidationError) and exc.field:
        extra['field'] = exc.field
    elif isinstance(exc, InsufficientBalanceError):
        extra['current'] = exc.current
        extra['required'] = exc.required
    return error_response(exc.message, exc.code, exc.http_status, extra=extra)
