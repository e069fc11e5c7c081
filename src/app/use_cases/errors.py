"""Error codes returned by billing use cases

Codes are stable strings surfaced to API callers.
"""

from enum import Enum
from libs.result import Error
from src.app.services.payment_gateway import PaymentGatewayError
from src.domain.exceptions import (
    ConcurrentModificationError,
    DuplicateEntityError,
    InvalidStatusTransition,
    StoreUnavailableError,
)


class ErrorCode(str, Enum):
    # Caller errors
    INVALID_ARGUMENT = "invalid-argument"
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission-denied"
    NOT_FOUND = "not-found"
    # External dependency errors
    PAYMENT_GATEWAY_ERROR = "payment-gateway-error"
    STORE_UNAVAILABLE = "store-unavailable"
    # Business invariant violations
    RETRY_EXHAUSTED = "retry-exhausted"
    SUBSCRIPTION_NOT_FOUND = "subscription-not-found"
    ALREADY_IN_TERMINAL_STATE = "already-in-terminal-state"
    INVALID_STATE = "invalid-state"
    CONFLICT = "conflict"
    INTERNAL = "internal"


def error_from_exception(exc: Exception, message: str) -> Error:
    """
    Map an exception raised inside a use case to a categorized Error

    Args:
        exc: The caught exception
        message: Operation-level message shown to the caller

    Returns:
        Error with the matching code and the exception text as reason
    """
    if isinstance(exc, PaymentGatewayError):
        code = ErrorCode.PAYMENT_GATEWAY_ERROR
    elif isinstance(exc, StoreUnavailableError):
        code = ErrorCode.STORE_UNAVAILABLE
    elif isinstance(exc, (ConcurrentModificationError, DuplicateEntityError)):
        code = ErrorCode.CONFLICT
    elif isinstance(exc, InvalidStatusTransition):
        code = ErrorCode.INVALID_STATE
    else:
        code = ErrorCode.INTERNAL
    return Error(code=code.value, message=message, reason=str(exc))


def not_found(entity: str, entity_id: str) -> Error:
    code = ErrorCode.SUBSCRIPTION_NOT_FOUND if entity == "Subscription" else ErrorCode.NOT_FOUND
    return Error(
        code=code.value,
        message=f"{entity} {entity_id} not found",
    )
