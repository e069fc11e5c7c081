"""API error mapping

Turns use case errors into HTTP responses.
"""

from typing import Optional
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from libs.result import Error
from src.app.use_cases.errors import ErrorCode

STATUS_BY_CODE = {
    ErrorCode.INVALID_ARGUMENT.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHENTICATED.value: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PERMISSION_DENIED.value: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorCode.SUBSCRIPTION_NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorCode.RETRY_EXHAUSTED.value: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_IN_TERMINAL_STATE.value: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATE.value: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT.value: status.HTTP_409_CONFLICT,
    ErrorCode.PAYMENT_GATEWAY_ERROR.value: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.STORE_UNAVAILABLE.value: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class ClientError(Exception):
    """
    Raised by routes when a use case returns an error

    The HTTP status is derived from the error code unless given.
    """

    def __init__(self, error: Error, status_code: Optional[int] = None):
        self.error = error
        self.status_code = status_code or STATUS_BY_CODE.get(
            error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        super().__init__(error.message)

    def to_body(self) -> dict:
        return {
            "success": False,
            "error": {"code": self.error.code, "message": self.error.message},
        }


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": {"code": ErrorCode.INVALID_ARGUMENT.value, "message": message},
        },
    )
