"""Application exception classes and handlers."""

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from watchparty.schemas.response_schema import error_body

logger = structlog.get_logger()


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


# --- Session (401) ---


class InvalidSessionError(AppException):
    """Session token is missing, expired, or unrecognized."""

    def __init__(self, message: str = "Invalid or expired session") -> None:
        super().__init__(message=message, code="INVALID_SESSION", status_code=401)


# --- Not Found (404) ---


class RoomNotFoundError(AppException):
    """No active watch party matches the room token."""

    def __init__(self) -> None:
        super().__init__(
            message="Watch party room not found or inactive",
            code="ROOM_NOT_FOUND",
            status_code=404,
        )


# --- Conflict (409) ---


class NotInRoomError(AppException):
    """Room-scoped action attempted outside a watch party."""

    def __init__(self) -> None:
        super().__init__(
            message="Not in a watch party room",
            code="NOT_IN_ROOM",
            status_code=409,
        )


# --- Unprocessable (422) ---


class InvalidPayloadError(AppException):
    """Event or request payload is malformed."""

    def __init__(self, message: str = "Invalid payload") -> None:
        super().__init__(message=message, code="INVALID_PAYLOAD", status_code=422)


# --- Storage (500) ---


class StorageFailureError(AppException):
    """Underlying persistence call failed."""

    def __init__(self) -> None:
        super().__init__(
            message="Storage operation failed",
            code="STORAGE_FAILURE",
            status_code=500,
        )


# --- Exception Handlers ---


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.code),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request body validation errors in the common error shape."""
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(
        status_code=422,
        content=error_body(422, message, "VALIDATION_ERROR"),
    )


async def storage_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Map raw storage errors escaping a request to STORAGE_FAILURE."""
    logger.exception("Storage error during request", path=request.url.path)
    failure = StorageFailureError()
    return JSONResponse(
        status_code=failure.status_code,
        content=error_body(failure.status_code, failure.message, failure.code),
    )
