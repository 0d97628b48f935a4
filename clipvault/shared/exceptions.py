"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationException(AppException):
    """Raised when input is malformed or out of range."""

    status_code = 400
    code = "validation_error"


class NotFoundException(AppException):
    """Raised when entity is absent or not owned by the caller."""

    status_code = 404
    code = "not_found"


class InvalidStateException(AppException):
    """Raised when a transition violates the submission state machine."""

    status_code = 409
    code = "invalid_state"


class ForbiddenException(AppException):
    """Raised when access policy denies the operation."""

    status_code = 403
    code = "forbidden"


class AuthenticationException(AppException):
    """Raised when the caller has no valid session token."""

    status_code = 401
    code = "unauthenticated"


class ExternalIdentityException(AppException):
    """Raised when the identity provider fails or returns unusable data."""

    status_code = 502
    code = "external_identity_error"


class StorageException(AppException):
    """Raised on blob or database I/O failure.

    The message is logged but never sent to the client.
    """

    status_code = 500
    code = "storage_error"
    public_message = "Storage failure, please try again later"


class RateLimitException(AppException):
    """Raised when a caller exceeds an admission-control window."""

    status_code = 429
    code = "rate_limited"


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    message = exc.message
    if isinstance(exc, StorageException):
        logger.error("Storage failure: %s", exc.message)
        message = exc.public_message
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": message}},
    )


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "http_error", "message": str(exc.detail)}},
    )


async def request_validation_exception_handler(
    _: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Render request payload errors with the domain validation code."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{location}: {first.get('msg', 'Invalid request')}" if location else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"error": {"code": ValidationException.code, "message": message}},
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Log database failures with context and hide details from clients."""
    logger.exception("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=StorageException.status_code,
        content={
            "error": {
                "code": StorageException.code,
                "message": StorageException.public_message,
            },
        },
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Internal server error"}},
    )


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
