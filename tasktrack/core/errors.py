"""Typed application errors and their translation into the JSON error envelope."""

import logging
import traceback
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"
AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
NOT_FOUND = "NOT_FOUND"
DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
DATABASE_ERROR = "DATABASE_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"

_CODE_BY_STATUS = {
    400: VALIDATION_ERROR,
    401: AUTHENTICATION_ERROR,
    403: AUTHORIZATION_ERROR,
    404: NOT_FOUND,
    405: NOT_FOUND,
    409: DUPLICATE_RESOURCE,
    422: VALIDATION_ERROR,
    429: RATE_LIMIT_EXCEEDED,
}


class AppError(Exception):
    """Base for errors raised by services; carries HTTP status and a stable error code."""

    status_code = 500
    error_code = INTERNAL_ERROR
    default_message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.details = details
        self.headers = headers
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised when input fails validation or a domain rule rejects it."""

    status_code = 422
    error_code = VALIDATION_ERROR
    default_message = "Validation failed"


class AuthenticationError(AppError):
    status_code = 401
    error_code = AUTHENTICATION_ERROR
    default_message = "Authentication failed"


class AuthorizationError(AppError):
    status_code = 403
    error_code = AUTHORIZATION_ERROR
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    error_code = NOT_FOUND
    default_message = "Resource not found"

    @classmethod
    def for_resource(cls, resource: str) -> "NotFoundError":
        return cls(f"{resource} not found")


class DuplicateResourceError(AppError):
    status_code = 409
    error_code = DUPLICATE_RESOURCE
    default_message = "Resource already exists"

    @classmethod
    def for_resource(cls, resource: str) -> "DuplicateResourceError":
        return cls(f"{resource} already exists")


class RateLimitExceededError(AppError):
    status_code = 429
    error_code = RATE_LIMIT_EXCEEDED
    default_message = "Too many requests from this IP, please try again later"


class DatabaseError(AppError):
    status_code = 500
    error_code = DATABASE_ERROR
    default_message = "Database operation failed"


class InternalError(AppError):
    pass


def error_code_from_status(status_code: int) -> str:
    """Best-guess error code for a bare HTTP status."""
    return _CODE_BY_STATUS.get(status_code, INTERNAL_ERROR)


def error_from_integrity(exc: IntegrityError) -> AppError:
    """Map a constraint violation to a typed error by matching the driver message."""
    msg = str(exc.orig if exc.orig is not None else exc).lower()
    if "unique" in msg or "duplicate key" in msg:
        return DuplicateResourceError()
    if "foreign key" in msg:
        return NotFoundError("Referenced resource does not exist")
    if "not null" in msg or "not-null" in msg:
        return ValidationError("Required field is missing")
    return DatabaseError(status_code=400)


def classify_exception(exc: Exception, *, guess_from_message: bool = True) -> AppError:
    """
    Turn any exception into an AppError.

    Typed errors pass through; SQLAlchemy errors are mapped by kind; anything else
    becomes InternalError. With guess_from_message the status of an untyped error
    is guessed from its text; the guessed error keeps that text, so callers in
    production must pass False.
    """
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, IntegrityError):
        return error_from_integrity(exc)
    if isinstance(exc, (OperationalError, InterfaceError)):
        return DatabaseError("Database connection failed", status_code=503)
    if isinstance(exc, SQLAlchemyError):
        return DatabaseError()
    if isinstance(exc, StarletteHTTPException):
        return AppError(
            str(exc.detail) if exc.detail else None,
            status_code=exc.status_code,
            error_code=error_code_from_status(exc.status_code),
            headers=getattr(exc, "headers", None),
        )

    message = str(exc)
    if not guess_from_message:
        return InternalError()
    lowered = message.lower()
    if "not found" in lowered:
        return NotFoundError(message)
    if "unauthorized" in lowered:
        return AuthenticationError(message)
    if "forbidden" in lowered:
        return AuthorizationError(message)
    if "validation" in lowered:
        return ValidationError(message)
    return InternalError(message or None)


@dataclass
class ErrorResponse:
    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] | None = None


def to_error_response(exc: Exception, *, expose_internals: bool) -> ErrorResponse:
    """
    Build the failure envelope for exc.

    With expose_internals False (production) untyped errors are never classified
    by their text: they become a generic 500, and no stack or driver detail is
    included. Every untyped error is logged with its traceback.
    """
    error = classify_exception(exc, guess_from_message=expose_internals)
    unexpected = error is not exc and not isinstance(exc, StarletteHTTPException)

    if unexpected:
        logger.exception("Unhandled error: %s", exc, exc_info=exc)
    elif error.status_code >= 500:
        logger.error("Request failed: %s", error.message)

    body: dict[str, Any] = {
        "success": False,
        "message": error.message,
        "error": error.error_code,
    }
    details = error.details
    if details is None and expose_internals and isinstance(exc, SQLAlchemyError):
        details = str(exc.orig if getattr(exc, "orig", None) is not None else exc)
    if details is not None:
        body["details"] = details
    if expose_internals and unexpected:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return ErrorResponse(status_code=error.status_code, body=body, headers=error.headers)
