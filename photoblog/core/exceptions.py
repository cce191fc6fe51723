"""Errors raised by the photo blog and the HTTP status each one maps to.

Handlers in :mod:`photoblog.middleware.error_handler` render every
:class:`AppException` as ``{"error": message, "details": {...}}``.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """Base class carrying a message, an HTTP status and extra context."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundException(AppException):
    """A photo or comment id that is not in the database."""

    status_code = 404
    default_message = "Resource not found"


class ValidationException(AppException):
    """Rejected input, such as a blank caption or an unreadable image."""

    status_code = 422
    default_message = "Validation error"


class PayloadTooLargeException(AppException):
    status_code = 413
    default_message = "File too large"


class DatabaseException(AppException):
    default_message = "Database operation failed"


class StorageException(AppException):
    default_message = "Image storage failed"


class UnauthorizedException(AppException):
    """Missing, expired or wrong password or token."""

    status_code = 401
    default_message = "Authentication required"


class ForbiddenException(AppException):
    """A valid token whose scope does not cover the request."""

    status_code = 403
    default_message = "Permission denied"
