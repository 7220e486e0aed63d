"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500, data: dict[str, Any] | None = None):
        """Initialize exception with message, status code and optional payload."""
        self.message = message
        self.status_code = status_code
        self.data = data
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Access denied"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class ValidationException(AppException):
    """Malformed or out-of-range input."""

    def __init__(self, message: str = "Validation failed"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class BookingStateError(AppException):
    """A booking lifecycle guard rejected the requested transition."""

    def __init__(self, message: str, data: dict[str, Any] | None = None):
        """Initialize with 400 status code and an optional detail payload."""
        super().__init__(message, status_code=400, data=data)
