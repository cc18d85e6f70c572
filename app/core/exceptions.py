"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: list[dict[str, Any]] | None = None,
    ):
        """Initialize with 400 status code and optional field-level details."""
        super().__init__(message, status_code=400)
        self.details = details or []


class StoreException(AppException):
    """Durable store could not complete an operation."""

    def __init__(self, message: str = "Store operation failed"):
        """Initialize with 500 status code."""
        super().__init__(message, status_code=500)
