"""
Domain error taxonomy.

Services raise these; the exception handlers in app.main turn them into
JSON responses of the form {"error": "..."} with the matching status code.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Malformed or missing input. The operation was not attempted."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    """A referenced identity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity


class StoreError(AppError):
    """Base class for persistence failures."""


class StoreConnectivityError(StoreError):
    """MongoDB is unreachable even after a reconnect attempt."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class StoreOperationError(StoreError):
    """A read or write failed for a reason other than connectivity."""


class DuplicateIdentityError(StoreOperationError):
    """Insert rejected because a document with the same uid already exists."""
