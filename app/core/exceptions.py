"""Custom exception classes for the application."""
from typing import Any


class AppException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, detail: Any = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class NotFoundError(AppException):
    """Resource not found."""
    pass


class ForbiddenError(AppException):
    """Viewer lacks the role required for this surface."""
    pass


class CandidateFetchError(AppException):
    """The candidate collection could not be loaded from the data store."""
    pass


class SavedListingError(AppException):
    """A saved-listing read or toggle failed in the backing store."""
    pass
