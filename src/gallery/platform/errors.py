"""
Domain errors raised by the gallery services.

Routers translate these into HTTP responses; workers log them.
"""

from __future__ import annotations


class GalleryError(Exception):
    """Base class for all gallery domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(GalleryError):
    pass


class ConflictError(GalleryError):
    pass


class AlreadyFavoritedError(ConflictError):
    pass


class AlreadyPublishedError(ConflictError):
    pass


class JobAlreadyQueuedError(ConflictError):
    pass


class UnauthorizedError(GalleryError):
    pass


class ValidationError(GalleryError):
    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotAvailableError(GalleryError):
    pass


class StoreFailureError(GalleryError):
    pass


class SyncError(GalleryError):
    pass


class UpstreamError(GalleryError):
    """An external service (GitHub, npm) failed a request made on a caller's behalf."""
    pass
