from fastapi import HTTPException, status

from gallery.platform.errors import (
    ConflictError,
    GalleryError,
    NotAvailableError,
    NotFoundError,
    StoreFailureError,
    UnauthorizedError,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotAvailableError, status.HTTP_501_NOT_IMPLEMENTED),
    (StoreFailureError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def to_http_exception(error: GalleryError) -> HTTPException:
    """Translate a domain error into the HTTP response routers raise."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message)
