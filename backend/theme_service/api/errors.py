"""Translate theme service errors into HTTP errors."""

from fastapi import HTTPException, status

from theme_service.services.theme_service import (
    ThemeNotFoundError,
    ThemeServiceError,
    ThemeStorageError,
    ThemeValidationError,
)


def theme_http_exception(error: ThemeServiceError) -> HTTPException:
    """Build the HTTPException for a theme service error.

    The detail is a structured ``{"error": <kind>, "message": <text>}``
    object so clients can tell the failure kinds apart.
    """
    if isinstance(error, ThemeValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_failed", "message": error.detail},
        )
    if isinstance(error, ThemeNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": str(error)},
        )
    if isinstance(error, ThemeStorageError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "storage_failure", "message": str(error)},
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "theme_error", "message": str(error)},
    )
