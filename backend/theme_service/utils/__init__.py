"""Utility functions for the theme service."""

from theme_service.utils.file_validation import (
    FileValidationError,
    get_mime_type,
    validate_image_size,
    validate_image_type,
)

__all__ = [
    "FileValidationError",
    "validate_image_type",
    "validate_image_size",
    "get_mime_type",
]
