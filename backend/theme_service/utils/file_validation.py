"""File validation utilities for logo uploads."""

from typing import Literal

from theme_service.core.config import settings

# Magic number signatures for image type detection
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
GIF_SIGNATURES = [b"GIF87a", b"GIF89a"]
WEBP_RIFF = b"RIFF"
WEBP_MARKER = b"WEBP"

# How far into an SVG document to look for the root element
SVG_SNIFF_BYTES = 1024


ImageType = Literal["png", "jpeg", "gif", "webp", "svg"]

MIME_TYPES: dict[str, str] = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}


class FileValidationError(Exception):
    """Raised when file validation fails."""

    pass


async def validate_image_type(file_content: bytes, filename: str) -> ImageType:
    """
    Validate image type by checking magic numbers (file signatures).

    Args:
        file_content: File content (at least the first few KB)
        filename: Original filename (used in error messages)

    Returns:
        ImageType of the file

    Raises:
        FileValidationError: If file type is not supported or file is empty
    """
    if not file_content:
        raise FileValidationError("Empty file provided. Please upload a non-empty image.")

    if file_content.startswith(PNG_SIGNATURE):
        return "png"
    if file_content.startswith(JPEG_SIGNATURE):
        return "jpeg"
    if any(file_content.startswith(sig) for sig in GIF_SIGNATURES):
        return "gif"
    if file_content.startswith(WEBP_RIFF) and file_content[8:12] == WEBP_MARKER:
        return "webp"

    # SVG is XML text, look for the root element near the start
    head = file_content[:SVG_SNIFF_BYTES].decode("utf-8", errors="ignore").lower()
    if "<svg" in head:
        return "svg"

    raise FileValidationError(
        f"Unsupported file type. Only PNG, JPEG, GIF, WEBP and SVG logos are accepted. "
        f"File '{filename}' does not match expected format."
    )


async def validate_image_size(file_size: int) -> None:
    """
    Validate logo size against the configured limit.

    Raises:
        FileValidationError: If file size exceeds limit
    """
    max_size = settings.LOGO_MAX_BYTES
    if file_size > max_size:
        raise FileValidationError(
            f"File size ({file_size / 1024 / 1024:.2f} MB) exceeds maximum allowed "
            f"logo size ({max_size / 1024 / 1024:.2f} MB)"
        )


def get_mime_type(image_type: ImageType) -> str:
    """Get MIME type string for an image type."""
    return MIME_TYPES[image_type]
