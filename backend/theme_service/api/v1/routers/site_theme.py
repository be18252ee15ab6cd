"""API routes for the site-wide theme.

Reads are public; writes require an admin or root caller.
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status

from theme_service.api.deps import (
    get_logo_store,
    get_privileged_identity,
    get_site_theme_service,
)
from theme_service.api.errors import theme_http_exception
from theme_service.models.theme import SITE_THEME_SCOPE
from theme_service.schemas.auth import Identity
from theme_service.schemas.theme import SiteThemeRead, SiteThemeResetResponse, ThemePatch
from theme_service.services.asset_store import AssetStore, AssetStoreError
from theme_service.services.theme_service import ThemeService, ThemeServiceError
from theme_service.utils import (
    FileValidationError,
    get_mime_type,
    validate_image_size,
    validate_image_type,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/site-theme", tags=["site-theme"])


@router.get(
    "",
    response_model=SiteThemeRead,
    summary="Get site theme",
    description="Get the site-wide theme",
)
async def get_site_theme(
    service: ThemeService = Depends(get_site_theme_service),
) -> SiteThemeRead:
    """Get the site theme.

    Raises:
        HTTPException(500): If storage fails
    """
    try:
        return await service.get_theme(SITE_THEME_SCOPE)
    except ThemeServiceError as e:
        raise theme_http_exception(e)


@router.post(
    "",
    response_model=SiteThemeRead,
    summary="Update site theme",
    description="Validate and save the site theme (omitted fields keep their stored value)",
)
async def save_site_theme(
    patch: ThemePatch,
    identity: Identity = Depends(get_privileged_identity),
    service: ThemeService = Depends(get_site_theme_service),
) -> SiteThemeRead:
    """Save the site theme.

    Args:
        patch: Theme fields to write
        identity: Privileged caller
        service: Site theme service

    Returns:
        The stored site theme

    Raises:
        HTTPException(400): If a required color role is missing
        HTTPException(401): If not authenticated
        HTTPException(403): If the caller is not an admin
    """
    try:
        theme = await service.upsert_theme(SITE_THEME_SCOPE, patch)
    except ThemeServiceError as e:
        raise theme_http_exception(e)

    logger.info(f"Site theme updated by user {identity.id}")
    return theme


@router.get(
    "/css",
    response_class=Response,
    summary="Get site theme stylesheet",
    description="Render the site theme as CSS custom properties (OKLCH colors)",
)
async def get_site_theme_css(
    service: ThemeService = Depends(get_site_theme_service),
) -> Response:
    """Get the site theme stylesheet.

    Raises:
        HTTPException(404): If the site theme row is missing
    """
    try:
        css = await service.render_css(SITE_THEME_SCOPE)
    except ThemeServiceError as e:
        raise theme_http_exception(e)

    return Response(
        content=css,
        media_type="text/css",
        headers={"Cache-Control": f"public, max-age={service.cache.ttl_seconds}"},
    )


@router.delete(
    "",
    response_model=SiteThemeResetResponse,
    summary="Reset site theme",
    description="Overwrite the site theme with the defaults and remove the logo",
)
async def reset_site_theme(
    identity: Identity = Depends(get_privileged_identity),
    service: ThemeService = Depends(get_site_theme_service),
) -> SiteThemeResetResponse:
    """Reset the site theme to the defaults.

    Raises:
        HTTPException(401): If not authenticated
        HTTPException(403): If the caller is not an admin
    """
    try:
        theme = await service.reset_theme(SITE_THEME_SCOPE)
    except ThemeServiceError as e:
        raise theme_http_exception(e)

    logger.info(f"Site theme reset by user {identity.id}")
    return SiteThemeResetResponse(message="Theme reset to defaults", theme=theme)


@router.post(
    "/logo",
    response_model=SiteThemeRead,
    summary="Upload site logo",
    description="Upload a PNG, JPEG, GIF, WEBP or SVG logo for the site theme",
)
async def upload_site_logo(
    file: UploadFile = File(..., description="Logo image"),
    identity: Identity = Depends(get_privileged_identity),
    service: ThemeService = Depends(get_site_theme_service),
    asset_store: AssetStore = Depends(get_logo_store),
) -> SiteThemeRead:
    """Store a logo asset and attach it to the site theme.

    Raises:
        HTTPException(400): If the file is empty or not a supported image
        HTTPException(413): If the file exceeds the logo size limit
        HTTPException(500): If the asset or the theme cannot be stored
    """
    file_content = await file.read()

    try:
        image_type = await validate_image_type(file_content, file.filename or "unknown")
    except FileValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    try:
        await validate_image_size(len(file_content))
    except FileValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(e),
        )

    try:
        path = await asset_store.save(file_content, get_mime_type(image_type))
    except AssetStoreError as e:
        logger.error(f"Logo upload failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to upload logo: {str(e)}",
        )

    try:
        theme = await service.set_logo(SITE_THEME_SCOPE, path)
    except ThemeServiceError as e:
        # The record still points at the old logo; drop the orphaned upload
        try:
            await asset_store.delete(path)
        except AssetStoreError as cleanup_error:
            logger.error(f"Failed to remove orphaned logo {path}: {cleanup_error}")
        raise theme_http_exception(e)

    logger.info(f"Site logo uploaded by user {identity.id}: {path}")
    return theme
