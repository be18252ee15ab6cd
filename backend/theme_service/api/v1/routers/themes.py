"""API routes for the authenticated user's theme."""

from fastapi import APIRouter, Depends, Response

from theme_service.api.deps import get_current_identity, get_user_theme_service
from theme_service.api.errors import theme_http_exception
from theme_service.schemas.auth import Identity
from theme_service.schemas.theme import ThemePatch, UserThemeRead, UserThemeResetResponse
from theme_service.services.theme_service import ThemeService, ThemeServiceError

router = APIRouter(prefix="/theme", tags=["theme"])


@router.get(
    "",
    response_model=UserThemeRead,
    summary="Get my theme",
    description="Get the caller's theme, creating the default theme on first access",
)
async def get_theme(
    identity: Identity = Depends(get_current_identity),
    service: ThemeService = Depends(get_user_theme_service),
) -> UserThemeRead:
    """Get the caller's theme.

    Args:
        identity: Authenticated caller
        service: User theme service

    Returns:
        The caller's theme

    Raises:
        HTTPException(401): If not authenticated
        HTTPException(500): If storage fails
    """
    try:
        return await service.get_theme(identity.theme_key)
    except ThemeServiceError as e:
        raise theme_http_exception(e)


@router.post(
    "",
    response_model=UserThemeRead,
    summary="Save my theme",
    description="Validate and save the caller's theme (omitted fields reset to defaults)",
)
async def save_theme(
    patch: ThemePatch,
    identity: Identity = Depends(get_current_identity),
    service: ThemeService = Depends(get_user_theme_service),
) -> UserThemeRead:
    """Save the caller's theme.

    Args:
        patch: Theme fields to write
        identity: Authenticated caller
        service: User theme service

    Returns:
        The stored theme

    Raises:
        HTTPException(400): If a required color role is missing
        HTTPException(401): If not authenticated
        HTTPException(500): If storage fails
    """
    try:
        return await service.upsert_theme(identity.theme_key, patch)
    except ThemeServiceError as e:
        raise theme_http_exception(e)


@router.get(
    "/css",
    response_class=Response,
    summary="Get my theme stylesheet",
    description="Render the caller's theme as CSS custom properties (OKLCH colors)",
)
async def get_theme_css(
    identity: Identity = Depends(get_current_identity),
    service: ThemeService = Depends(get_user_theme_service),
) -> Response:
    """Get the caller's theme stylesheet.

    Raises:
        HTTPException(401): If not authenticated
        HTTPException(404): If the caller has no theme yet
    """
    try:
        css = await service.render_css(identity.theme_key)
    except ThemeServiceError as e:
        raise theme_http_exception(e)

    return Response(
        content=css,
        media_type="text/css",
        headers={"Cache-Control": f"public, max-age={service.cache.ttl_seconds}"},
    )


@router.delete(
    "",
    response_model=UserThemeResetResponse,
    summary="Reset my theme",
    description="Overwrite the caller's theme with the defaults",
)
async def reset_theme(
    identity: Identity = Depends(get_current_identity),
    service: ThemeService = Depends(get_user_theme_service),
) -> UserThemeResetResponse:
    """Reset the caller's theme to the defaults.

    Raises:
        HTTPException(401): If not authenticated
        HTTPException(500): If storage fails
    """
    try:
        theme = await service.reset_theme(identity.theme_key)
    except ThemeServiceError as e:
        raise theme_http_exception(e)

    return UserThemeResetResponse(message="Theme reset to defaults", theme=theme)
