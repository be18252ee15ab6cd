"""API dependencies for FastAPI route handlers.

This module provides dependency injection functions for:
- Database sessions
- The application-owned theme cache
- Authentication (JWT-based) and authorization
- Theme services for the user and site scopes
"""

from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from theme_service.core.cache import TTLCache
from theme_service.core.config import settings
from theme_service.core.database import get_db as get_db_session
from theme_service.schemas.auth import Identity
from theme_service.services.asset_store import AssetStore, get_asset_store
from theme_service.services.auth_service import AuthService, InvalidTokenError
from theme_service.services.theme_repository import (
    get_site_theme_repository,
    get_user_theme_repository,
)
from theme_service.services.theme_service import MergePolicy, ThemeService


# HTTP Bearer token scheme for JWT authentication
security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session.

    Yields:
        AsyncSession for database operations
    """
    async for session in get_db_session():
        yield session


def get_theme_cache(request: Request) -> TTLCache:
    """Dependency to get the theme cache created in the app lifespan."""
    return request.app.state.theme_cache


def get_logo_store() -> AssetStore:
    """Dependency to get the configured logo asset store."""
    return get_asset_store()


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """Dependency to get the caller's identity from the JWT bearer token.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "authentication_required",
                "message": "Authentication required",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return AuthService.validate_access_token(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "authentication_required",
                "message": "Invalid or expired token",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_privileged_identity(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    """Dependency to require an admin or root caller.

    Raises:
        HTTPException: 403 if the caller is not privileged
    """
    if not identity.is_privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "authorization_denied",
                "message": "Admin privileges required",
            },
        )
    return identity


async def get_user_theme_service(
    db: AsyncSession = Depends(get_db),
    cache: TTLCache = Depends(get_theme_cache),
) -> ThemeService:
    """Dependency to get the ThemeService for per-user themes."""
    return ThemeService(
        get_user_theme_repository(db),
        cache,
        merge_policy=MergePolicy(settings.USER_THEME_MERGE_POLICY),
    )


async def get_site_theme_service(
    db: AsyncSession = Depends(get_db),
    cache: TTLCache = Depends(get_theme_cache),
    asset_store: AssetStore = Depends(get_logo_store),
) -> ThemeService:
    """Dependency to get the ThemeService for the site theme."""
    return ThemeService(
        get_site_theme_repository(db),
        cache,
        merge_policy=MergePolicy(settings.SITE_THEME_MERGE_POLICY),
        site=True,
        asset_store=asset_store,
    )
