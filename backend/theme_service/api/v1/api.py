"""API v1 router aggregation."""

from fastapi import APIRouter

from theme_service.api.v1.routers import site_theme, themes

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(themes.router)  # Per-user themes
api_router.include_router(site_theme.router)  # Site-wide theme and logo
