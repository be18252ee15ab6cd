"""FastAPI application entry point.

This module configures the FastAPI application with:
- CORS middleware for frontend communication
- API v1 router with the user and site theme endpoints
- Database, theme cache and site theme lifecycle management
- Static serving of locally stored logo assets
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from theme_service.api.v1.api import api_router
from theme_service.core.cache import TTLCache
from theme_service.core.config import settings
from theme_service.core.database import close_db, get_session_factory, init_db
from theme_service.models.theme import SITE_THEME_SCOPE
from theme_service.services.asset_store import get_asset_store
from theme_service.services.theme_repository import get_site_theme_repository
from theme_service.services.theme_service import MergePolicy, ThemeService

logger = logging.getLogger(__name__)


def create_theme_cache() -> TTLCache:
    """Create the process-local theme cache from settings."""
    return TTLCache(
        ttl_ms=settings.THEME_CACHE_TTL_MS,
        enabled=settings.THEME_CACHE_ENABLED,
    )


async def ensure_site_theme(cache: TTLCache) -> None:
    """Guarantee the single site theme row exists before serving requests."""
    session_factory = get_session_factory()
    async with session_factory() as session:
        service = ThemeService(
            get_site_theme_repository(session),
            cache,
            merge_policy=MergePolicy(settings.SITE_THEME_MERGE_POLICY),
            site=True,
            asset_store=get_asset_store(),
        )
        await service.ensure_theme(SITE_THEME_SCOPE)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events.

    Handles:
    - Table creation
    - Theme cache creation (owned by the app, dropped on shutdown)
    - Eager creation of the site theme row
    """
    # Startup
    logger.info("Starting Theme Service API...")

    await init_db()
    logger.info("Database tables ready")

    app.state.theme_cache = create_theme_cache()
    logger.info(
        f"Theme cache initialized (enabled={settings.THEME_CACHE_ENABLED}, "
        f"ttl={settings.THEME_CACHE_TTL_MS}ms)"
    )

    await ensure_site_theme(app.state.theme_cache)
    logger.info("Site theme ensured")

    yield  # Application is running

    # Shutdown
    logger.info("Shutting down Theme Service API...")
    app.state.theme_cache.clear()

    try:
        await close_db()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Per-user and site-wide themes rendered as CSS custom properties",
    version=settings.VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API v1 router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)

# Locally stored logos are served by the app itself
if settings.ASSET_BACKEND == "local":
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR),
        name="uploads",
    )


@app.get("/api/health")
async def health_check():
    """Health check endpoint.

    Returns basic health status. For service details use /api/v1/status.
    """
    return {"status": "ok", "service": "theme-service"}


@app.get("/api/v1/status")
async def status_check():
    """API status endpoint with service details."""
    cache = getattr(app.state, "theme_cache", None)
    return {
        "status": "running",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "services": {
            "cache": {
                "enabled": bool(cache and cache.enabled),
                "ttl_ms": settings.THEME_CACHE_TTL_MS,
                "entries": len(cache) if cache else 0,
            },
            "assets": settings.ASSET_BACKEND,
        },
    }
