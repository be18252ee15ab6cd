"""Database engine and session management for theme storage."""

import logging
from typing import Any, AsyncGenerator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

logger = logging.getLogger(__name__)

# Models import this without needing an engine
Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory = None


def _engine_options(database_url: str, environment: str) -> dict[str, Any]:
    """Pool settings for the configured backend.

    In-memory SQLite lives on a single connection, so it gets a StaticPool;
    test runs against a server database skip pooling altogether.
    """
    url = make_url(database_url)
    options: dict[str, Any] = {"echo": environment == "development", "future": True}

    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    elif environment == "test":
        options["poolclass"] = NullPool
    else:
        options["pool_pre_ping"] = True
    return options


def get_engine() -> AsyncEngine:
    """Return the process-wide async engine, creating it on first use."""
    global _engine
    if _engine is None:
        from theme_service.core.config import settings

        _engine = create_async_engine(
            settings.DATABASE_URL,
            **_engine_options(settings.DATABASE_URL, settings.ENVIRONMENT),
        )
        backend = make_url(settings.DATABASE_URL).get_backend_name()
        logger.info(f"Database engine created ({backend})")
    return _engine


def get_session_factory():
    """Return the session factory bound to the engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request.

    Repositories commit their own writes; anything left pending when the
    request fails is rolled back here.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the theme tables if they do not exist yet."""
    # Registers UserTheme and SiteTheme on Base.metadata
    import theme_service.models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine so the next use starts from scratch."""
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
