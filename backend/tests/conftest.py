"""Pytest configuration and shared fixtures for backend tests."""

import os
import sys
import tempfile
from typing import Any, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add parent directory to path for theme_service module discovery
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment BEFORE importing theme_service modules
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="theme-uploads-"))

from theme_service.core.cache import TTLCache
from theme_service.core.database import Base
from theme_service.services.asset_store import LocalAssetStore
from theme_service.services.auth_service import AuthService
from theme_service.services.theme_defaults import DEFAULT_THEME_COLORS

import theme_service.models  # noqa: F401  (register tables on Base.metadata)


class FakeThemeRepository:
    """In-memory ThemeRepository that records every storage call."""

    def __init__(self, key_column: str = "user_id"):
        self.key_column = key_column
        self.rows: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self._next_id = 1

    @property
    def find_count(self) -> int:
        return self.calls.count("find_one")

    @property
    def insert_count(self) -> int:
        return self.calls.count("insert")

    @property
    def update_count(self) -> int:
        return self.calls.count("update")

    async def find_one(self, key: str) -> Optional[dict[str, Any]]:
        self.calls.append("find_one")
        row = self.rows.get(key)
        return dict(row) if row is not None else None

    async def insert(self, key: str, data: dict[str, Any]) -> dict[str, Any]:
        self.calls.append("insert")
        row = {**data, "id": self._next_id, self.key_column: key}
        if self.key_column == "scope":
            row.setdefault("logo", None)
        self._next_id += 1
        self.rows[key] = row
        return dict(row)

    async def update(self, key: str, data: dict[str, Any]) -> None:
        self.calls.append("update")
        self.rows[key] = {**self.rows[key], **data}


class FakeAssetStore:
    """Asset store that only remembers what was saved and deleted."""

    def __init__(self):
        self.saved: list[str] = []
        self.deleted: list[str] = []

    async def save(self, content: bytes, content_type: str) -> str:
        path = f"/uploads/logo-{len(self.saved) + 1}.png"
        self.saved.append(path)
        return path

    async def delete(self, path: str) -> None:
        self.deleted.append(path)


class FakeClock:
    """Manually advanced clock (seconds) for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture
def full_colors() -> dict[str, str]:
    """A complete, valid colors map (all 17 roles)."""
    return {
        **DEFAULT_THEME_COLORS,
        "primary": "#3b82f6",
        "primary-foreground": "#f8fafc",
        "ring": "#93c5fd",
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(ttl_ms=300000, clock=clock)


@pytest.fixture
def user_repository() -> FakeThemeRepository:
    return FakeThemeRepository("user_id")


@pytest.fixture
def site_repository() -> FakeThemeRepository:
    return FakeThemeRepository("scope")


@pytest.fixture
def asset_store() -> FakeAssetStore:
    return FakeAssetStore()


@pytest_asyncio.fixture
async def db_session():
    """Provide a test database session on an in-memory SQLite database.

    A StaticPool keeps the single in-memory connection alive for the
    duration of the test; tables are created fresh for each test.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    session_factory = sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session, tmp_path):
    """HTTP client for the app, bound to the test database and a fresh cache."""
    from theme_service.api import deps
    from theme_service.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_logo_store] = lambda: LocalAssetStore(
        str(tmp_path), "/uploads"
    )
    app.state.theme_cache = TTLCache(ttl_ms=300000)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()


def _bearer(user_id: int, role: str = "user", is_root: bool = False) -> dict[str, str]:
    token, _ = AuthService.create_access_token(user_id, role=role, is_root=is_root)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers() -> dict[str, str]:
    """Authorization header for regular user 42."""
    return _bearer(42)


@pytest.fixture
def other_user_headers() -> dict[str, str]:
    """Authorization header for regular user 7."""
    return _bearer(7)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Authorization header for an admin."""
    return _bearer(1, role="admin")


