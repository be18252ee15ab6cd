"""Theme storage backed by async SQLAlchemy sessions.

The theme service talks to storage only through ``find_one``, ``insert`` and
``update`` keyed by an identity key, so any backend offering those three
calls (and a JSON-capable column type) can stand in for the database.
"""

import copy
import logging
from typing import Any, Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from theme_service.models.theme import SiteTheme, UserTheme

logger = logging.getLogger(__name__)


class ThemeRepository(Protocol):
    """Storage collaborator contract used by ThemeService."""

    async def find_one(self, key: str) -> Optional[dict[str, Any]]:
        ...

    async def insert(self, key: str, data: dict[str, Any]) -> dict[str, Any]:
        ...

    async def update(self, key: str, data: dict[str, Any]) -> None:
        ...


class SqlThemeRepository:
    """ThemeRepository over one theme table, addressed by a key column."""

    def __init__(self, db: AsyncSession, model: type, key_column: str):
        """Initialize the repository.

        Args:
            db: Async SQLAlchemy session
            model: Mapped theme class (UserTheme or SiteTheme)
            key_column: Name of the unique identity column
        """
        self.db = db
        self.model = model
        self.key_column = key_column

    @property
    def _key(self):
        return getattr(self.model, self.key_column)

    @staticmethod
    def _to_dict(row: Any) -> dict[str, Any]:
        return {
            column.name: copy.deepcopy(getattr(row, column.name))
            for column in row.__table__.columns
        }

    async def find_one(self, key: str) -> Optional[dict[str, Any]]:
        """Fetch the theme row for ``key`` as a plain dict, or None."""
        stmt = (
            select(self.model)
            .where(self._key == key)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        row = result.scalar_one_or_none()
        return self._to_dict(row) if row is not None else None

    async def insert(self, key: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new theme row and return it with generated fields."""
        row = self.model(**data, **{self.key_column: key})
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        logger.debug(f"Inserted {self.model.__tablename__} row for {key}")
        return self._to_dict(row)

    async def update(self, key: str, data: dict[str, Any]) -> None:
        """Overwrite the given columns of the theme row for ``key``."""
        stmt = update(self.model).where(self._key == key).values(**data)
        await self.db.execute(stmt)
        await self.db.commit()


def get_user_theme_repository(db: AsyncSession) -> SqlThemeRepository:
    """Repository for the per-user theme table."""
    return SqlThemeRepository(db, UserTheme, "user_id")


def get_site_theme_repository(db: AsyncSession) -> SqlThemeRepository:
    """Repository for the site theme table."""
    return SqlThemeRepository(db, SiteTheme, "scope")
