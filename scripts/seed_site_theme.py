"""Ensure the site theme row exists, optionally resetting it to defaults.

Usage:
    python scripts/seed_site_theme.py          # create if missing
    python scripts/seed_site_theme.py --reset  # overwrite with defaults
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from theme_service.core.cache import TTLCache
from theme_service.core.config import settings
from theme_service.core.database import Base
from theme_service.models.theme import SITE_THEME_SCOPE
from theme_service.services.asset_store import get_asset_store
from theme_service.services.theme_repository import get_site_theme_repository
from theme_service.services.theme_service import MergePolicy, ThemeService


async def seed_site_theme(reset: bool) -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        service = ThemeService(
            get_site_theme_repository(session),
            TTLCache(enabled=False),
            merge_policy=MergePolicy(settings.SITE_THEME_MERGE_POLICY),
            site=True,
            asset_store=get_asset_store(),
        )
        if reset:
            theme = await service.reset_theme(SITE_THEME_SCOPE)
            print(f"Reset site theme '{theme.name}' to defaults")
        else:
            theme = await service.ensure_theme(SITE_THEME_SCOPE)
            print(f"Site theme '{theme.name}' is present (id={theme.id})")

    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--reset", action="store_true", help="overwrite with defaults")
    args = parser.parse_args()
    asyncio.run(seed_site_theme(args.reset))
