"""Theme resolution service.

This service provides business logic for:
- Resolving a theme for an identity key, creating the default on first read
- Writing partial updates merged with defaults or the stored record
- Resetting a theme to defaults (the row is overwritten, never deleted)
- Rendering the theme stylesheet
- Attaching a logo to the site theme

Resolved records and rendered CSS are cached per identity key and both
entries are invalidated on every successful write.
"""

import copy
import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from theme_service.core.cache import TTLCache, css_cache_key, theme_cache_key
from theme_service.schemas.theme import SiteThemeRead, ThemePatch, UserThemeRead
from theme_service.services.asset_store import AssetStore, AssetStoreError
from theme_service.services.theme_css import render_theme_css
from theme_service.services.theme_defaults import REQUIRED_COLOR_ROLES, default_theme
from theme_service.services.theme_repository import ThemeRepository

logger = logging.getLogger(__name__)

THEME_FIELDS = ("name", "colors", "radius", "shadows", "fonts")


class MergePolicy(str, Enum):
    """Where omitted fields come from when a theme is written."""

    # Omitted fields fall back to the hard defaults (full replace)
    DEFAULTS = "replace"
    # Omitted fields keep the stored value, then fall back to the defaults
    STORED = "preserve"


class ThemeServiceError(Exception):
    """Base exception for theme service errors."""

    pass


class ThemeValidationError(ThemeServiceError):
    """Raised when a theme write is rejected before touching storage."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class ThemeNotFoundError(ThemeServiceError):
    """Raised when a stylesheet is requested for a theme that does not exist."""

    pass


class ThemeStorageError(ThemeServiceError):
    """Raised when the storage backend fails."""

    pass


def validate_theme_patch(patch: ThemePatch) -> None:
    """Check a theme write before any storage access.

    Raises:
        ThemeValidationError: If colors are given without every required role
    """
    if patch.colors is None:
        return
    for role in REQUIRED_COLOR_ROLES:
        value = patch.colors.get(role)
        if not value or not value.strip():
            raise ThemeValidationError(f"Missing required color: {role}")


def merge_theme(
    patch: ThemePatch,
    stored: Optional[dict[str, Any]],
    policy: MergePolicy,
) -> dict[str, Any]:
    """Build the full record to persist for a theme write.

    Explicit input wins; omitted fields come from the stored record (STORED
    policy only) and finally from the defaults. Shadows and fonts merge per
    sub-field, colors are replaced as a whole.
    """
    defaults = default_theme()
    fallback = defaults

    if policy is MergePolicy.STORED and stored is not None:
        fallback = {}
        for field in THEME_FIELDS:
            value = stored.get(field)
            fallback[field] = copy.deepcopy(value) if value is not None else defaults[field]
        fallback["shadows"] = {**defaults["shadows"], **fallback["shadows"]}
        fallback["fonts"] = {**defaults["fonts"], **fallback["fonts"]}

    merged = fallback
    if patch.name is not None:
        merged["name"] = patch.name
    if patch.colors is not None:
        merged["colors"] = dict(patch.colors)
    if patch.radius is not None:
        merged["radius"] = patch.radius
    if patch.shadows is not None:
        merged["shadows"] = {
            **merged["shadows"],
            **patch.shadows.model_dump(exclude_none=True),
        }
    if patch.fonts is not None:
        merged["fonts"] = {**merged["fonts"], **patch.fonts.model_dump(exclude_none=True)}
    return merged


class ThemeService:
    """Service for resolving, writing and rendering themes of one scope."""

    def __init__(
        self,
        repository: ThemeRepository,
        cache: TTLCache,
        *,
        merge_policy: MergePolicy = MergePolicy.DEFAULTS,
        site: bool = False,
        asset_store: Optional[AssetStore] = None,
    ):
        """Initialize the theme service.

        Args:
            repository: Storage for this scope's theme table
            cache: Shared TTL cache owned by the application
            merge_policy: Fallback source for fields omitted on write
            site: True for the single site-wide theme, False for user themes
            asset_store: Logo storage (site theme only)
        """
        self.repository = repository
        self.cache = cache
        self.merge_policy = merge_policy
        self.site = site
        self.asset_store = asset_store
        self.scope = "site" if site else "user"
        self.read_schema: type[BaseModel] = SiteThemeRead if site else UserThemeRead

    # -------------------------------------------------------------------------
    # Storage access
    # -------------------------------------------------------------------------

    async def _find(self, key: str) -> Optional[dict[str, Any]]:
        try:
            return await self.repository.find_one(key)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load {self.scope} theme {key}: {e}", exc_info=True)
            raise ThemeStorageError("Failed to retrieve theme") from e

    async def _insert(self, key: str, data: dict[str, Any]) -> dict[str, Any]:
        try:
            return await self.repository.insert(key, data)
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert {self.scope} theme {key}: {e}", exc_info=True)
            raise ThemeStorageError("Failed to save theme") from e

    async def _update(self, key: str, data: dict[str, Any]) -> None:
        try:
            await self.repository.update(key, data)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update {self.scope} theme {key}: {e}", exc_info=True)
            raise ThemeStorageError("Failed to save theme") from e

    async def _write(self, key: str, data: dict[str, Any], exists: bool) -> BaseModel:
        """Update the row for ``key`` if it exists, else insert it."""
        if exists:
            await self._update(key, data)
            row = await self._find(key)
            if row is None:
                raise ThemeNotFoundError(f"Theme for {key} disappeared during update")
        else:
            row = await self._insert(key, data)
        self.invalidate(key)
        return self.read_schema.model_validate(row)

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def invalidate(self, key: str) -> None:
        """Drop both the record and the stylesheet cached for ``key``."""
        self.cache.invalidate(
            theme_cache_key(self.scope, key),
            css_cache_key(self.scope, key),
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def get_theme(self, key: str) -> BaseModel:
        """Get the theme for ``key``.

        If no theme exists yet, the default theme is stored for ``key`` and
        returned; this is the only read with a write side effect.

        Args:
            key: User id, or the site scope constant

        Returns:
            The resolved theme (UserThemeRead or SiteThemeRead)
        """
        cache_key = theme_cache_key(self.scope, key)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached.model_copy(deep=True)

        generation = self.cache.generation(cache_key)
        row = await self._find(key)
        if row is None:
            row = await self._insert(key, default_theme())
            logger.info(f"Created default {self.scope} theme for {key}")

        theme = self.read_schema.model_validate(row)
        self.cache.set(cache_key, theme, generation=generation)
        return theme.model_copy(deep=True)

    async def ensure_theme(self, key: str) -> BaseModel:
        """Make sure a theme row exists for ``key`` (used at startup)."""
        return await self.get_theme(key)

    async def upsert_theme(self, key: str, patch: ThemePatch) -> BaseModel:
        """Validate, merge and persist a theme write.

        Args:
            key: User id, or the site scope constant
            patch: Fields to write; omitted fields follow the merge policy

        Returns:
            The stored theme after the write

        Raises:
            ThemeValidationError: If the patch is invalid (nothing is written)
            ThemeStorageError: If the storage backend fails
        """
        validate_theme_patch(patch)

        stored = await self._find(key)
        data = merge_theme(patch, stored, self.merge_policy)
        theme = await self._write(key, data, exists=stored is not None)

        logger.info(f"Saved {self.scope} theme for {key} ({self.merge_policy.value})")
        return theme

    async def reset_theme(self, key: str) -> BaseModel:
        """Overwrite the theme for ``key`` with the defaults.

        For the site theme the logo is cleared and its asset deleted.
        """
        existing = await self._find(key)
        previous_logo = None
        data = default_theme()
        if self.site:
            previous_logo = existing.get("logo") if existing else None
            data["logo"] = None

        theme = await self._write(key, data, exists=existing is not None)
        logger.info(f"Reset {self.scope} theme for {key} to defaults")

        if previous_logo:
            await self._delete_asset(previous_logo)
        return theme

    async def render_css(self, key: str) -> str:
        """Get the stylesheet for ``key``, rendering it on a cache miss.

        Raises:
            ThemeNotFoundError: If no theme exists for ``key``
        """
        cache_key = css_cache_key(self.scope, key)
        css = self.cache.get(cache_key)
        if css is not None:
            return css

        generation = self.cache.generation(cache_key)
        theme = self.cache.get(theme_cache_key(self.scope, key))
        if theme is None:
            row = await self._find(key)
            if row is None:
                raise ThemeNotFoundError("Theme not found")
            theme = self.read_schema.model_validate(row)

        css = render_theme_css(theme, site=self.site)
        self.cache.set(cache_key, css, generation=generation)
        return css

    async def set_logo(self, key: str, path: str) -> BaseModel:
        """Point the site theme at a newly stored logo asset.

        The previous asset, if any, is deleted after the record is updated.
        """
        if not self.site:
            raise ThemeServiceError("Logos are only supported for the site theme")

        existing = await self._find(key)
        previous_logo = existing.get("logo") if existing else None
        if existing is None:
            data = {**default_theme(), "logo": path}
        else:
            data = {"logo": path}

        theme = await self._write(key, data, exists=existing is not None)
        logger.info(f"Updated site logo for {key}: {path}")

        if previous_logo and previous_logo != path:
            await self._delete_asset(previous_logo)
        return theme

    async def _delete_asset(self, path: str) -> None:
        if self.asset_store is None:
            return
        try:
            await self.asset_store.delete(path)
        except AssetStoreError as e:
            # The theme write already succeeded; an orphaned file is harmless
            logger.error(f"Failed to delete logo asset {path}: {e}")
