"""Pydantic schemas for API requests and responses."""

from theme_service.schemas.theme import (
    SiteThemeRead,
    SiteThemeResetResponse,
    ThemeBase,
    ThemeFonts,
    ThemeFontsPatch,
    ThemePatch,
    ThemeShadows,
    ThemeShadowsPatch,
    UserThemeRead,
    UserThemeResetResponse,
)

__all__ = [
    "SiteThemeRead",
    "SiteThemeResetResponse",
    "ThemeBase",
    "ThemeFonts",
    "ThemeFontsPatch",
    "ThemePatch",
    "ThemeShadows",
    "ThemeShadowsPatch",
    "UserThemeRead",
    "UserThemeResetResponse",
]
