"""SQLAlchemy models for the theme service."""

from theme_service.models.theme import SITE_THEME_SCOPE, SiteTheme, UserTheme

__all__ = [
    "UserTheme",
    "SiteTheme",
    "SITE_THEME_SCOPE",
]
