"""Theme models for per-user and site-wide visual styles."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from theme_service.core.database import Base
from theme_service.services.theme_defaults import (
    DEFAULT_FONTS,
    DEFAULT_RADIUS,
    DEFAULT_SHADOWS,
    DEFAULT_THEME_COLORS,
    DEFAULT_THEME_NAME,
)

SITE_THEME_SCOPE = "global"


class ThemeColumnsMixin:
    """Columns shared by the user and site theme tables."""

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    name: Mapped[str] = mapped_column(
        String(100), nullable=False, default=DEFAULT_THEME_NAME
    )

    # Composite attributes (JSON)
    colors: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=lambda: dict(DEFAULT_THEME_COLORS)
    )
    shadows: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=lambda: dict(DEFAULT_SHADOWS)
    )
    fonts: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=lambda: dict(DEFAULT_FONTS)
    )

    radius: Mapped[float] = mapped_column(
        Numeric(3, 2, asdecimal=False), nullable=False, default=DEFAULT_RADIUS
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )


class UserTheme(ThemeColumnsMixin, Base):
    """
    Theme owned by a single user.

    Created lazily the first time the user's theme is read.
    """

    __tablename__ = "user_themes"

    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<UserTheme(id={self.id}, user_id={self.user_id})>"


class SiteTheme(ThemeColumnsMixin, Base):
    """
    Site-wide theme shared by every visitor.

    Exactly one row exists (scope="global"); it is created at startup.
    """

    __tablename__ = "site_theme"

    scope: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, default=SITE_THEME_SCOPE
    )

    # Public path of the uploaded logo asset
    logo: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<SiteTheme(id={self.id}, name={self.name})>"
