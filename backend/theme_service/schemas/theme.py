"""Theme schemas for reading, patching and resetting themes."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ThemeShadows(BaseModel):
    """Shadow settings for a theme."""

    enabled: bool
    opacity: float = Field(..., ge=0, le=1)
    blur: float = Field(..., ge=0)


class ThemeFonts(BaseModel):
    """Font families for a theme."""

    sans: str
    serif: str
    mono: str


class ThemeShadowsPatch(BaseModel):
    """Partial shadow settings; omitted fields are filled by the merge policy."""

    enabled: Optional[bool] = None
    opacity: Optional[float] = Field(None, ge=0, le=1)
    blur: Optional[float] = Field(None, ge=0)


class ThemeFontsPatch(BaseModel):
    """Partial font settings; omitted fields are filled by the merge policy."""

    sans: Optional[str] = Field(None, min_length=1, max_length=100)
    serif: Optional[str] = Field(None, min_length=1, max_length=100)
    mono: Optional[str] = Field(None, min_length=1, max_length=100)


class ThemePatch(BaseModel):
    """Schema for writing a theme.

    Every attribute is optional. When ``colors`` is given it must contain
    all required roles (checked by the theme service so the error names the
    missing role); extra roles are kept as extensions.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    colors: Optional[dict[str, str]] = None
    radius: Optional[float] = Field(None, ge=0, le=9.99)
    shadows: Optional[ThemeShadowsPatch] = None
    fonts: Optional[ThemeFontsPatch] = None


class ThemeBase(BaseModel):
    """Resolved theme attributes (matches the DB columns)."""

    name: str
    colors: dict[str, str]
    radius: float
    shadows: ThemeShadows
    fonts: ThemeFonts


class UserThemeRead(ThemeBase):
    """Theme owned by a user."""

    id: Optional[int] = None
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SiteThemeRead(ThemeBase):
    """The single site-wide theme."""

    id: Optional[int] = None
    scope: str
    logo: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserThemeResetResponse(BaseModel):
    """Response after resetting a user theme."""

    message: str
    theme: UserThemeRead


class SiteThemeResetResponse(BaseModel):
    """Response after resetting the site theme."""

    message: str
    theme: SiteThemeRead
