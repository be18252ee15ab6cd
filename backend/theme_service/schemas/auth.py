"""Authentication schemas for bearer-token identities."""

from typing import Literal

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """Schema for JWT token payload (internal use)."""

    sub: str = Field(..., description="Subject (user ID)")
    type: str = Field(..., description="Token type (only 'access' is accepted)")
    role: Literal["user", "admin"] = Field("user", description="User role")
    root: bool = Field(False, description="Root account flag")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")


class Identity(BaseModel):
    """Authenticated caller extracted from an access token."""

    id: int
    role: Literal["user", "admin"] = "user"
    is_root: bool = False

    @property
    def is_privileged(self) -> bool:
        """Whether the caller may modify the site theme."""
        return self.role == "admin" or self.is_root

    @property
    def theme_key(self) -> str:
        """Identity key used to address the caller's user theme."""
        return str(self.id)
