"""Authentication service for bearer access tokens.

Tokens are issued by the identity provider; this module creates them (for
tests and operator scripts) and validates them into an Identity.
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from pydantic import ValidationError

from theme_service.core.config import settings
from theme_service.schemas.auth import Identity, TokenPayload

logger = logging.getLogger(__name__)


class AuthServiceError(Exception):
    """Base exception for authentication service errors."""

    pass


class InvalidTokenError(AuthServiceError):
    """Raised when a token is invalid or expired."""

    pass


class AuthService:
    """Service class for access token operations."""

    @staticmethod
    def create_access_token(
        user_id: int, role: str = "user", is_root: bool = False
    ) -> tuple[str, int]:
        """Create a JWT access token for a user.

        Args:
            user_id: User's numeric ID
            role: "user" or "admin"
            is_root: Root account flag

        Returns:
            Tuple of (token string, expiration in seconds)
        """
        now = datetime.now(UTC)
        expires_delta = timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
        expire = now + expires_delta

        payload = {
            "sub": str(user_id),
            "type": "access",
            "role": role,
            "root": is_root,
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp()),
        }

        token = jwt.encode(
            payload,
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )

        return token, settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60

    @staticmethod
    def decode_token(token: str) -> TokenPayload:
        """Decode and validate a JWT token.

        Raises:
            InvalidTokenError: If token is invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
            )
            return TokenPayload(**payload)
        except (JWTError, ValidationError) as e:
            logger.warning(f"Token decode error: {e}")
            raise InvalidTokenError("Invalid or expired token")

    @classmethod
    def validate_access_token(cls, token: str) -> Identity:
        """Validate an access token and return the caller's identity.

        Raises:
            InvalidTokenError: If the token is invalid, expired, not an
                access token, or has a non-numeric subject
        """
        payload = cls.decode_token(token)

        if payload.type != "access":
            raise InvalidTokenError("Invalid token type")

        try:
            user_id = int(payload.sub)
        except ValueError:
            raise InvalidTokenError("Invalid token subject")

        return Identity(id=user_id, role=payload.role, is_root=payload.root)
