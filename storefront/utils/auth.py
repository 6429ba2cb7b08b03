"""
Authentication utilities for JWT token management.
Provides JWT token generation and validation for logged-in sessions.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from storefront.config import settings
import uuid


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: str, email: str, exp: datetime):
        self.user_id = user_id
        self.email = email
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        return cls(
            user_id=data["sub"],
            email=data["email"],
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def _encode(user_id: uuid.UUID, email: str, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "exp": now + expires_delta,
        "iat": now,
        "type": token_type
    }
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token with user claims.

    Args:
        user_id: User's UUID
        email: User's email address
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    return _encode(
        user_id,
        email,
        "access",
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )


def create_refresh_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT refresh token."""
    return _encode(
        user_id,
        email,
        "refresh",
        expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days)
    )


def verify_token(token: str, token_type: str = "access") -> TokenPayload:
    """
    Verify and decode JWT token.

    Args:
        token: JWT token string
        token_type: Expected token type ("access" or "refresh")

    Returns:
        Decoded TokenPayload

    Raises:
        JWTError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )

        if payload.get("type") != token_type:
            raise JWTError(f"Invalid token type. Expected {token_type}")

        if not payload.get("sub") or not payload.get("email"):
            raise JWTError("Invalid token payload")

        return TokenPayload.from_dict(payload)

    except JWTError:
        raise
    except Exception as e:
        raise JWTError(f"Token validation error: {str(e)}")
