"""
FastAPI dependency injection utilities for authentication, services and database sessions.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.database import get_db
from storefront.models.user import User
from storefront.services.auth import AuthService
from storefront.services.store import StoreService
from storefront.services.review import ReviewService
from storefront.services.mail import MailService
from storefront.services.photo import PhotoService
from storefront.utils.exceptions import (
    LoginRequiredError,
    UnauthorizedError,
    InvalidTokenError,
    TokenExpiredError
)
import logging

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_mail_service(request: Request) -> MailService:
    """Process-wide mail transport, built once in the application lifespan."""
    return request.app.state.mail_service


def get_photo_service() -> PhotoService:
    return PhotoService()


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    mail_service: MailService = Depends(get_mail_service)
) -> AuthService:
    return AuthService(db, mail_service=mail_service)


async def get_store_service(db: AsyncSession = Depends(get_db)) -> StoreService:
    return StoreService(db)


async def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from the bearer token.

    Raises:
        LoginRequiredError: If no token is provided
        InvalidTokenError: If the token is invalid
        TokenExpiredError: If the token is expired
    """
    if not credentials:
        raise LoginRequiredError()

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError):
        raise
    except ValueError as e:
        raise UnauthorizedError(f"Authentication failed: {str(e)}")


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """Current user if a valid token is provided, otherwise None."""
    if not credentials:
        return None

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError, ValueError) as e:
        logger.debug(f"Ignoring invalid optional credentials: {e}")
        return None
