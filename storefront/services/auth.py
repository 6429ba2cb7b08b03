"""
Authentication service for registration, login, profile edits and password resets.
"""

from datetime import timedelta
from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError
import secrets
import uuid
import logging

from storefront.config import Settings, get_settings
from storefront.database import utc_now
from storefront.models.user import User
from storefront.repositories.user import UserRepository
from storefront.schemas.user import UserRegister, AccountUpdate
from storefront.services.mail import MailService
from storefront.utils.auth import create_access_token, create_refresh_token, verify_token
from storefront.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InvalidResetTokenError,
    PasswordMismatchError,
    DuplicateResourceError,
    NotFoundError,
    ValidationError
)

logger = logging.getLogger(__name__)

RESET_TOKEN_BYTES = 20


class AuthService:
    """
    User-facing account flows.
    The reset token lives on the user row: issued by ``forgot_password``,
    consumed once by ``reset_password``.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        mail_service: Optional[MailService] = None,
        settings: Optional[Settings] = None
    ):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.settings = settings or get_settings()
        self.mail_service = mail_service or MailService.from_settings(self.settings)

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            ValidationError: If a field is empty
            InvalidCredentialsError: If credentials are invalid
        """
        if not email or not email.strip():
            raise ValidationError("Email is required")

        if not password:
            raise ValidationError("Password is required")

        user = await self.user_repo.authenticate_user(email, password)

        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """Create (access_token, refresh_token) for user."""
        access_token = create_access_token(user_id=user.id, email=user.email)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """Authenticate user and create tokens."""
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)
        return user, access_token, refresh_token

    async def _user_from_token(self, token: str, token_type: str) -> User:
        try:
            token_payload = verify_token(token, token_type=token_type)
        except JWTError as e:
            if "expired" in str(e).lower():
                raise TokenExpiredError()
            raise InvalidTokenError(str(e))

        user = await self.user_repo.get_by_id(uuid.UUID(token_payload.user_id))
        if not user:
            raise InvalidTokenError("User no longer exists")

        return user

    async def get_current_user(self, token: str) -> User:
        """
        Get current user from access token.

        Raises:
            InvalidTokenError: If token is invalid or its user is gone
            TokenExpiredError: If token is expired
        """
        return await self._user_from_token(token, "access")

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid or its user is gone
            TokenExpiredError: If refresh token is expired
        """
        user = await self._user_from_token(refresh_token, "refresh")
        return create_access_token(user_id=user.id, email=user.email)

    async def register(self, user_data: UserRegister) -> User:
        """
        Register a new user.

        Raises:
            DuplicateResourceError: If the email is already registered
        """
        try:
            return await self.user_repo.create_user(
                {
                    "email": user_data.email,
                    "name": user_data.name,
                    "password": user_data.password,
                }
            )
        except ValueError as e:
            if "already exists" in str(e):
                raise DuplicateResourceError("User", user_data.email)
            raise ValidationError(str(e))

    async def update_account(self, user: User, account_data: AccountUpdate) -> User:
        """
        Update name and email of the current user.

        Raises:
            DuplicateResourceError: If the email belongs to another user
        """
        try:
            updated = await self.user_repo.update_account(user.id, account_data.name, account_data.email)
        except ValueError as e:
            if "already exists" in str(e):
                raise DuplicateResourceError("User", account_data.email)
            raise ValidationError(str(e))

        if updated is None:
            raise NotFoundError("User", str(user.id))
        return updated

    async def forgot_password(self, email: str, base_url: str) -> None:
        """
        Issue a reset token and mail the reset link.

        Returns nothing either way, so callers cannot tell whether the
        email belongs to an account.
        """
        user = await self.user_repo.get_by_email(email)
        if not user:
            logger.info("Password reset requested for an unknown email")
            return

        token = secrets.token_hex(RESET_TOKEN_BYTES)
        expires = utc_now() + timedelta(seconds=self.settings.reset_token_ttl_seconds)
        await self.user_repo.set_reset_token(user.id, token, expires)

        reset_url = f"{base_url.rstrip('/')}/account/reset/{token}"
        await self.mail_service.send_password_reset(user, reset_url)

    async def get_reset_user(self, token: str) -> User:
        """
        Resolve a reset token that is still valid.

        Raises:
            InvalidResetTokenError: For unknown and expired tokens alike
        """
        user = await self.user_repo.get_by_reset_token(token, utc_now())
        if not user:
            raise InvalidResetTokenError()
        return user

    async def reset_password(self, token: str, password: str, password_confirm: str) -> Tuple[User, str, str]:
        """
        Consume a reset token, set the new password and log the user in.

        Raises:
            PasswordMismatchError: If the two passwords differ (checked before any lookup)
            InvalidResetTokenError: For unknown, used and expired tokens alike
        """
        if password != password_confirm:
            raise PasswordMismatchError()

        try:
            hashed_password = User.hash_password(password)
        except ValueError as e:
            raise ValidationError(str(e))

        user = await self.user_repo.consume_reset_token(token, hashed_password, utc_now())
        if not user:
            raise InvalidResetTokenError()

        access_token, refresh_token = self.create_tokens(user)
        return user, access_token, refresh_token
