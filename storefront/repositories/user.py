"""
User repository for authentication, account, favorites and password reset state.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, insert, and_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import selectinload
from storefront.repositories.base import BaseRepository
from storefront.models.user import User, hearts_table
from datetime import datetime
from typing import Optional, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user management.
    Credential changes, reset-token consumption and heart toggles are
    single conditional statements rather than read-modify-write sequences.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Must include email, password and name

        Raises:
            ValueError: If validation fails or the email is taken
        """
        try:
            email = User.validate_email_format(user_data["email"])

            existing_user = await self.get_by_email(email)
            if existing_user:
                raise ValueError(f"User with email {email} already exists")

            create_data = {
                "email": email,
                "name": user_data["name"].strip(),
                "hashed_password": User.hash_password(user_data["password"]),
            }

            created_user = await self.create(create_data)
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            logger.error(f"User validation failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create user: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by (normalized) email address."""
        try:
            normalized_email = email.lower().strip()
            result = await self.db.execute(select(User).where(User.email == normalized_email))
            user = result.scalar_one_or_none()

            if user:
                logger.debug(f"Retrieved user by email: {email}")
            else:
                logger.debug(f"User with email {email} not found")

            return user
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def get_with_hearts(self, user_id: uuid.UUID) -> Optional[User]:
        """Get a user with the heart set loaded."""
        return await self.get_by_id(user_id, options=[selectinload(User.hearts)])

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User instance if authentication successful, None otherwise
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        logger.info(f"User authenticated successfully: {email}")
        return user

    async def update_account(self, user_id: uuid.UUID, name: str, email: str) -> Optional[User]:
        """
        Update the profile fields (name and email only).

        Raises:
            ValueError: If the email is invalid or belongs to another user
        """
        email = User.validate_email_format(email)

        existing_user = await self.get_by_email(email)
        if existing_user and existing_user.id != user_id:
            raise ValueError(f"User with email {email} already exists")

        user = await self.update(user_id, {"name": name.strip(), "email": email})
        if user:
            logger.info(f"Updated account for user {user_id}")
        return user

    async def set_reset_token(self, user_id: uuid.UUID, token: str, expires: datetime) -> None:
        """Store a reset token and its expiry together."""
        try:
            await self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(reset_password_token=token, reset_password_expires=expires)
                .execution_options(synchronize_session="fetch")
            )
            await self.db.commit()
            logger.info(f"Issued password reset token for user {user_id}")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to set reset token for user {user_id}: {e}")
            raise

    async def get_by_reset_token(self, token: str, now: datetime) -> Optional[User]:
        """Get the user holding ``token`` if it has not expired at ``now``."""
        try:
            result = await self.db.execute(
                select(User).where(
                    and_(
                        User.reset_password_token == token,
                        User.reset_password_expires > now
                    )
                )
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to look up reset token: {e}")
            raise

    async def consume_reset_token(self, token: str, hashed_password: str, now: datetime) -> Optional[User]:
        """
        Overwrite the credential and clear the token in one conditional update.

        The update only matches while the token is still present and
        unexpired, so a token can be consumed at most once.

        Returns:
            The updated user, or None when the token is unknown, used or expired
        """
        try:
            user = await self.get_by_reset_token(token, now)
            if user is None:
                return None

            result = await self.db.execute(
                update(User)
                .where(
                    and_(
                        User.id == user.id,
                        User.reset_password_token == token,
                        User.reset_password_expires > now
                    )
                )
                .values(
                    hashed_password=hashed_password,
                    reset_password_token=None,
                    reset_password_expires=None
                )
                .execution_options(synchronize_session="fetch")
            )

            if result.rowcount == 0:
                await self.db.rollback()
                logger.info(f"Reset token for user {user.id} was consumed concurrently")
                return None

            await self.db.commit()
            await self.db.refresh(user)
            logger.info(f"Password reset completed for user {user.id}")
            return user
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to consume reset token: {e}")
            raise

    def _insert_heart(self, user_id: uuid.UUID, store_id: uuid.UUID):
        values = {"user_id": user_id, "store_id": store_id}
        if self.dialect_name == "postgresql":
            return pg_insert(hearts_table).values(**values).on_conflict_do_nothing()
        if self.dialect_name == "sqlite":
            return sqlite_insert(hearts_table).values(**values).on_conflict_do_nothing()
        return insert(hearts_table).values(**values)

    async def toggle_heart(self, user_id: uuid.UUID, store_id: uuid.UUID) -> bool:
        """
        Remove ``store_id`` from the user's hearts if present, add it otherwise.

        Returns:
            True if the store is hearted after the call, False if it was removed
        """
        try:
            removed = await self.db.execute(
                delete(hearts_table).where(
                    and_(
                        hearts_table.c.user_id == user_id,
                        hearts_table.c.store_id == store_id
                    )
                )
            )
            hearted = removed.rowcount == 0
            if hearted:
                await self.db.execute(self._insert_heart(user_id, store_id))

            await self.db.commit()
            logger.info(f"User {user_id} {'hearted' if hearted else 'unhearted'} store {store_id}")
            return hearted
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to toggle heart for user {user_id} on store {store_id}: {e}")
            raise
