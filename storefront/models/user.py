"""
User model with credentials, favorites and password reset state.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import inspect
from storefront.database import Base
from passlib.context import CryptContext
from email_validator import validate_email, EmailNotValidError
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.models.store import Store

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# Favorite set: one row per (user, store), the composite key rules out duplicates
hearts_table = Table(
    "hearts",
    Base.metadata,
    Column("user_id", Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("store_id", Uuid(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """
    Registered user.
    Owns stores, writes reviews and keeps a set of hearted stores.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - must be unique and valid"
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    # Both set while a reset is pending, both cleared otherwise
    reset_password_token: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True
    )

    reset_password_expires: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    stores: Mapped[List["Store"]] = relationship(
        "Store",
        back_populates="author",
        lazy="raise"
    )

    hearts: Mapped[List["Store"]] = relationship(
        "Store",
        secondary=hearts_table,
        lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.

        Args:
            email: Email address to validate

        Returns:
            Normalized email address

        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email, check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")

    @classmethod
    def hash_password(cls, password: str) -> str:
        """
        Hash a password using bcrypt.

        Raises:
            ValueError: If the password is empty
        """
        if not password:
            raise ValueError("Password can not be empty")

        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""
        return pwd_context.verify(password, self.hashed_password)

    def to_dict(self) -> dict:
        """
        Convert user to dictionary (excluding credentials and reset state).
        The heart list is included only when it was loaded with the user.
        """
        result = {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
        }

        if "hearts" not in inspect(self).unloaded:
            result["hearts"] = sorted(str(store.id) for store in self.hearts)

        return result
