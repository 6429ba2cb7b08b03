"""
Review model: a rating and text left by a user on a store.
"""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from storefront.database import Base
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.models.user import User
    from storefront.models.store import Store

MIN_RATING = 0
MAX_RATING = 5


class Review(Base):
    """Immutable review of a store."""

    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint(
            f"rating >= {MIN_RATING} AND rating <= {MAX_RATING}",
            name="ck_reviews_rating_range"
        ),
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    store_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    rating: Mapped[int] = mapped_column(
        Integer,
        nullable=False
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False
    )

    author: Mapped["User"] = relationship("User", lazy="raise")

    store: Mapped["Store"] = relationship(
        "Store",
        back_populates="reviews",
        lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, store_id={self.store_id}, rating={self.rating})>"

    def to_dict(self, include_author: bool = False) -> dict:
        result = {
            "id": str(self.id),
            "author_id": str(self.author_id),
            "store_id": str(self.store_id),
            "rating": self.rating,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
        }

        if include_author:
            result["author"] = self.author.to_dict()

        return result
