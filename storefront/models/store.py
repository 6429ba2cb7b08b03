"""
Store model for catalog listings.
Handles listing data with location, tags, photo and relationship management.
"""

from sqlalchemy import String, Text, Float, Index, ForeignKey, UniqueConstraint, Uuid, DDL, event
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.ext.associationproxy import association_proxy, AssociationProxy
from storefront.database import Base
import uuid
from typing import Iterable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.models.user import User
    from storefront.models.review import Review


class StoreTag(Base):
    """A single tag attached to a store."""

    __tablename__ = "store_tags"
    __table_args__ = (
        UniqueConstraint("store_id", "name", name="uq_store_tags_store_name"),
    )

    store_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True
    )

    def __init__(self, name: str, **kwargs):
        super().__init__(name=name, **kwargs)


class Store(Base):
    """
    Store listing owned by a user.
    The slug is unique and derived from the name; tags form a set.
    """

    __tablename__ = "stores"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Store name"
    )

    slug: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="URL-safe identifier derived from the name"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True
    )

    # Location information
    address: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )

    latitude: Mapped[float] = mapped_column(
        Float,
        nullable=False
    )

    longitude: Mapped[float] = mapped_column(
        Float,
        nullable=False
    )

    photo: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Filename of the resized photo in the upload directory"
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    tag_rows: Mapped[List[StoreTag]] = relationship(
        StoreTag,
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=StoreTag.name
    )

    tags: AssociationProxy[List[str]] = association_proxy("tag_rows", "name")

    author: Mapped["User"] = relationship(
        "User",
        back_populates="stores",
        lazy="raise"
    )

    reviews: Mapped[List["Review"]] = relationship(
        "Review",
        back_populates="store",
        lazy="raise",
        order_by="Review.created_at"
    )

    def __repr__(self) -> str:
        return f"<Store(id={self.id}, slug={self.slug})>"

    def set_tags(self, names: Iterable[str]) -> None:
        """
        Replace the tag set, keeping rows for tags that stay so the
        unique (store_id, name) constraint is never hit during the flush.
        """
        wanted = []
        for name in names:
            if name not in wanted:
                wanted.append(name)

        for row in list(self.tag_rows):
            if row.name not in wanted:
                self.tag_rows.remove(row)

        existing = {row.name for row in self.tag_rows}
        for name in wanted:
            if name not in existing:
                self.tag_rows.append(StoreTag(name))

    @property
    def location(self) -> dict:
        return {
            "type": "Point",
            "coordinates": [self.longitude, self.latitude],
            "address": self.address,
        }

    def to_dict(self, include_author: bool = False, include_reviews: bool = False) -> dict:
        """
        Convert store to dictionary.

        Args:
            include_author: Whether to include the author (must be loaded)
            include_reviews: Whether to include reviews (must be loaded, with authors)
        """
        result = {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "tags": list(self.tags),
            "location": self.location,
            "photo": self.photo,
            "author_id": str(self.author_id),
            "created_at": self.created_at.isoformat(),
        }

        if include_author:
            result["author"] = self.author.to_dict()

        if include_reviews:
            result["reviews"] = [review.to_dict(include_author=True) for review in self.reviews]

        return result


# Coordinate index for bounding-box prefiltering of nearby searches
coordinates_index = Index(
    "idx_stores_coordinates",
    Store.latitude,
    Store.longitude
)

# Full-text index over name and description, PostgreSQL only
event.listen(
    Store.__table__,
    "after_create",
    DDL(
        "CREATE INDEX IF NOT EXISTS idx_stores_search ON stores USING gin "
        "(to_tsvector('english', name || ' ' || coalesce(description, '')))"
    ).execute_if(dialect="postgresql")
)
