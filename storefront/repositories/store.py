"""
Store repository: catalog persistence, slug assignment and read-side aggregations.
Provides the feed, tag, search, nearby and top-rated queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, case, literal, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from storefront.repositories.base import BaseRepository
from storefront.models.store import Store, StoreTag
from storefront.models.review import Review
from storefront.models.user import hearts_table
from storefront.utils.slug import slugify, candidate_slugs
from storefront.utils.geo import bounding_box, haversine_distance
from typing import Optional, List, Dict, Any, Tuple, Iterable
import uuid
import logging

logger = logging.getLogger(__name__)


class SlugConflictError(Exception):
    """No free slug was found within the allowed number of attempts."""

    def __init__(self, base_slug: str, attempts: int):
        super().__init__(f"Could not assign a unique slug for '{base_slug}' after {attempts} attempts")
        self.base_slug = base_slug


def _is_slug_conflict(error: IntegrityError) -> bool:
    return "slug" in str(error.orig).lower()


def _detail_options(include_author: bool, include_reviews: bool) -> List[Any]:
    options = []
    if include_author:
        options.append(selectinload(Store.author))
    if include_reviews:
        options.append(selectinload(Store.reviews).selectinload(Review.author))
    return options


class StoreRepository(BaseRepository[Store]):
    """
    Repository for store listings.
    Relations are loaded only on request through ``include_*`` flags.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Store, db)

    async def _existing_slugs(self, base_slug: str, exclude_id: Optional[uuid.UUID] = None) -> List[str]:
        """Slugs equal to ``base_slug`` or starting with ``base_slug-``."""
        lowered = func.lower(Store.slug)
        query = select(Store.slug).where(
            or_(lowered == base_slug, lowered.startswith(f"{base_slug}-", autoescape=True))
        )
        if exclude_id is not None:
            query = query.where(Store.id != exclude_id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_store(
        self,
        store_data: Dict[str, Any],
        tags: Iterable[str] = (),
        max_attempts: int = 5
    ) -> Store:
        """
        Create a store and assign its slug.

        With N existing slugs matching ``base`` or ``base-<n>`` the new slug is
        ``base-(N+1)``. A concurrent writer taking the same slug trips the
        unique index; the insert is then retried with the next suffix.

        Raises:
            SlugConflictError: If every attempt collided
        """
        tags = list(tags)
        base_slug = slugify(store_data["name"])
        existing = await self._existing_slugs(base_slug)

        for slug in candidate_slugs(base_slug, existing, max_attempts):
            store = Store(**store_data, slug=slug)
            store.set_tags(tags)
            self.db.add(store)
            try:
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                if not _is_slug_conflict(e):
                    logger.error(f"Failed to create store {store_data['name']}: {e}")
                    raise
                logger.warning(f"Slug {slug} taken concurrently, retrying")
                continue

            await self.db.refresh(store)
            logger.info(f"Created store: {store.name} (slug: {store.slug}, ID: {store.id})")
            return store

        raise SlugConflictError(base_slug, max_attempts)

    async def update_store(
        self,
        store: Store,
        store_data: Dict[str, Any],
        tags: Optional[Iterable[str]] = None,
        max_attempts: int = 5
    ) -> Store:
        """
        Apply changes to a store; the slug is regenerated only when the name changes.

        Raises:
            SlugConflictError: If every slug attempt collided
        """
        tags = list(tags) if tags is not None else None
        name_changed = "name" in store_data and store_data["name"] != store.name

        if name_changed:
            base_slug = slugify(store_data["name"])
            existing = await self._existing_slugs(base_slug, exclude_id=store.id)
            slugs: List[Optional[str]] = list(candidate_slugs(base_slug, existing, max_attempts))
        else:
            base_slug = store.slug
            slugs = [None]

        for slug in slugs:
            for field, value in store_data.items():
                setattr(store, field, value)
            if slug is not None:
                store.slug = slug
            if tags is not None:
                store.set_tags(tags)
            try:
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                await self.db.refresh(store)
                if slug is None or not _is_slug_conflict(e):
                    logger.error(f"Failed to update store {store.id}: {e}")
                    raise
                logger.warning(f"Slug {slug} taken concurrently, retrying")
                continue

            await self.db.refresh(store)
            logger.info(f"Updated store {store.id} (slug: {store.slug})")
            return store

        raise SlugConflictError(base_slug, max_attempts)

    async def get_store(
        self,
        store_id: uuid.UUID,
        include_author: bool = False,
        include_reviews: bool = False
    ) -> Optional[Store]:
        return await self.get_by_id(store_id, options=_detail_options(include_author, include_reviews))

    async def get_by_slug(
        self,
        slug: str,
        include_author: bool = False,
        include_reviews: bool = False
    ) -> Optional[Store]:
        """Get a store by slug, optionally with its author and reviews (with their authors)."""
        return await self.get_by_field("slug", slug, options=_detail_options(include_author, include_reviews))

    async def get_page(self, page: int, per_page: int) -> Tuple[List[Store], int]:
        """
        Get one page of the feed, oldest first.

        Returns:
            Tuple of (stores on the page, total store count)
        """
        try:
            skip = per_page * (page - 1)
            total_count = await self.count()

            result = await self.db.execute(
                select(Store)
                .order_by(Store.created_at.asc(), Store.id.asc())
                .offset(skip)
                .limit(per_page)
            )
            stores = list(result.scalars().all())

            logger.debug(f"Feed page {page} returned {len(stores)} of {total_count} stores")
            return stores, total_count
        except Exception as e:
            logger.error(f"Failed to get feed page {page}: {e}")
            raise

    async def get_tags_list(self) -> List[Tuple[str, int]]:
        """
        Count stores per tag, most used first.

        Returns:
            List of (tag, count) ordered by count descending, then tag
        """
        try:
            tag_count = func.count(StoreTag.id).label("count")
            result = await self.db.execute(
                select(StoreTag.name, tag_count)
                .group_by(StoreTag.name)
                .order_by(tag_count.desc(), StoreTag.name.asc())
            )
            return [(name, count) for name, count in result.all()]
        except Exception as e:
            logger.error(f"Failed to aggregate tags: {e}")
            raise

    async def get_by_tag(self, tag: Optional[str] = None) -> List[Store]:
        """Stores carrying ``tag``, or every store with at least one tag."""
        try:
            query = select(Store).order_by(Store.created_at.asc())
            if tag:
                query = query.where(Store.tag_rows.any(StoreTag.name == tag))
            else:
                query = query.where(Store.tag_rows.any())

            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get stores by tag {tag}: {e}")
            raise

    def _search_score(self, text: str):
        """
        Relevance score expression and match condition for ``text``.

        PostgreSQL uses its full-text ranking. Other dialects weight a name
        hit 2 and a description hit 1 for each search term.
        """
        if self.dialect_name == "postgresql":
            document = func.to_tsvector(
                "english",
                Store.name + literal(" ") + func.coalesce(Store.description, "")
            )
            ts_query = func.plainto_tsquery("english", text)
            return func.ts_rank(document, ts_query), document.op("@@")(ts_query)

        name = func.lower(Store.name)
        description = func.lower(func.coalesce(Store.description, ""))
        score = literal(0)
        for term in text.lower().split():
            score = score + case((name.contains(term, autoescape=True), 2), else_=0)
            score = score + case((description.contains(term, autoescape=True), 1), else_=0)
        return score, score > 0

    async def search(self, text: str, limit: int = 5) -> List[Store]:
        """Full-text search over name and description, best matches first."""
        try:
            if not text or not text.strip():
                return []

            score, condition = self._search_score(text.strip())
            result = await self.db.execute(
                select(Store, score.label("score"))
                .where(condition)
                .order_by(score.desc(), Store.created_at.asc())
                .limit(limit)
            )
            stores = [row[0] for row in result.all()]

            logger.debug(f"Search for '{text}' returned {len(stores)} stores")
            return stores
        except Exception as e:
            logger.error(f"Failed to search stores for '{text}': {e}")
            raise

    async def get_near(
        self,
        latitude: float,
        longitude: float,
        max_distance_m: float = 10000,
        limit: int = 10
    ) -> List[Tuple[Store, float]]:
        """
        Stores within ``max_distance_m`` metres, nearest first.
        A bounding box narrows the rows in SQL; exact distances use the haversine formula.

        Returns:
            List of (store, distance in metres)
        """
        try:
            min_lat, max_lat, min_lng, max_lng = bounding_box(latitude, longitude, max_distance_m)
            result = await self.db.execute(
                select(Store).where(
                    and_(
                        Store.latitude.between(min_lat, max_lat),
                        Store.longitude.between(min_lng, max_lng)
                    )
                )
            )

            nearby = []
            for store in result.scalars().all():
                distance = haversine_distance(latitude, longitude, store.latitude, store.longitude)
                if distance <= max_distance_m:
                    nearby.append((store, distance))

            nearby.sort(key=lambda item: item[1])
            logger.debug(f"Found {len(nearby)} stores within {max_distance_m}m")
            return nearby[:limit]
        except Exception as e:
            logger.error(f"Failed to get nearby stores: {e}")
            raise

    async def get_top_stores(self, min_reviews: int = 2, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Best rated stores.

        Only stores with at least ``min_reviews`` reviews qualify. Each entry
        holds name, slug, photo, reviews and averageRating, sorted by
        average rating descending.
        """
        try:
            average_rating = func.avg(Review.rating).label("average_rating")
            result = await self.db.execute(
                select(Store, average_rating)
                .join(Review, Review.store_id == Store.id)
                .group_by(Store.id)
                .having(func.count(Review.id) >= min_reviews)
                .order_by(average_rating.desc(), Store.name.asc())
                .limit(limit)
                .options(selectinload(Store.reviews).selectinload(Review.author))
                .execution_options(populate_existing=True)
            )

            top_stores = [
                {
                    "id": str(store.id),
                    "name": store.name,
                    "slug": store.slug,
                    "photo": store.photo,
                    "reviews": [review.to_dict(include_author=True) for review in store.reviews],
                    "averageRating": float(average),
                }
                for store, average in result.all()
            ]

            logger.debug(f"Top stores query returned {len(top_stores)} stores")
            return top_stores
        except Exception as e:
            logger.error(f"Failed to get top stores: {e}")
            raise

    async def get_hearted_by_user(self, user_id: uuid.UUID) -> List[Store]:
        """Stores in the user's heart set."""
        try:
            result = await self.db.execute(
                select(Store)
                .join(hearts_table, hearts_table.c.store_id == Store.id)
                .where(hearts_table.c.user_id == user_id)
                .order_by(Store.created_at.asc())
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get hearted stores for user {user_id}: {e}")
            raise
