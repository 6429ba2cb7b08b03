"""
Store service: listing creation and edits, the ownership guard, feed
pagination, tags, search, nearby lookups, hearts and top stores.
"""

from typing import List, Optional, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
import math
import uuid
import logging

from storefront.config import Settings, get_settings
from storefront.models.store import Store
from storefront.models.user import User
from storefront.repositories.store import StoreRepository, SlugConflictError
from storefront.repositories.user import UserRepository
from storefront.schemas.store import StoreCreate
from storefront.utils.exceptions import (
    StoreNotFoundError,
    StoreOwnershipError,
    DuplicateResourceError
)

logger = logging.getLogger(__name__)


class StoreService:
    """Business logic around store listings."""

    def __init__(self, db_session: AsyncSession, settings: Optional[Settings] = None):
        self.db = db_session
        self.store_repo = StoreRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.settings = settings or get_settings()

    @staticmethod
    def confirm_owner(store: Store, user: User) -> None:
        """
        Raises:
            StoreOwnershipError: If ``user`` is not the store's author
        """
        if store.author_id != user.id:
            logger.warning(f"User {user.id} tried to edit store {store.id} owned by {store.author_id}")
            raise StoreOwnershipError()

    async def create_store(self, store_data: StoreCreate, photo: Optional[str], current_user: User) -> Store:
        data = store_data.to_model_data()
        data["photo"] = photo
        data["author_id"] = current_user.id

        try:
            return await self.store_repo.create_store(
                data,
                tags=store_data.tags,
                max_attempts=self.settings.slug_max_attempts
            )
        except SlugConflictError as e:
            raise DuplicateResourceError("Store", e.base_slug)

    async def get_store(self, store_id: uuid.UUID) -> Store:
        store = await self.store_repo.get_store(store_id)
        if not store:
            raise StoreNotFoundError(str(store_id))
        return store

    async def get_store_for_edit(self, store_id: uuid.UUID, current_user: User) -> Store:
        store = await self.get_store(store_id)
        self.confirm_owner(store, current_user)
        return store

    async def update_store(
        self,
        store_id: uuid.UUID,
        store_data: StoreCreate,
        photo: Optional[str],
        current_user: User
    ) -> Store:
        """
        Apply an edit after the ownership check. A missing photo keeps the current one.

        Raises:
            StoreNotFoundError: Unknown store
            StoreOwnershipError: Acting user is not the author; nothing is changed
        """
        store = await self.get_store_for_edit(store_id, current_user)

        data = store_data.to_model_data()
        if photo:
            data["photo"] = photo

        try:
            return await self.store_repo.update_store(
                store,
                data,
                tags=store_data.tags,
                max_attempts=self.settings.slug_max_attempts
            )
        except SlugConflictError as e:
            raise DuplicateResourceError("Store", e.base_slug)

    async def get_store_by_slug(self, slug: str) -> Store:
        """Store detail with author and reviews (each with its author)."""
        store = await self.store_repo.get_by_slug(slug, include_author=True, include_reviews=True)
        if not store:
            raise StoreNotFoundError(slug)
        return store

    async def get_stores_page(self, page: int) -> Tuple[List[Store], int, int]:
        """
        Returns:
            Tuple of (stores, total count, number of pages)
        """
        per_page = self.settings.stores_per_page
        stores, count = await self.store_repo.get_page(page, per_page)
        pages = math.ceil(count / per_page)
        return stores, count, pages

    async def get_tags_page(self, tag: Optional[str] = None) -> Tuple[List[Dict[str, Any]], List[Store]]:
        """Tag counts plus the stores carrying ``tag`` (any tag when None)."""
        tags = await self.store_repo.get_tags_list()
        stores = await self.store_repo.get_by_tag(tag)
        return [{"tag": name, "count": count} for name, count in tags], stores

    async def search_stores(self, query: str) -> List[Store]:
        return await self.store_repo.search(query, limit=self.settings.search_limit)

    async def get_stores_near(self, latitude: float, longitude: float) -> List[Store]:
        nearby = await self.store_repo.get_near(
            latitude,
            longitude,
            max_distance_m=self.settings.near_max_distance_m,
            limit=self.settings.near_limit
        )
        return [store for store, _ in nearby]

    async def toggle_heart(self, current_user: User, store_id: uuid.UUID) -> User:
        """
        Heart or unheart a store for the current user.

        Returns:
            The user with the updated heart set loaded
        """
        await self.get_store(store_id)
        await self.user_repo.toggle_heart(current_user.id, store_id)
        return await self.user_repo.get_with_hearts(current_user.id)

    async def has_hearted(self, current_user: User, store_id: uuid.UUID) -> bool:
        user = await self.user_repo.get_with_hearts(current_user.id)
        return any(store.id == store_id for store in user.hearts)

    async def get_hearted_stores(self, current_user: User) -> List[Store]:
        return await self.store_repo.get_hearted_by_user(current_user.id)

    async def get_top_stores(self) -> List[Dict[str, Any]]:
        return await self.store_repo.get_top_stores(
            min_reviews=self.settings.top_stores_min_reviews,
            limit=self.settings.top_stores_limit
        )
