"""
Review service.
"""

from sqlalchemy.ext.asyncio import AsyncSession
import uuid
import logging

from storefront.models.review import Review
from storefront.models.user import User
from storefront.repositories.review import ReviewRepository
from storefront.repositories.store import StoreRepository
from storefront.schemas.review import ReviewCreate
from storefront.utils.exceptions import StoreNotFoundError

logger = logging.getLogger(__name__)


class ReviewService:

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.review_repo = ReviewRepository(db_session)
        self.store_repo = StoreRepository(db_session)

    async def add_review(self, store_id: uuid.UUID, review_data: ReviewCreate, current_user: User) -> Review:
        """
        Record a review by ``current_user`` on a store.

        Raises:
            StoreNotFoundError: If the store does not exist
        """
        store = await self.store_repo.get_store(store_id)
        if not store:
            raise StoreNotFoundError(str(store_id))

        return await self.review_repo.create_review(
            {
                "author_id": current_user.id,
                "store_id": store_id,
                "rating": review_data.rating,
                "content": review_data.content,
            }
        )
