"""
Review repository. Reviews read through here always carry their author.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from storefront.repositories.base import BaseRepository
from storefront.models.review import Review
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)


class ReviewRepository(BaseRepository[Review]):

    def __init__(self, db: AsyncSession):
        super().__init__(Review, db)

    async def create_review(self, review_data: Dict[str, Any]) -> Review:
        """Create a review and return it with the author loaded."""
        review = await self.create(review_data)
        logger.info(f"Created review {review.id} on store {review.store_id}")
        return await self.get_by_id(review.id, options=[selectinload(Review.author)])

