"""
Review endpoints.
"""

from fastapi import APIRouter, Depends, status
from uuid import UUID

from storefront.models.user import User
from storefront.services.review import ReviewService
from storefront.schemas.review import ReviewCreate, ReviewResponse, ReviewCreatedResponse
from storefront.utils.dependencies import get_current_user, get_review_service


router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post(
    "/{store_id}",
    response_model=ReviewCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review a store"
)
async def add_review(
    store_id: UUID,
    review_data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewCreatedResponse:
    """
    Raises:
        StoreNotFoundError: Unknown store
    """
    review = await review_service.add_review(store_id, review_data, current_user)
    return ReviewCreatedResponse(
        message="Review Saved!",
        review=ReviewResponse.model_validate(review.to_dict(include_author=True))
    )
