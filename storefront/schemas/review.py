"""
Pydantic schemas for reviews.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from storefront.models.review import MIN_RATING, MAX_RATING
from storefront.schemas.user import UserResponse


class ReviewCreate(BaseModel):
    """Review form."""

    rating: int = Field(
        ...,
        ge=MIN_RATING,
        le=MAX_RATING,
        description="Rating from 0 to 5"
    )
    content: str = Field(
        ...,
        max_length=5000,
        description="Review text"
    )

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        if not v or not v.strip():
            raise ValueError("Your review must have text")
        return v.strip()


class ReviewResponse(BaseModel):
    id: str
    author_id: str
    store_id: str
    rating: int
    content: str
    created_at: datetime
    author: Optional[UserResponse] = None


class ReviewCreatedResponse(BaseModel):
    message: str
    review: ReviewResponse
