"""
Pydantic schemas for store requests and the store pages.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from storefront.schemas.user import UserResponse
from storefront.schemas.review import ReviewResponse


class StoreCreate(BaseModel):
    """Store form, used for both creation and updates."""

    name: str = Field(
        ...,
        max_length=255,
        description="Store name",
        json_schema_extra={"example": "Coffee Shop"}
    )

    description: Optional[str] = Field(
        None,
        max_length=10000,
        description="Free text description"
    )

    tags: List[str] = Field(
        default_factory=list,
        description="Free-text tags; duplicates are dropped"
    )

    address: str = Field(
        ...,
        max_length=255,
        description="Street address"
    )

    longitude: float = Field(..., ge=-180, le=180)
    latitude: float = Field(..., ge=-90, le=90)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Please enter a store name")
        return v.strip()

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        if not v or not v.strip():
            raise ValueError("You must supply an address!")
        return v.strip()

    @field_validator("description")
    @classmethod
    def clean_description(cls, v):
        if v is None:
            return v
        return v.strip()

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        cleaned = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned

    def to_model_data(self) -> dict:
        """Column values for the store, tags excluded."""
        return {
            "name": self.name,
            "description": self.description,
            "address": self.address,
            "longitude": self.longitude,
            "latitude": self.latitude,
        }


class LocationResponse(BaseModel):
    type: str = "Point"
    coordinates: List[float] = Field(..., description="[longitude, latitude]")
    address: str


class StoreResponse(BaseModel):
    """Store representation; author and reviews appear when requested."""

    id: str
    name: str
    slug: str
    description: Optional[str] = None
    tags: List[str] = []
    location: LocationResponse
    photo: Optional[str] = None
    author_id: str
    created_at: datetime
    author: Optional[UserResponse] = None
    reviews: Optional[List[ReviewResponse]] = None


class StoreMutationResponse(BaseModel):
    message: str
    store: StoreResponse


class StoreFormResponse(BaseModel):
    """Add/edit form view-model."""

    title: str
    store: Optional[StoreResponse] = None


class StoreDetailResponse(BaseModel):
    title: str
    store: StoreResponse
    hearted: Optional[bool] = Field(None, description="Whether the current user hearted the store; null when anonymous")


class StoreListResponse(BaseModel):
    title: str
    stores: List[StoreResponse]


class StorePageResponse(BaseModel):
    """One page of the store feed."""

    title: str
    stores: List[StoreResponse]
    count: int
    page: int
    pages: int
    notice: Optional[str] = None


class TagCount(BaseModel):
    tag: str
    count: int


class TagsPageResponse(BaseModel):
    title: str
    tag: Optional[str] = None
    tags: List[TagCount]
    stores: List[StoreResponse]


class TopStoreResponse(BaseModel):
    id: str
    name: str
    slug: str
    photo: Optional[str] = None
    reviews: List[ReviewResponse]
    averageRating: float


class TopStoresResponse(BaseModel):
    title: str
    stores: List[TopStoreResponse]


class StoreNearResponse(BaseModel):
    """Projection returned by the map API."""

    id: str
    slug: str
    name: str
    description: Optional[str] = None
    location: LocationResponse
    photo: Optional[str] = None
