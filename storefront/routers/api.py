"""
JSON API used by the front-end widgets: search box, map and heart button.
"""

from fastapi import APIRouter, Depends, Query
from typing import List
from uuid import UUID

from storefront.models.user import User
from storefront.services.store import StoreService
from storefront.schemas.store import StoreResponse, StoreNearResponse
from storefront.schemas.user import UserResponse
from storefront.utils.dependencies import get_current_user, get_store_service


router = APIRouter(prefix="/api", tags=["API"])


@router.get(
    "/v1/search",
    response_model=List[StoreResponse],
    summary="Search stores",
    description="Full-text search over name and description, best matches first"
)
async def search_stores(
    q: str = Query("", description="Search text"),
    store_service: StoreService = Depends(get_store_service)
) -> List[StoreResponse]:
    stores = await store_service.search_stores(q)
    return [StoreResponse.model_validate(store.to_dict()) for store in stores]


@router.get(
    "/v1/stores/near",
    response_model=List[StoreNearResponse],
    summary="Stores near a point",
    description="Stores within 10 km, nearest first"
)
async def stores_near(
    lng: float = Query(..., ge=-180, le=180, description="Longitude"),
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    store_service: StoreService = Depends(get_store_service)
) -> List[StoreNearResponse]:
    stores = await store_service.get_stores_near(latitude=lat, longitude=lng)
    return [
        StoreNearResponse(
            id=str(store.id),
            slug=store.slug,
            name=store.name,
            description=store.description,
            location=store.location,
            photo=store.photo
        )
        for store in stores
    ]


@router.post("/stores/{store_id}/heart", response_model=UserResponse, summary="Toggle heart")
async def toggle_heart(
    store_id: UUID,
    current_user: User = Depends(get_current_user),
    store_service: StoreService = Depends(get_store_service)
) -> UserResponse:
    """Returns the user with the updated heart list."""
    user = await store_service.toggle_heart(current_user, store_id)
    return UserResponse.model_validate(user.to_dict())
