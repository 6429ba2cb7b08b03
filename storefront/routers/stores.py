"""
Store pages: the paginated feed, add/edit forms, store detail, tags, map, hearts and top stores.
"""

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status
from fastapi.responses import RedirectResponse
from typing import List, Optional, Union
from uuid import UUID

from storefront.models.user import User
from storefront.services.store import StoreService
from storefront.services.photo import PhotoService
from storefront.schemas.store import (
    StoreCreate,
    StoreResponse,
    StoreMutationResponse,
    StoreFormResponse,
    StoreDetailResponse,
    StoreListResponse,
    StorePageResponse,
    TagCount,
    TagsPageResponse,
    TopStoreResponse,
    TopStoresResponse
)
from storefront.schemas.auth import FormResponse
from storefront.utils.dependencies import (
    get_current_user,
    get_optional_current_user,
    get_store_service,
    get_photo_service
)


router = APIRouter(tags=["Stores"])


class StoreForm:
    """Multipart store form shared by the add and edit endpoints."""

    def __init__(
        self,
        name: str = Form(..., description="Store name"),
        description: Optional[str] = Form(None),
        tags: List[str] = Form([], description="Repeated field, one tag each"),
        address: str = Form(..., description="Street address"),
        lng: float = Form(..., description="Longitude"),
        lat: float = Form(..., description="Latitude"),
        photo: Optional[UploadFile] = File(None, description="Store photo (image/* only)")
    ):
        self.name = name
        self.description = description
        self.tags = tags
        self.address = address
        self.lng = lng
        self.lat = lat
        self.photo = photo

    def to_store_create(self) -> StoreCreate:
        return StoreCreate(
            name=self.name,
            description=self.description,
            tags=self.tags,
            address=self.address,
            longitude=self.lng,
            latitude=self.lat
        )


def _store_list(stores) -> List[StoreResponse]:
    return [StoreResponse.model_validate(store.to_dict()) for store in stores]


async def _feed_page(page: int, requested: Optional[int], store_service: StoreService):
    stores, count, pages = await store_service.get_stores_page(page)

    if not stores and page > 1:
        target = max(pages, 1)
        return RedirectResponse(
            url=f"/stores/page/{target}?requested={page}",
            status_code=status.HTTP_302_FOUND
        )

    notice = None
    if requested is not None and requested != page:
        notice = f"You asked for page {requested}. But that doesn't exist, so you were put on page {page}."

    return StorePageResponse(
        title="Stores",
        stores=_store_list(stores),
        count=count,
        page=page,
        pages=pages,
        notice=notice
    )


@router.get("/", response_model=StorePageResponse, summary="Store feed")
async def home(store_service: StoreService = Depends(get_store_service)):
    return await _feed_page(1, None, store_service)


@router.get("/stores", response_model=StorePageResponse, summary="Store feed")
async def list_stores(store_service: StoreService = Depends(get_store_service)):
    return await _feed_page(1, None, store_service)


@router.get(
    "/stores/page/{page}",
    response_model=StorePageResponse,
    summary="Store feed page",
    description="Out-of-range pages redirect to the last page"
)
async def list_stores_page(
    page: int = Path(..., ge=1, description="Page number (starts from 1)"),
    requested: Optional[int] = Query(None, description="Page originally asked for"),
    store_service: StoreService = Depends(get_store_service)
) -> Union[StorePageResponse, RedirectResponse]:
    return await _feed_page(page, requested, store_service)


@router.get("/add", response_model=StoreFormResponse, summary="Add store form")
async def add_store_form(current_user: User = Depends(get_current_user)) -> StoreFormResponse:
    return StoreFormResponse(title="Add Store")


@router.post(
    "/add",
    response_model=StoreMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create store"
)
async def create_store(
    form: StoreForm = Depends(),
    current_user: User = Depends(get_current_user),
    store_service: StoreService = Depends(get_store_service),
    photo_service: PhotoService = Depends(get_photo_service)
) -> StoreMutationResponse:
    """
    Raises:
        UnsupportedFileTypeError: Photo is not an image; nothing is stored
        DuplicateResourceError: No free slug could be assigned
    """
    store_data = form.to_store_create()
    photo = await photo_service.save(form.photo)

    try:
        store = await store_service.create_store(store_data, photo, current_user)
    except Exception:
        photo_service.discard(photo)
        raise
    return StoreMutationResponse(
        message=f"Successfully Created {store.name}. Care to leave a review?",
        store=StoreResponse.model_validate(store.to_dict())
    )


@router.post("/add/{store_id}", response_model=StoreMutationResponse, summary="Update store")
async def update_store(
    store_id: UUID,
    form: StoreForm = Depends(),
    current_user: User = Depends(get_current_user),
    store_service: StoreService = Depends(get_store_service),
    photo_service: PhotoService = Depends(get_photo_service)
) -> StoreMutationResponse:
    """
    Raises:
        StoreNotFoundError: Unknown store
        StoreOwnershipError: Current user is not the author
    """
    store_data = form.to_store_create()
    await store_service.get_store_for_edit(store_id, current_user)
    photo = await photo_service.save(form.photo)

    try:
        store = await store_service.update_store(store_id, store_data, photo, current_user)
    except Exception:
        photo_service.discard(photo)
        raise
    return StoreMutationResponse(
        message=f"Successfully updated {store.name}.",
        store=StoreResponse.model_validate(store.to_dict())
    )


@router.get("/stores/{store_id}/edit", response_model=StoreFormResponse, summary="Edit store form")
async def edit_store_form(
    store_id: UUID,
    current_user: User = Depends(get_current_user),
    store_service: StoreService = Depends(get_store_service)
) -> StoreFormResponse:
    store = await store_service.get_store_for_edit(store_id, current_user)
    return StoreFormResponse(
        title=f"Edit {store.name}",
        store=StoreResponse.model_validate(store.to_dict())
    )


@router.get("/store/{slug}", response_model=StoreDetailResponse, summary="Store detail")
async def get_store_by_slug(
    slug: str,
    current_user: Optional[User] = Depends(get_optional_current_user),
    store_service: StoreService = Depends(get_store_service)
) -> StoreDetailResponse:
    store = await store_service.get_store_by_slug(slug)

    hearted = None
    if current_user is not None:
        hearted = await store_service.has_hearted(current_user, store.id)

    return StoreDetailResponse(
        title=store.name,
        store=StoreResponse.model_validate(store.to_dict(include_author=True, include_reviews=True)),
        hearted=hearted
    )


async def _tags_page(tag: Optional[str], store_service: StoreService) -> TagsPageResponse:
    tags, stores = await store_service.get_tags_page(tag)
    return TagsPageResponse(
        title="Tags",
        tag=tag,
        tags=[TagCount(**entry) for entry in tags],
        stores=_store_list(stores)
    )


@router.get("/tags", response_model=TagsPageResponse, summary="Tag rollup")
async def list_tags(store_service: StoreService = Depends(get_store_service)) -> TagsPageResponse:
    return await _tags_page(None, store_service)


@router.get("/tags/{tag}", response_model=TagsPageResponse, summary="Stores by tag")
async def list_stores_by_tag(
    tag: str,
    store_service: StoreService = Depends(get_store_service)
) -> TagsPageResponse:
    return await _tags_page(tag, store_service)


@router.get("/map", response_model=FormResponse, summary="Map page")
async def map_page() -> FormResponse:
    return FormResponse(title="Map")


@router.get("/hearts", response_model=StoreListResponse, summary="Hearted stores")
async def hearted_stores(
    current_user: User = Depends(get_current_user),
    store_service: StoreService = Depends(get_store_service)
) -> StoreListResponse:
    stores = await store_service.get_hearted_stores(current_user)
    return StoreListResponse(title="Hearted Stores", stores=_store_list(stores))


@router.get("/top", response_model=TopStoresResponse, summary="Top stores")
async def top_stores(store_service: StoreService = Depends(get_store_service)) -> TopStoresResponse:
    stores = await store_service.get_top_stores()
    return TopStoresResponse(
        title="Top Stores!",
        stores=[TopStoreResponse.model_validate(entry) for entry in stores]
    )
