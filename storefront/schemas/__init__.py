"""
Pydantic schemas for request/response validation.
"""

from .auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    FormResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    RefreshTokenRequest,
    AccessTokenResponse
)

from .user import (
    UserBase,
    UserRegister,
    AccountUpdate,
    UserResponse,
    AccountResponse
)

from .review import (
    ReviewCreate,
    ReviewResponse,
    ReviewCreatedResponse
)

from .store import (
    StoreCreate,
    LocationResponse,
    StoreResponse,
    StoreMutationResponse,
    StoreFormResponse,
    StoreDetailResponse,
    StoreListResponse,
    StorePageResponse,
    TagCount,
    TagsPageResponse,
    TopStoreResponse,
    TopStoresResponse,
    StoreNearResponse
)
