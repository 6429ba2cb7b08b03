"""
Utility modules for the Storefront Directory.
"""

from .auth import (
    create_access_token,
    create_refresh_token,
    verify_token,
    TokenPayload
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    ConflictError,
    BadRequestError,
    InvalidCredentialsError,
    TokenExpiredError,
    InvalidTokenError,
    LoginRequiredError,
    InvalidResetTokenError,
    PasswordMismatchError,
    StoreNotFoundError,
    StoreOwnershipError,
    DuplicateResourceError,
    UnsupportedFileTypeError,
    FileSizeExceededError
)

from .slug import slugify
from .geo import haversine_distance, bounding_box

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "create_access_token",
    "create_refresh_token",
    "verify_token",
    "TokenPayload",

    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "BadRequestError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "InvalidTokenError",
    "LoginRequiredError",
    "InvalidResetTokenError",
    "PasswordMismatchError",
    "StoreNotFoundError",
    "StoreOwnershipError",
    "DuplicateResourceError",
    "UnsupportedFileTypeError",
    "FileSizeExceededError",

    # Helpers
    "slugify",
    "haversine_distance",
    "bounding_box",
]
