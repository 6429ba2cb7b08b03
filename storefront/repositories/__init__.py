"""
Repository layer for data access operations.
"""

from storefront.repositories.base import BaseRepository
from storefront.repositories.store import StoreRepository, SlugConflictError
from storefront.repositories.review import ReviewRepository
from storefront.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "StoreRepository",
    "SlugConflictError",
    "ReviewRepository",
    "UserRepository"
]
