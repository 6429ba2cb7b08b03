"""
Database models for the Storefront Directory.
Includes User, Store, StoreTag and Review models with relationships.
"""

from storefront.models.user import User, hearts_table
from storefront.models.store import Store, StoreTag
from storefront.models.review import Review

__all__ = [
    "User",
    "hearts_table",
    "Store",
    "StoreTag",
    "Review",
]
