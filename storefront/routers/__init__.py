"""
Route handlers for the Storefront Directory.
"""

from .auth import router as auth_router
from .stores import router as stores_router
from .reviews import router as reviews_router
from .api import router as api_router

__all__ = ["auth_router", "stores_router", "reviews_router", "api_router"]
