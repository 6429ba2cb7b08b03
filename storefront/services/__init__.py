"""
Service layer for business logic implementation.
Contains services for accounts, stores, reviews, mail, photos and error handling.
"""

from .auth import AuthService
from .store import StoreService
from .review import ReviewService
from .mail import MailService
from .photo import PhotoService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "StoreService",
    "ReviewService",
    "MailService",
    "PhotoService",
    "ErrorHandlerService"
]
