"""
Custom exception classes for the Storefront Directory.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class ValidationError(APIException):
    """Validation error exception."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class UnauthorizedError(APIException):
    """Authentication required exception."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    """Access forbidden exception."""

    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(APIException):
    """Resource conflict exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT"
        )


class BadRequestError(APIException):
    """Bad request exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="BAD_REQUEST"
        )


# Authentication specific exceptions
class InvalidCredentialsError(UnauthorizedError):
    """Invalid login credentials exception."""

    def __init__(self, detail: str = "Failed Login!"):
        super().__init__(detail)


class TokenExpiredError(UnauthorizedError):
    """JWT token expired exception."""

    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail)


class InvalidTokenError(UnauthorizedError):
    """Invalid JWT token exception."""

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class LoginRequiredError(UnauthorizedError):
    """Raised when an anonymous user hits a members-only route."""

    def __init__(self, detail: str = "You must be logged in to do that!"):
        super().__init__(detail)


# Password reset exceptions
class InvalidResetTokenError(BadRequestError):
    """Unknown, consumed and expired reset tokens all look the same."""

    def __init__(self, detail: str = "Password reset is invalid or has expired"):
        super().__init__(detail)
        self.error_code = "INVALID_RESET_TOKEN"


class PasswordMismatchError(BadRequestError):
    """The password and its confirmation differ."""

    def __init__(self, detail: str = "Passwords did not match"):
        super().__init__(detail)
        self.error_code = "PASSWORD_MISMATCH"


# Store specific exceptions
class StoreNotFoundError(NotFoundError):
    """Store not found exception."""

    def __init__(self, identifier: str):
        super().__init__("Store", identifier)


class StoreOwnershipError(ForbiddenError):
    """Store ownership violation exception."""

    def __init__(self, detail: str = "You must own a store in order to edit it!"):
        super().__init__(detail)


class DuplicateResourceError(ConflictError):
    """Duplicate resource exception."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


# File upload exceptions
class UnsupportedFileTypeError(BadRequestError):
    """Unsupported file type exception."""

    def __init__(self, file_type: Optional[str]):
        super().__init__(f"That filetype isn't allowed: '{file_type or 'unknown'}'")
        self.error_code = "UNSUPPORTED_FILE_TYPE"


class FileSizeExceededError(BadRequestError):
    """File size exceeded exception."""

    def __init__(self, size: int, max_size: int):
        super().__init__(f"File size {size} bytes exceeds maximum allowed size {max_size} bytes")
