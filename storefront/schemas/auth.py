"""
Pydantic schemas for login, token responses and the password reset flow.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from storefront.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        json_schema_extra={"example": "jane@example.com"}
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="User's password"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()


class LoginResponse(BaseModel):
    """Tokens returned whenever a user gets logged in."""

    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token expiration time in seconds")
    message: Optional[str] = None


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., min_length=1, description="Refresh token issued at login")


class AccessTokenResponse(BaseModel):
    """Fresh access token for a still-valid refresh token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token expiration time in seconds")


class MessageResponse(BaseModel):
    """Plain notice, the counterpart of a flash message."""

    message: str


class FormResponse(BaseModel):
    """View-model of a page that only shows a form."""

    title: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()


class ResetPasswordRequest(BaseModel):
    """
    New password and its confirmation.
    Equality is checked by the reset flow itself, before any token lookup.
    """

    model_config = ConfigDict(populate_by_name=True)

    password: str = Field(..., min_length=1, max_length=128)
    password_confirm: str = Field(..., alias="password-confirm", max_length=128)
