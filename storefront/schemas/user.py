"""
Pydantic schemas for user registration, profile updates and responses.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime


class UserBase(BaseModel):
    """Fields shared by registration and profile edits."""

    name: str = Field(
        ...,
        max_length=255,
        description="Display name",
        json_schema_extra={"example": "Jane Doe"}
    )

    email: EmailStr = Field(
        ...,
        description="User's email address",
        json_schema_extra={"example": "jane@example.com"}
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("You must supply a name!")
        return v.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class UserRegister(UserBase):
    """Registration form: both password fields must be present and equal."""

    model_config = ConfigDict(populate_by_name=True)

    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Password can not be empty"
    )

    password_confirm: str = Field(
        ...,
        alias="password-confirm",
        min_length=1,
        max_length=128,
        description="Must equal password"
    )

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Oops! Your passwords do not match")
        return self


class AccountUpdate(UserBase):
    """Profile edit: name and email only."""


class UserResponse(BaseModel):
    """Public user representation."""

    id: str
    email: str
    name: str
    created_at: datetime
    hearts: Optional[List[str]] = Field(
        None,
        description="IDs of hearted stores, present when loaded"
    )


class AccountResponse(BaseModel):
    """Account page view-model."""

    title: str
    user: UserResponse
    message: Optional[str] = None
