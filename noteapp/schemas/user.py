"""Pydantic schemas for user and authentication."""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator


class OtpRequest(BaseModel):
    """Schema for requesting a one-time passcode.

    ``name`` and ``dateOfBirth`` are only required for signup
    (``isSignin`` false); the service enforces that.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr = Field(..., description="User email address")
    name: Optional[str] = Field(default=None, max_length=255, description="Display name (signup only)")
    date_of_birth: Optional[date] = Field(
        default=None,
        alias="dateOfBirth",
        description="Date of birth (signup only)",
    )
    is_signin: bool = Field(
        default=False,
        alias="isSignin",
        description="True to sign in to an existing account, false to sign up",
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("name")
    @classmethod
    def blank_name_is_missing(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class OtpVerify(BaseModel):
    """Schema for verifying a one-time passcode."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr = Field(..., description="User email address")
    otp: str = Field(..., min_length=1, max_length=32, description="Passcode received by email")
    keep_logged_in: bool = Field(
        default=False,
        alias="keepLoggedIn",
        description="Issue a long-lived session token",
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("otp")
    @classmethod
    def strip_otp(cls, value: str) -> str:
        return value.strip()


class UserResponse(BaseModel):
    """Public projection of a user."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID = Field(..., description="Unique user identifier")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(default=None, description="User email address")
    date_of_birth: Optional[date] = Field(
        default=None,
        alias="dateOfBirth",
        description="Date of birth, present for passcode signups",
    )


class MessageResponse(BaseModel):
    """Schema for plain confirmation responses."""

    message: str


class AuthResponse(BaseModel):
    """Schema returned after a successful passcode verification."""

    message: str = Field(..., description="Human readable outcome")
    token: str = Field(..., description="JWT bearer token")
    user: UserResponse


class TokenPayload(BaseModel):
    """Schema for JWT token payload."""

    sub: Optional[str] = Field(default=None, description="Subject (user ID)")
    exp: Optional[int] = Field(default=None, description="Expiration timestamp")


class ExternalProfile(BaseModel):
    """Identity verified by an external OAuth provider."""

    provider_id: str = Field(..., min_length=1, description="Stable provider account ID")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(default=None, description="First email claim, if shared")
    email_verified: bool = Field(default=False, description="Provider confirmed the address belongs to the account")
