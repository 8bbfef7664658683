"""
# User Account Models

Pydantic models for user accounts and the authentication endpoints.

A user authenticates either with a local password (stored only as a bcrypt hash) or
through Google sign-in (`google_id`). Accounts created by registration always carry a
password hash; accounts created by Google sign-in carry only the federated id.

**Normalisation:**
*   **username**: trimmed; 3-50 characters.
*   **email**: lower-cased so uniqueness and login are case-insensitive.
*   **password**: at least 6 characters and at most 72 bytes once UTF-8 encoded.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

USERNAME_MIN_LENGTH: int = 3
USERNAME_MAX_LENGTH: int = 50
PASSWORD_MIN_LENGTH: int = 6
PASSWORD_MAX_BYTES: int = 72  # bcrypt input limit


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserInDB(BaseModel):
    """
    Persisted user record.

    Attributes:
        user_id (str): Unique identifier (`usr_...`).
        username (str): Unique display handle.
        email (str): Unique, lower-cased e-mail address.
        hashed_password (Optional[str]): bcrypt hash; `None` for Google-only accounts.
        google_id (Optional[str]): Google subject id, unique when present.
        avatar (Optional[str]): Avatar URL.
    """

    user_id: str = Field(..., description="Unique user ID")
    username: str = Field(..., description="Unique username")
    email: str = Field(..., description="Lower-cased e-mail address")
    hashed_password: Optional[str] = Field(None, description="bcrypt password hash")
    google_id: Optional[str] = Field(None, description="Google account subject id")
    avatar: Optional[str] = Field(None, description="Avatar URL")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update timestamp")


class RegisterRequest(BaseModel):
    """Request body for `POST /auth/register`."""

    username: str = Field(
        ...,
        min_length=USERNAME_MIN_LENGTH,
        max_length=USERNAME_MAX_LENGTH,
        description="Unique username, at least 3 characters",
        examples=["alice"],
    )
    email: EmailStr = Field(..., description="Valid e-mail address", examples=["alice@example.com"])
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LENGTH, description="Password, 6 characters to 72 bytes", examples=["secret1"]
    )

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password_size(cls, v: str) -> str:
        if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
        return v


class LoginRequest(BaseModel):
    """Request body for `POST /auth/login`."""

    email: EmailStr = Field(..., description="Account e-mail address")
    password: str = Field(..., min_length=1, description="Account password")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return v.lower()


class GoogleLoginRequest(BaseModel):
    """Request body for `POST /auth/google`; `token` is the Google ID token from the client."""

    token: str = Field(..., min_length=1, description="Google ID token")


class UserPublic(BaseModel):
    """The caller-visible view of a user. Never includes credentials."""

    id: str
    username: str
    email: str
    avatar: Optional[str] = None

    @classmethod
    def from_user(cls, user: UserInDB) -> "UserPublic":
        return cls(id=user.user_id, username=user.username, email=user.email, avatar=user.avatar)


class AuthResponse(BaseModel):
    token: str = Field(..., description="Signed bearer token")
    token_type: str = Field(default="bearer")
    user: UserPublic


class MeResponse(BaseModel):
    user: UserPublic
