"""
Pydantic schemas for user accounts and login.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from survey_api.users.models import User, UserRole


class UserCreate(BaseModel):
    """Registration request."""

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(BaseModel):
    """Credential verification request."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Public view of an account. Has no credential fields."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: UserRole
    created_at: datetime


class RefreshRequest(BaseModel):
    """Refresh token presented for rotation or logout."""

    refresh_token: str = Field(..., min_length=1, max_length=256)


class TokenResponse(BaseModel):
    """Issued access token and the refresh token that renews it."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    user: UserResponse


def to_user_response(user: User) -> UserResponse:
    """Map an account row to its public view."""
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        role=UserRole(user.role),
        created_at=user.created_at,
    )
