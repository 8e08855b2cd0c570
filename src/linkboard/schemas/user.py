"""User and authentication Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from linkboard.core.security import BCRYPT_MAX_PASSWORD_BYTES
from linkboard.core.settings import settings


class RegisterRequest(BaseModel):
    """Schema for account registration."""

    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_]+$")
    email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., description="Plain password; hashed before storage")
    display_name: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=500)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Enforce the configured minimum length and bcrypt's byte limit."""
        if len(v) < settings.password_min_length:
            raise ValueError(
                f"Password must be at least {settings.password_min_length} characters"
            )
        if len(v.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
        return v


class LoginRequest(BaseModel):
    """Schema for login submissions; ``username`` may also be an email."""

    username: str
    password: str


class TokenResponse(BaseModel):
    """Response returned after successful registration or login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")
    user: "UserResponse"


class UserResponse(BaseModel):
    """Public view of an account."""

    id: int
    username: str
    display_name: str | None
    bio: str | None
    avatar_url: str | None
    karma: int
    is_admin: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MeResponse(UserResponse):
    """The authenticated user's own account, with counts."""

    email: str
    display_karma: int
    follower_count: int
    following_count: int
    post_count: int


class ProfileResponse(UserResponse):
    """Profile view of another user."""

    display_karma: int = Field(..., description="Live vote sum over the user's content")
    follower_count: int
    following_count: int
    post_count: int
    comment_count: int
    is_following: bool


class ProfileUpdateRequest(BaseModel):
    """Schema for updating the caller's profile."""

    display_name: str | None = Field(None, min_length=1, max_length=100)
    bio: str | None = Field(None, max_length=500)
    avatar_url: str | None = None

    @field_validator("avatar_url")
    @classmethod
    def validate_avatar_url(cls, v: str | None) -> str | None:
        """Only accept http(s) URLs pointing at the media host."""
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            raise ValueError("Avatar URL must be an http(s) URL")
        return v


class AccountBanRequest(BaseModel):
    """Admin request to ban an account platform-wide."""

    reason: str | None = Field(None, max_length=500)
    duration_days: float | None = Field(
        None, gt=0, description="Ban length in days; omit for a permanent ban"
    )


class AccountBanResponse(BaseModel):
    """Ban state of an account."""

    id: int
    username: str
    is_banned: bool
    ban_reason: str | None
    ban_expires_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


TokenResponse.model_rebuild()
