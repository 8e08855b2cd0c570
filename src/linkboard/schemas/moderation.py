"""Moderation-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from linkboard.models import ModeratorRole


class BanRequest(BaseModel):
    """Schema for banning a user from a subreddit."""

    user_id: int
    reason: str | None = Field(None, max_length=500, description="Required; explains the ban")


class BanResponse(BaseModel):
    """Community ban returned by the API."""

    id: int
    subreddit_id: int
    user_id: int
    banned_by_id: int | None
    reason: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ModeratorAdd(BaseModel):
    """Schema for granting a moderator role by username."""

    username: str
    role: ModeratorRole | None = None
    permissions: list[str] | None = Field(
        None, description="Permission tokens; admins may omit them"
    )


class ModeratorUpdate(BaseModel):
    """Replacement permission set, and optionally role, for a moderator."""

    permissions: list[str]
    role: ModeratorRole | None = None


class ModeratorAddResponse(BaseModel):
    user_id: int
    username: str
    role: str
    permissions: list[str]
    created_at: datetime
    already_exists: bool
