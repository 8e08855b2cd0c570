"""Subreddit-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SubredditCreate(BaseModel):
    """Schema for creating a new subreddit."""

    name: str = Field(..., min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_]+$")
    description: str | None = Field(None, max_length=2000)
    rules: str | None = None
    theme: str | None = None


class SubredditUpdate(BaseModel):
    """Partial update of a subreddit's settings."""

    description: str | None = Field(None, max_length=2000)
    rules: str | None = None
    theme: str | None = None


class SubredditResponse(BaseModel):
    """Schema for subreddit information returned by the API."""

    id: int
    name: str
    description: str | None
    rules: str | None
    theme: str | None
    created_by_id: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ModeratorResponse(BaseModel):
    """A moderator row together with the moderator's username."""

    user_id: int
    username: str
    role: str
    permissions: list[str]
    created_at: datetime


class SubredditDetailResponse(SubredditResponse):
    """Subreddit with the caller's relationship and member counts."""

    subscriber_count: int
    post_count: int
    is_subscribed: bool
    is_moderator: bool
    moderators: list[ModeratorResponse]


class SubscriberResponse(BaseModel):
    """A subscriber as seen by the subreddit's moderators."""

    user_id: int
    username: str
    display_name: str | None
    subscribed_at: datetime
