"""Post and comment Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MediaItem(BaseModel):
    """Descriptor of an asset already uploaded to the media host.

    Items are validated one by one by the post endpoints so that a single bad
    item is reported instead of rejecting the whole post.
    """

    type: str = Field(..., description="image or video")
    url: str


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=300)
    content: str | None = Field(None, max_length=40000)
    subreddit_id: int
    media: list[MediaItem] = Field(default_factory=list)


class PostUpdate(BaseModel):
    """Author edit of a post."""

    title: str | None = Field(None, min_length=1, max_length=300)
    content: str | None = Field(None, max_length=40000)


class PostDelete(BaseModel):
    """Optional body for post deletion."""

    reason: str | None = Field(None, max_length=500)


class PostMediaResponse(BaseModel):
    """Media attached to a post."""

    id: int
    media_type: str
    url: str

    model_config = ConfigDict(from_attributes=True)


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    title: str
    content: str | None
    author_id: int
    subreddit_id: int
    score: int
    created_at: datetime
    updated_at: datetime | None
    media: list[PostMediaResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class MediaError(BaseModel):
    """Rejection of a single media item, by position in the request."""

    index: int
    detail: str


class PostCreateResponse(PostResponse):
    """Created post plus any media items that were refused."""

    media_errors: list[MediaError] = Field(default_factory=list)


class CommentCreate(BaseModel):
    """Schema for commenting on a post."""

    content: str = Field(..., min_length=1, max_length=10000)
    parent_id: int | None = Field(None, description="Comment being replied to")


class CommentUpdate(BaseModel):
    """Author edit of a comment."""

    content: str = Field(..., min_length=1, max_length=10000)


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    id: int
    content: str
    author_id: int
    post_id: int
    parent_id: int | None
    score: int
    created_at: datetime
    updated_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


