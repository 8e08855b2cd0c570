"""Private message Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Schema for sending a private message."""

    receiver_id: int
    content: str = Field(..., min_length=1, max_length=10000)
    reply_to_id: int | None = None


class MessageResponse(BaseModel):
    """Schema for private message information returned by the API."""

    id: int
    sender_id: int
    receiver_id: int
    content: str
    reply_to_id: int | None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationResponse(BaseModel):
    """Latest message exchanged with one partner, plus unread count."""

    partner_id: int
    partner_username: str
    last_message: MessageResponse
    unread_count: int


class MarkReadResponse(BaseModel):
    updated: int
