"""Notification-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    """Schema for notification information returned by the API and live push."""

    id: int
    user_id: int
    type: str
    content: str
    source_id: int | None
    source_type: str | None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
