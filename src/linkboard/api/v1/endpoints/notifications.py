"""Notification endpoints for the Linkboard API."""

from fastapi import APIRouter, Query

from linkboard.core.errors import NotFoundError, PermissionDeniedError
from linkboard.core.settings import settings
from linkboard.models import Notification
from linkboard.schemas.notification import NotificationResponse

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationResponse])
async def list_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int | None = Query(None, ge=1, le=100),
) -> list[Notification]:
    """Return the caller's most recent notifications."""
    return (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit or settings.notifications_page_size)
        .all()
    )


@router.patch("/{notification_id}", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    if notification.user_id != current_user.id:
        raise PermissionDeniedError("You cannot modify another user's notification")
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification
