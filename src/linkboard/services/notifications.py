"""Notification persistence and live fan-out."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from linkboard.core.settings import settings
from linkboard.models import Notification
from linkboard.schemas.notification import NotificationResponse
from linkboard.services.live import ConnectionRegistry

logger = logging.getLogger(__name__)

NEW_NOTIFICATION_EVENT = "new_notification"


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON-ready payload pushed to clients and returned by the API."""
    return NotificationResponse.model_validate(notification).model_dump(mode="json")


class NotificationDispatcher:
    """Creates notifications and pushes them to connected recipients.

    Callers commit their own work before notifying. A failure here, whether
    storing the row or pushing it, is logged and swallowed so it can never
    undo or fail the action that triggered it.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry

    async def notify(
        self,
        db: Session,
        *,
        actor_id: int,
        recipient_id: int,
        type: str,
        content: str,
        source_id: int | None = None,
        source_type: str | None = None,
        event: str = NEW_NOTIFICATION_EVENT,
        extra: dict[str, Any] | None = None,
    ) -> Notification | None:
        """Notify ``recipient_id`` about an action performed by ``actor_id``.

        Args:
            db: Database session; the notification is committed on it.
            actor_id: User who caused the event. Self-actions never notify.
            recipient_id: User receiving the notification.
            type: Notification type (vote, comment, follow, message, post).
            content: Human-readable text.
            source_id: Identifier of the related entity.
            source_type: Kind of the related entity.
            event: Live event name used for the push.
            extra: Additional payload fields sent alongside the notification.

        Returns:
            The persisted notification, or None when nothing was stored.
        """
        if recipient_id == actor_id:
            return None

        notification = Notification(
            user_id=recipient_id,
            type=type,
            content=content,
            source_id=source_id,
            source_type=source_type,
        )
        try:
            db.add(notification)
            db.commit()
            db.refresh(notification)
        except SQLAlchemyError:
            db.rollback()
            logger.exception(
                "Failed to store %s notification for user %s", type, recipient_id
            )
            return None

        payload: dict[str, Any] = serialize_notification(notification)
        if extra:
            payload = {**extra, "notification": payload}
        await self._push(recipient_id, event, payload)
        return notification

    async def notify_many(
        self,
        db: Session,
        *,
        actor_id: int,
        recipient_ids: Iterable[int],
        type: str,
        content: str,
        source_id: int | None = None,
        source_type: str | None = None,
    ) -> list[Notification]:
        """Notify each distinct recipient once, skipping the actor."""
        created: list[Notification] = []
        for recipient_id in sorted(set(recipient_ids)):
            notification = await self.notify(
                db,
                actor_id=actor_id,
                recipient_id=recipient_id,
                type=type,
                content=content,
                source_id=source_id,
                source_type=source_type,
            )
            if notification is not None:
                created.append(notification)
        return created

    async def _push(self, recipient_id: int, event: str, payload: dict[str, Any]) -> None:
        try:
            delivered = await asyncio.wait_for(
                self.registry.push_to_user(recipient_id, event, payload),
                timeout=settings.live_push_timeout,
            )
        except TimeoutError:
            logger.warning(
                "Live push of %s to user %s timed out after %ss",
                event, recipient_id, settings.live_push_timeout,
            )
            return
        except Exception as exc:
            logger.warning(
                "Live push of %s to user %s failed: %s", event, recipient_id, exc
            )
            return
        if delivered:
            logger.debug("Pushed %s to user %s", event, recipient_id)
