"""Private message endpoints for the Linkboard API."""

from fastapi import APIRouter, status
from sqlalchemy import and_, or_

from linkboard.core.errors import NotFoundError, ValidationError
from linkboard.models import PrivateMessage, User
from linkboard.schemas.message import (
    ConversationResponse,
    MarkReadResponse,
    MessageCreate,
    MessageResponse,
)
from linkboard.services.user_service import get_user_or_404

from ..dependencies import CurrentUserDep, DispatcherDep, SessionDep

router = APIRouter(prefix="/messages", tags=["messages"])

NEW_MESSAGE_EVENT = "new_message"


@router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    dispatcher: DispatcherDep,
) -> PrivateMessage:
    """Send a private message.

    The receiver gets a ``message`` notification, and if connected a
    ``new_message`` push carrying both the message and the notification.
    """
    if payload.receiver_id == current_user.id:
        raise ValidationError("You cannot message yourself")
    get_user_or_404(db, payload.receiver_id)
    if payload.reply_to_id is not None and db.get(PrivateMessage, payload.reply_to_id) is None:
        raise NotFoundError("Message being replied to not found")

    message = PrivateMessage(
        sender_id=current_user.id,
        receiver_id=payload.receiver_id,
        content=payload.content,
        reply_to_id=payload.reply_to_id,
    )
    db.add(message)
    db.commit()
    db.refresh(message)

    await dispatcher.notify(
        db,
        actor_id=current_user.id,
        recipient_id=message.receiver_id,
        type="message",
        content=f"New message from {current_user.username}",
        source_id=message.id,
        source_type="message",
        event=NEW_MESSAGE_EVENT,
        extra={"message": MessageResponse.model_validate(message).model_dump(mode="json")},
    )
    return message


@router.get("/", response_model=list[ConversationResponse])
async def list_conversations(current_user: CurrentUserDep, db: SessionDep) -> list[dict[str, object]]:
    """Return one entry per conversation partner, most recently active first."""
    messages = (
        db.query(PrivateMessage)
        .filter(or_(
            PrivateMessage.sender_id == current_user.id,
            PrivateMessage.receiver_id == current_user.id,
        ))
        .order_by(PrivateMessage.created_at.desc(), PrivateMessage.id.desc())
        .all()
    )

    conversations: dict[int, dict[str, object]] = {}
    for message in messages:
        partner_id = (
            message.receiver_id if message.sender_id == current_user.id else message.sender_id
        )
        entry = conversations.get(partner_id)
        if entry is None:
            entry = {"partner_id": partner_id, "last_message": message, "unread_count": 0}
            conversations[partner_id] = entry
        if message.receiver_id == current_user.id and not message.is_read:
            entry["unread_count"] += 1

    partners = {
        user.id: user.username
        for user in db.query(User).filter(User.id.in_(conversations.keys())).all()
    }
    for partner_id, entry in conversations.items():
        entry["partner_username"] = partners.get(partner_id, "")
    return list(conversations.values())


@router.get("/{user_id}", response_model=list[MessageResponse])
async def get_thread(user_id: int, current_user: CurrentUserDep, db: SessionDep) -> list[PrivateMessage]:
    """Return the messages exchanged with ``user_id``, oldest first."""
    return (
        db.query(PrivateMessage)
        .filter(or_(
            and_(PrivateMessage.sender_id == current_user.id, PrivateMessage.receiver_id == user_id),
            and_(PrivateMessage.sender_id == user_id, PrivateMessage.receiver_id == current_user.id),
        ))
        .order_by(PrivateMessage.created_at.asc(), PrivateMessage.id.asc())
        .all()
    )


@router.post("/{user_id}/read", response_model=MarkReadResponse)
async def mark_thread_read(user_id: int, current_user: CurrentUserDep, db: SessionDep) -> dict[str, int]:
    """Mark every unread message from ``user_id`` to the caller as read."""
    updated = db.query(PrivateMessage).filter(
        PrivateMessage.sender_id == user_id,
        PrivateMessage.receiver_id == current_user.id,
        PrivateMessage.is_read.is_(False),
    ).update({PrivateMessage.is_read: True}, synchronize_session="fetch")
    db.commit()
    return {"updated": updated}
