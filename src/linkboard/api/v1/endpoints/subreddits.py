# src/linkboard/api/v1/endpoints/subreddits.py
"""Subreddit endpoints: settings, subscriptions and subscriber management."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Response, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linkboard.core.errors import ConflictError, NotFoundError, PermissionDeniedError
from linkboard.models import (
    ModeratorRole,
    Post,
    Subreddit,
    SubredditModerator,
    SubredditSubscription,
    User,
)
from linkboard.schemas.post import PostResponse
from linkboard.schemas.subreddit import (
    ModeratorResponse,
    SubredditCreate,
    SubredditDetailResponse,
    SubredditResponse,
    SubredditUpdate,
    SubscriberResponse,
)
from linkboard.services import post_service
from linkboard.services.moderation import ModerationCoordinator
from linkboard.services.permissions import (
    Permission,
    PermissionSet,
    can_moderate,
    is_moderator,
)

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/subreddits", tags=["subreddits"])
logger = logging.getLogger(__name__)


def moderator_rows(db: Session, subreddit_id: int) -> list[dict[str, object]]:
    """Return the subreddit's moderators joined with their usernames."""
    rows = (
        db.query(SubredditModerator, User.username)
        .join(User, User.id == SubredditModerator.user_id)
        .filter(SubredditModerator.subreddit_id == subreddit_id)
        .order_by(SubredditModerator.id)
        .all()
    )
    return [
        ModeratorResponse(
            user_id=moderator.user_id,
            username=username,
            role=moderator.role,
            permissions=moderator.permissions or [],
            created_at=moderator.created_at,
        ).model_dump()
        for moderator, username in rows
    ]


def _get_subscription(db: Session, subreddit_id: int, user_id: int) -> SubredditSubscription | None:
    return db.query(SubredditSubscription).filter(
        SubredditSubscription.subreddit_id == subreddit_id,
        SubredditSubscription.user_id == user_id,
    ).first()


@router.get("/", response_model=list[SubredditResponse])
async def list_subreddits(
    db: SessionDep,
    _current_user: CurrentUserDep,
) -> list[Subreddit]:
    """List all subreddits."""
    return db.query(Subreddit).order_by(Subreddit.name).all()


@router.get("/subscribed", response_model=list[SubredditResponse])
async def list_subscribed(current_user: CurrentUserDep, db: SessionDep) -> list[Subreddit]:
    """List the subreddits the caller subscribes to."""
    return (
        db.query(Subreddit)
        .join(SubredditSubscription, SubredditSubscription.subreddit_id == Subreddit.id)
        .filter(SubredditSubscription.user_id == current_user.id)
        .order_by(Subreddit.name)
        .all()
    )


@router.post("/", response_model=SubredditResponse, status_code=status.HTTP_201_CREATED)
async def create_subreddit(
    payload: SubredditCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Subreddit:
    """Create a subreddit; the creator becomes its OWNER and first subscriber."""
    if db.query(Subreddit).filter(Subreddit.name == payload.name).first() is not None:
        raise ConflictError("A subreddit with this name already exists")

    subreddit = Subreddit(
        name=payload.name,
        description=payload.description,
        rules=payload.rules,
        theme=payload.theme,
        created_by_id=current_user.id,
    )
    db.add(subreddit)
    try:
        db.flush()
        db.add(SubredditModerator(
            subreddit_id=subreddit.id,
            user_id=current_user.id,
            role=ModeratorRole.OWNER.value,
            permissions=PermissionSet.full().to_list(),
        ))
        db.add(SubredditSubscription(subreddit_id=subreddit.id, user_id=current_user.id))
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError("A subreddit with this name already exists") from err
    db.refresh(subreddit)
    logger.info("User %s created subreddit %s (%s)", current_user.id, subreddit.id, subreddit.name)
    return subreddit


@router.get("/{subreddit_id}", response_model=SubredditDetailResponse)
async def get_subreddit(
    subreddit_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, object]:
    """Return a subreddit with counts, moderators and the caller's relationship."""
    subreddit = ModerationCoordinator.get_subreddit(db, subreddit_id)
    subscriber_count = db.query(func.count(SubredditSubscription.id)).filter(
        SubredditSubscription.subreddit_id == subreddit_id
    ).scalar() or 0
    post_count = db.query(func.count(Post.id)).filter(
        Post.subreddit_id == subreddit_id, Post.is_deleted.is_(False)
    ).scalar() or 0
    return {
        **SubredditResponse.model_validate(subreddit).model_dump(),
        "subscriber_count": subscriber_count,
        "post_count": post_count,
        "is_subscribed": _get_subscription(db, subreddit_id, current_user.id) is not None,
        "is_moderator": is_moderator(db, current_user.id, subreddit_id),
        "moderators": moderator_rows(db, subreddit_id),
    }


@router.put("/{subreddit_id}", response_model=SubredditResponse)
async def update_subreddit(
    subreddit_id: int,
    payload: SubredditUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Subreddit:
    """Update subreddit settings; any moderator (or an admin) may do this."""
    subreddit = ModerationCoordinator.get_subreddit(db, subreddit_id)
    if not is_moderator(db, current_user.id, subreddit_id):
        raise PermissionDeniedError("Only moderators can edit this subreddit")

    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(subreddit, key, value)
    db.commit()
    db.refresh(subreddit)
    return subreddit


@router.delete(
    "/{subreddit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_subreddit(
    subreddit_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Delete a subreddit; requires full moderator rights (owner, ALL or admin)."""
    subreddit = ModerationCoordinator.get_subreddit(db, subreddit_id)
    if not can_moderate(db, current_user.id, subreddit_id, Permission.ALL):
        raise PermissionDeniedError("Only the owner can delete this subreddit")

    db.delete(subreddit)
    db.commit()
    logger.info("User %s deleted subreddit %s", current_user.id, subreddit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{subreddit_id}/posts", response_model=list[PostResponse])
async def list_subreddit_posts(
    subreddit_id: int,
    _current_user: CurrentUserDep,
    db: SessionDep,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> list[Post]:
    ModerationCoordinator.get_subreddit(db, subreddit_id)
    return post_service.list_posts(db, subreddit_id=subreddit_id, limit=limit, offset=offset)


@router.post("/{subreddit_id}/subscribe", status_code=status.HTTP_201_CREATED)
async def subscribe(
    subreddit_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Subscribe the caller to a subreddit."""
    ModerationCoordinator.get_subreddit(db, subreddit_id)
    if _get_subscription(db, subreddit_id, current_user.id) is not None:
        raise ConflictError("Already subscribed to this subreddit")

    db.add(SubredditSubscription(subreddit_id=subreddit_id, user_id=current_user.id))
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError("Already subscribed to this subreddit") from err
    return {"status": "subscribed"}


@router.delete("/{subreddit_id}/subscribe")
async def unsubscribe(
    subreddit_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    subscription = _get_subscription(db, subreddit_id, current_user.id)
    if subscription is None:
        raise NotFoundError("Subscription not found")
    db.delete(subscription)
    db.commit()
    return {"status": "unsubscribed"}


@router.get("/{subreddit_id}/subscribers", response_model=list[SubscriberResponse])
async def list_subscribers(
    subreddit_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[dict[str, object]]:
    """List subscribers; requires MANAGE_USERS."""
    rows = ModerationCoordinator.list_subscribers(db, current_user, subreddit_id)
    return [
        {
            "user_id": user.id,
            "username": user.username,
            "display_name": user.display_name,
            "subscribed_at": subscription.created_at,
        }
        for subscription, user in rows
    ]


@router.delete("/{subreddit_id}/subscribers/{user_id}")
async def remove_subscriber(
    subreddit_id: int,
    user_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    ModerationCoordinator.remove_subscriber(db, current_user, subreddit_id, user_id)
    return {"message": "Subscriber removed"}
