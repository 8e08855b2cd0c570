"""Moderator and community-ban endpoints, nested under a subreddit."""

from fastapi import APIRouter, Response, status

from linkboard.models import SubredditBan, User
from linkboard.schemas.moderation import (
    BanRequest,
    BanResponse,
    ModeratorAdd,
    ModeratorAddResponse,
    ModeratorUpdate,
)
from linkboard.schemas.subreddit import ModeratorResponse
from linkboard.services.moderation import ModerationCoordinator

from ..dependencies import CurrentUserDep, SessionDep
from .subreddits import moderator_rows

router = APIRouter(prefix="/subreddits/{subreddit_id}", tags=["moderation"])


@router.get("/moderators", response_model=list[ModeratorResponse])
async def list_moderators(
    subreddit_id: int,
    _current_user: CurrentUserDep,
    db: SessionDep,
) -> list[dict[str, object]]:
    ModerationCoordinator.get_subreddit(db, subreddit_id)
    return moderator_rows(db, subreddit_id)


@router.post("/moderators", response_model=ModeratorAddResponse)
async def add_moderator(
    subreddit_id: int,
    payload: ModeratorAdd,
    response: Response,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, object]:
    """Grant a moderator role by username.

    Responds 201 for a new moderator and 200 with ``already_exists`` set when
    the user already moderates the subreddit.
    """
    moderator, already_exists = ModerationCoordinator.add_moderator(
        db,
        current_user,
        subreddit_id,
        payload.username,
        role=payload.role,
        permissions=payload.permissions,
    )
    response.status_code = status.HTTP_200_OK if already_exists else status.HTTP_201_CREATED
    user = db.get(User, moderator.user_id)
    return {
        "user_id": moderator.user_id,
        "username": user.username if user else payload.username,
        "role": moderator.role,
        "permissions": moderator.permissions or [],
        "created_at": moderator.created_at,
        "already_exists": already_exists,
    }


@router.put("/moderators/{user_id}", response_model=ModeratorResponse)
async def update_moderator(
    subreddit_id: int,
    user_id: int,
    payload: ModeratorUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, object]:
    moderator = ModerationCoordinator.update_moderator(
        db, current_user, subreddit_id, user_id, payload.permissions, role=payload.role
    )
    user = db.get(User, moderator.user_id)
    return {
        "user_id": moderator.user_id,
        "username": user.username if user else "",
        "role": moderator.role,
        "permissions": moderator.permissions or [],
        "created_at": moderator.created_at,
    }


@router.delete("/moderators/{user_id}")
async def remove_moderator(
    subreddit_id: int,
    user_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    ModerationCoordinator.remove_moderator(db, current_user, subreddit_id, user_id)
    return {"message": "Moderator removed"}


@router.post("/bans", response_model=BanResponse, status_code=status.HTTP_201_CREATED)
async def ban_user(
    subreddit_id: int,
    payload: BanRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> SubredditBan:
    """Ban a user from the subreddit; a reason is mandatory."""
    return ModerationCoordinator.ban_user(
        db, current_user, subreddit_id, payload.user_id, payload.reason
    )


@router.delete("/bans/{user_id}")
async def unban_user(
    subreddit_id: int,
    user_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    ModerationCoordinator.unban_user(db, current_user, subreddit_id, user_id)
    return {"message": "User unbanned"}
