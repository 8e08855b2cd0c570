"""User profile, follow and account-ban endpoints."""

from fastapi import APIRouter, Query, status

from linkboard.models import Comment, Post, User
from linkboard.schemas.post import CommentResponse, PostResponse
from linkboard.schemas.user import (
    AccountBanRequest,
    AccountBanResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    UserResponse,
)
from linkboard.services import post_service, user_service
from linkboard.services.karma import display_karma
from linkboard.services.moderation import ModerationCoordinator

from ..dependencies import AdminUserDep, CurrentUserDep, DispatcherDep, SessionDep

router = APIRouter(prefix="/users", tags=["users"])


@router.patch("/me", response_model=UserResponse)
async def update_my_profile(
    payload: ProfileUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> User:
    """Update the caller's display name, bio or avatar URL."""
    return user_service.update_profile(db, current_user, payload)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, object]:
    """Return a user's profile.

    ``karma`` is the cached karma-event total; ``display_karma`` is the live
    vote sum over the user's posts and comments.
    """
    user = user_service.get_user_or_404(db, user_id)
    return {
        **UserResponse.model_validate(user).model_dump(),
        "display_karma": display_karma(db, user.id),
        "follower_count": user_service.count_followers(db, user.id),
        "following_count": user_service.count_following(db, user.id),
        "post_count": user_service.count_posts(db, user.id),
        "comment_count": user_service.count_comments(db, user.id),
        "is_following": user_service.is_following(db, current_user.id, user.id),
    }


@router.get("/{user_id}/posts", response_model=list[PostResponse])
async def get_user_posts(
    user_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> list[Post]:
    user_service.get_user_or_404(db, user_id)
    return post_service.list_posts(db, author_id=user_id, limit=limit, offset=offset)


@router.get("/{user_id}/comments", response_model=list[CommentResponse])
async def get_user_comments(
    user_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[Comment]:
    user_service.get_user_or_404(db, user_id)
    return post_service.list_comments(db, author_id=user_id)


@router.post("/{user_id}/follow", status_code=status.HTTP_201_CREATED)
async def follow(
    user_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    dispatcher: DispatcherDep,
) -> dict[str, str]:
    """Follow another user and notify them."""
    follow_edge = user_service.follow_user(db, current_user, user_id)
    await dispatcher.notify(
        db,
        actor_id=current_user.id,
        recipient_id=user_id,
        type="follow",
        content=f"{current_user.username} started following you",
        source_id=follow_edge.id,
        source_type="follow",
    )
    return {"message": "Followed"}


@router.delete("/{user_id}/follow")
async def unfollow(user_id: int, current_user: CurrentUserDep, db: SessionDep) -> dict[str, str]:
    user_service.unfollow_user(db, current_user, user_id)
    return {"message": "Unfollowed"}


@router.get("/{user_id}/followers", response_model=list[UserResponse])
async def get_followers(user_id: int, current_user: CurrentUserDep, db: SessionDep) -> list[User]:
    user_service.get_user_or_404(db, user_id)
    return list(user_service.list_followers(db, user_id))


@router.get("/{user_id}/following", response_model=list[UserResponse])
async def get_following(user_id: int, current_user: CurrentUserDep, db: SessionDep) -> list[User]:
    user_service.get_user_or_404(db, user_id)
    return list(user_service.list_following(db, user_id))


@router.post("/{user_id}/ban", response_model=AccountBanResponse)
async def ban_account(
    user_id: int,
    payload: AccountBanRequest,
    admin: AdminUserDep,
    db: SessionDep,
) -> User:
    """Ban an account platform-wide, permanently or for ``duration_days``."""
    return ModerationCoordinator.ban_account(
        db, admin, user_id, reason=payload.reason, duration_days=payload.duration_days
    )


@router.delete("/{user_id}/ban", response_model=AccountBanResponse)
async def unban_account(user_id: int, admin: AdminUserDep, db: SessionDep) -> User:
    return ModerationCoordinator.unban_account(db, admin, user_id)
