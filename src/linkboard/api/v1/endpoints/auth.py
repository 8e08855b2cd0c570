"""Authentication endpoints for the Linkboard API."""

import logging

from fastapi import APIRouter, status
from sqlalchemy.orm import Session

from linkboard.core.security import create_access_token
from linkboard.models import User
from linkboard.schemas.user import (
    LoginRequest,
    MeResponse,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from linkboard.services import user_service
from linkboard.services.karma import display_karma
from linkboard.services.moderation import ModerationCoordinator

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: SessionDep) -> dict[str, object]:
    """Create an account and return an access token for it."""
    user = user_service.create_user(db, payload)
    return {
        "access_token": create_access_token(user.id),
        "token_type": "bearer",
        "user": user,
    }


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: SessionDep) -> dict[str, object]:
    """Exchange a username (or email) and password for an access token.

    Accounts under an active ban are refused; bans whose expiry has passed
    are lifted here as on any authenticated request.
    """
    user = user_service.authenticate(db, payload.username, payload.password)
    ModerationCoordinator.enforce_account_ban(db, user)
    logger.info("User %s logged in", user.id)
    return {
        "access_token": create_access_token(user.id),
        "token_type": "bearer",
        "user": user,
    }


@router.get("/me", response_model=MeResponse)
async def read_me(current_user: CurrentUserDep, db: SessionDep) -> dict[str, object]:
    """Return the caller's account together with counts and both karma values."""
    return _me_payload(db, current_user)


def _me_payload(db: Session, user: User) -> dict[str, object]:
    return {
        **UserResponse.model_validate(user).model_dump(),
        "email": user.email,
        "display_karma": display_karma(db, user.id),
        "follower_count": user_service.count_followers(db, user.id),
        "following_count": user_service.count_following(db, user.id),
        "post_count": user_service.count_posts(db, user.id),
    }
