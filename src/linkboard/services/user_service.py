"""CRUD-style helpers for accounts and the follow graph."""
from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linkboard.core import security
from linkboard.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from linkboard.db.time import utcnow
from linkboard.models import Comment, Follow, Post, User
from linkboard.schemas.user import ProfileUpdateRequest, RegisterRequest

logger = logging.getLogger(__name__)

__all__ = [
    "authenticate",
    "count_comments",
    "count_followers",
    "count_following",
    "count_posts",
    "create_user",
    "follow_user",
    "get_user",
    "get_user_by_login",
    "get_user_or_404",
    "is_following",
    "list_followers",
    "list_following",
    "unfollow_user",
    "update_profile",
]


def get_user(db: Session, user_id: int) -> User | None:
    """Return a single user by primary key."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_or_404(db: Session, user_id: int) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_user_by_login(db: Session, login: str) -> User | None:
    """Return the user whose username or email equals ``login``."""
    return db.query(User).filter(or_(User.username == login, User.email == login)).first()


def create_user(db: Session, data: RegisterRequest) -> User:
    """Persist a new account with a hashed password.

    Raises:
        ConflictError: If the username or email is already taken.
    """
    if db.query(User).filter(User.username == data.username).first() is not None:
        raise ConflictError("Username is already taken")
    if db.query(User).filter(User.email == data.email).first() is not None:
        raise ConflictError("Email is already registered")

    db_user = User(
        username=data.username,
        email=data.email,
        hashed_password=security.hash_password(data.password),
        display_name=data.display_name or data.username,
        bio=data.bio,
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError("Username or email is already taken") from err
    db.refresh(db_user)
    logger.info("Registered user %s (%s)", db_user.id, db_user.username)
    return db_user


def authenticate(db: Session, login: str, password: str) -> User:
    """Return the user for valid credentials and stamp ``last_active_at``.

    Raises:
        AuthenticationError: If the login or password is wrong.
    """
    user = get_user_by_login(db, login)
    if user is None or not security.verify_password(password, user.hashed_password):
        raise AuthenticationError("Invalid credentials")
    user.last_active_at = utcnow()
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, db_user: User, update_data: ProfileUpdateRequest) -> User:
    """Apply partial updates to the caller's profile."""
    update_dict = update_data.model_dump(exclude_unset=True)
    for key, value in update_dict.items():
        setattr(db_user, key, value)

    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def is_following(db: Session, follower_id: int, following_id: int) -> bool:
    return db.query(Follow).filter(
        Follow.follower_id == follower_id,
        Follow.following_id == following_id,
    ).first() is not None


def follow_user(db: Session, follower: User, following_id: int) -> Follow:
    """Create a follow edge.

    Raises:
        ValidationError: If a user tries to follow themselves.
        NotFoundError: If the followed user does not exist.
        ConflictError: If the edge already exists.
    """
    if follower.id == following_id:
        raise ValidationError("You cannot follow yourself")
    get_user_or_404(db, following_id)
    if is_following(db, follower.id, following_id):
        raise ConflictError("You are already following this user")

    follow = Follow(follower_id=follower.id, following_id=following_id)
    db.add(follow)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError("You are already following this user") from err
    db.refresh(follow)
    return follow


def unfollow_user(db: Session, follower: User, following_id: int) -> None:
    follow = db.query(Follow).filter(
        Follow.follower_id == follower.id,
        Follow.following_id == following_id,
    ).first()
    if follow is None:
        raise NotFoundError("Follow not found")
    db.delete(follow)
    db.commit()


def list_followers(db: Session, user_id: int) -> Sequence[User]:
    """Return the users following ``user_id``, most recent first."""
    return (
        db.query(User)
        .join(Follow, Follow.follower_id == User.id)
        .filter(Follow.following_id == user_id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
        .all()
    )


def list_following(db: Session, user_id: int) -> Sequence[User]:
    """Return the users ``user_id`` follows, most recent first."""
    return (
        db.query(User)
        .join(Follow, Follow.following_id == User.id)
        .filter(Follow.follower_id == user_id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
        .all()
    )


def count_followers(db: Session, user_id: int) -> int:
    return db.query(func.count(Follow.id)).filter(Follow.following_id == user_id).scalar() or 0


def count_following(db: Session, user_id: int) -> int:
    return db.query(func.count(Follow.id)).filter(Follow.follower_id == user_id).scalar() or 0


def count_posts(db: Session, user_id: int) -> int:
    return db.query(func.count(Post.id)).filter(
        Post.author_id == user_id, Post.is_deleted.is_(False)
    ).scalar() or 0


def count_comments(db: Session, user_id: int) -> int:
    return db.query(func.count(Comment.id)).filter(
        Comment.author_id == user_id, Comment.is_deleted.is_(False)
    ).scalar() or 0
