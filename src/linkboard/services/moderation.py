# src/linkboard/services/moderation.py
"""Moderation services for Linkboard."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from linkboard.core.errors import (
    AccountBannedError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from linkboard.db.time import as_utc, utcnow
from linkboard.models import (
    ModeratorRole,
    Subreddit,
    SubredditBan,
    SubredditModerator,
    SubredditSubscription,
    User,
)
from linkboard.services.permissions import (
    Permission,
    PermissionSet,
    can_moderate,
    get_moderator,
    resolve_new_moderator_permissions,
)

logger = logging.getLogger(__name__)


class ModerationCoordinator:
    """Service handling community bans, moderator roles and account bans.

    Community bans and moderator roles are independent per (subreddit, user)
    pair. Nothing here keeps a subreddit from losing its last OWNER.
    """

    @staticmethod
    def get_subreddit(db: Session, subreddit_id: int) -> Subreddit:
        subreddit = db.get(Subreddit, subreddit_id)
        if subreddit is None:
            raise NotFoundError("Subreddit not found")
        return subreddit

    @staticmethod
    def _get_user(db: Session, user_id: int) -> User:
        user = db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def _require(
        db: Session,
        actor: User,
        subreddit_id: int,
        permission: Permission,
        detail: str,
    ) -> None:
        if not can_moderate(db, actor.id, subreddit_id, permission):
            raise PermissionDeniedError(detail)

    # --- community bans -------------------------------------------------

    @staticmethod
    def is_banned(db: Session, subreddit_id: int, user_id: int) -> bool:
        """Return True if the user is banned from the subreddit."""
        return db.query(SubredditBan).filter(
            SubredditBan.subreddit_id == subreddit_id,
            SubredditBan.user_id == user_id,
        ).first() is not None

    @classmethod
    def ban_user(
        cls,
        db: Session,
        actor: User,
        subreddit_id: int,
        target_user_id: int,
        reason: str | None,
    ) -> SubredditBan:
        """Ban ``target_user_id`` from a subreddit.

        Raises:
            ValidationError: If no reason is supplied.
            NotFoundError: If the subreddit or the user does not exist.
            PermissionDeniedError: If the actor lacks MANAGE_USERS, or the
                target is the subreddit OWNER.
            ConflictError: If the user is already banned.
        """
        if not reason or not reason.strip():
            raise ValidationError("A ban reason is required")

        cls.get_subreddit(db, subreddit_id)
        cls._require(db, actor, subreddit_id, Permission.MANAGE_USERS,
                     "You do not have permission to ban users")
        cls._get_user(db, target_user_id)

        target_moderator = get_moderator(db, target_user_id, subreddit_id)
        if target_moderator is not None and target_moderator.is_owner:
            raise PermissionDeniedError("The subreddit owner cannot be banned")

        if cls.is_banned(db, subreddit_id, target_user_id):
            raise ConflictError("User is already banned from this subreddit")

        ban = SubredditBan(
            subreddit_id=subreddit_id,
            user_id=target_user_id,
            banned_by_id=actor.id,
            reason=reason.strip(),
        )
        db.add(ban)
        db.commit()
        db.refresh(ban)
        logger.info(
            "User %s banned user %s from subreddit %s", actor.id, target_user_id, subreddit_id
        )
        return ban

    @classmethod
    def unban_user(cls, db: Session, actor: User, subreddit_id: int, target_user_id: int) -> None:
        """Lift a community ban."""
        cls.get_subreddit(db, subreddit_id)
        cls._require(db, actor, subreddit_id, Permission.MANAGE_USERS,
                     "You do not have permission to unban users")

        ban = db.query(SubredditBan).filter(
            SubredditBan.subreddit_id == subreddit_id,
            SubredditBan.user_id == target_user_id,
        ).first()
        if ban is None:
            raise NotFoundError("Ban not found")

        db.delete(ban)
        db.commit()
        logger.info(
            "User %s unbanned user %s from subreddit %s", actor.id, target_user_id, subreddit_id
        )

    # --- moderators -----------------------------------------------------

    @staticmethod
    def list_moderators(db: Session, subreddit_id: int) -> list[SubredditModerator]:
        return db.query(SubredditModerator).filter(
            SubredditModerator.subreddit_id == subreddit_id
        ).order_by(SubredditModerator.id).all()

    @classmethod
    def add_moderator(
        cls,
        db: Session,
        actor: User,
        subreddit_id: int,
        username: str,
        role: ModeratorRole | None = None,
        permissions: list[str] | None = None,
    ) -> tuple[SubredditModerator, bool]:
        """Grant a moderator role.

        Returns:
            The moderator row and whether it already existed. An existing
            moderator is returned untouched rather than treated as an error.
        """
        if not username or not username.strip():
            raise ValidationError("A username is required")

        permission_set = resolve_new_moderator_permissions(
            permissions, actor_is_admin=actor.is_admin
        )

        cls.get_subreddit(db, subreddit_id)
        cls._require(db, actor, subreddit_id, Permission.MANAGE_MODERATORS,
                     "You do not have permission to add moderators")

        user = db.query(User).filter(User.username == username.strip()).first()
        if user is None:
            raise NotFoundError("User not found")

        existing = get_moderator(db, user.id, subreddit_id)
        if existing is not None:
            return existing, True

        moderator = SubredditModerator(
            subreddit_id=subreddit_id,
            user_id=user.id,
            role=(role or ModeratorRole.MODERATOR).value,
            permissions=permission_set.to_list(),
        )
        db.add(moderator)
        db.commit()
        db.refresh(moderator)
        logger.info(
            "User %s added %s as %s of subreddit %s with %s",
            actor.id, user.id, moderator.role, subreddit_id, moderator.permissions,
        )
        return moderator, False

    @classmethod
    def update_moderator(
        cls,
        db: Session,
        actor: User,
        subreddit_id: int,
        user_id: int,
        permissions: list[str],
        role: ModeratorRole | None = None,
    ) -> SubredditModerator:
        """Replace a moderator's permission set and optionally its role."""
        permission_set = PermissionSet.parse(permissions)

        cls.get_subreddit(db, subreddit_id)
        cls._require(db, actor, subreddit_id, Permission.MANAGE_MODERATORS,
                     "You do not have permission to edit moderators")

        moderator = get_moderator(db, user_id, subreddit_id)
        if moderator is None:
            raise NotFoundError("Moderator not found")

        moderator.permissions = permission_set.to_list()
        if role is not None:
            moderator.role = role.value
        db.commit()
        db.refresh(moderator)
        return moderator

    @classmethod
    def remove_moderator(cls, db: Session, actor: User, subreddit_id: int, user_id: int) -> None:
        """Revoke a moderator role."""
        cls.get_subreddit(db, subreddit_id)
        cls._require(db, actor, subreddit_id, Permission.MANAGE_MODERATORS,
                     "You do not have permission to remove moderators")

        moderator = get_moderator(db, user_id, subreddit_id)
        if moderator is None:
            raise NotFoundError("Moderator not found")

        db.delete(moderator)
        db.commit()
        logger.info("User %s removed moderator %s from subreddit %s", actor.id, user_id, subreddit_id)

    # --- subscribers ----------------------------------------------------

    @classmethod
    def list_subscribers(
        cls, db: Session, actor: User, subreddit_id: int
    ) -> list[tuple[SubredditSubscription, User]]:
        cls.get_subreddit(db, subreddit_id)
        cls._require(db, actor, subreddit_id, Permission.MANAGE_USERS,
                     "You do not have permission to view subscribers")
        rows = (
            db.query(SubredditSubscription, User)
            .join(User, User.id == SubredditSubscription.user_id)
            .filter(SubredditSubscription.subreddit_id == subreddit_id)
            .order_by(SubredditSubscription.id)
            .all()
        )
        return [(subscription, user) for subscription, user in rows]

    @classmethod
    def remove_subscriber(cls, db: Session, actor: User, subreddit_id: int, user_id: int) -> None:
        """Remove a non-moderator subscriber from a subreddit."""
        cls.get_subreddit(db, subreddit_id)
        cls._require(db, actor, subreddit_id, Permission.MANAGE_USERS,
                     "You do not have permission to remove subscribers")
        cls._get_user(db, user_id)

        if get_moderator(db, user_id, subreddit_id) is not None:
            raise PermissionDeniedError("Remove the moderator role before removing the subscriber")

        subscription = db.query(SubredditSubscription).filter(
            SubredditSubscription.subreddit_id == subreddit_id,
            SubredditSubscription.user_id == user_id,
        ).first()
        if subscription is None:
            raise NotFoundError("User is not subscribed to this subreddit")

        db.delete(subscription)
        db.commit()

    # --- account-wide bans ----------------------------------------------

    @classmethod
    def ban_account(
        cls,
        db: Session,
        actor: User,
        user_id: int,
        reason: str | None = None,
        duration_days: float | None = None,
    ) -> User:
        """Ban an account platform-wide; admins only."""
        if not actor.is_admin:
            raise PermissionDeniedError("Administrator privileges required")
        if duration_days is not None and duration_days <= 0:
            raise ValidationError("Ban duration must be positive")

        user = cls._get_user(db, user_id)
        user.is_banned = True
        user.ban_reason = reason
        user.ban_expires_at = (
            utcnow() + timedelta(days=duration_days) if duration_days is not None else None
        )
        db.commit()
        db.refresh(user)
        logger.info("Admin %s banned account %s until %s", actor.id, user_id, user.ban_expires_at)
        return user

    @classmethod
    def unban_account(cls, db: Session, actor: User, user_id: int) -> User:
        if not actor.is_admin:
            raise PermissionDeniedError("Administrator privileges required")
        user = cls._get_user(db, user_id)
        _clear_account_ban(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def enforce_account_ban(db: Session, user: User) -> None:
        """Reject banned accounts, lifting bans whose expiry has passed.

        Raises:
            AccountBannedError: If the ban has no expiry or expires later.
        """
        if not user.is_banned:
            return

        expires_at = user.ban_expires_at
        if expires_at is None or as_utc(expires_at) > utcnow():
            raise AccountBannedError(reason=user.ban_reason, expires_at=expires_at)

        _clear_account_ban(user)
        db.commit()
        logger.info("Expired ban lifted for user %s", user.id)


def _clear_account_ban(user: User) -> None:
    user.is_banned = False
    user.ban_reason = None
    user.ban_expires_at = None
