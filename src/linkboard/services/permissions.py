"""Permission resolution for subreddit moderation.

Moderator permission sets are stored as JSON token lists. Every write goes
through :class:`PermissionSet`, which only admits known tokens and refuses
``ALL`` combined with anything else. Reads are tolerant: a stored list that
somehow contains unknown tokens simply grants nothing for them.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from sqlalchemy.orm import Session

from linkboard.core.errors import ValidationError
from linkboard.models import ModeratorRole, SubredditModerator, SubredditSubscription, User

__all__ = [
    "ModeratorRole",
    "Permission",
    "PermissionSet",
    "can_moderate",
    "can_post",
    "get_moderator",
    "is_moderator",
    "resolve_new_moderator_permissions",
]


class Permission(str, Enum):
    """Closed set of moderator permission tokens."""

    MANAGE_POSTS = "MANAGE_POSTS"
    MANAGE_COMMENTS = "MANAGE_COMMENTS"
    MANAGE_MODERATORS = "MANAGE_MODERATORS"
    MANAGE_USERS = "MANAGE_USERS"
    ALL = "ALL"


class PermissionSet:
    """Immutable, validated set of :class:`Permission` values."""

    __slots__ = ("_members",)

    def __init__(self, members: Iterable[Permission] = ()) -> None:
        members = frozenset(members)
        if Permission.ALL in members and len(members) > 1:
            raise ValidationError("ALL must be the only permission when selected")
        self._members = members

    @classmethod
    def parse(cls, tokens: Iterable[str]) -> PermissionSet:
        """Build a set from raw tokens, rejecting unknown values."""
        members: list[Permission] = []
        for token in tokens:
            try:
                members.append(Permission(token))
            except ValueError as err:
                raise ValidationError(f"Invalid permission: {token}") from err
        return cls(members)

    @classmethod
    def from_stored(cls, tokens: Iterable[str] | None) -> PermissionSet:
        """Build a set from a persisted list, ignoring anything unrecognised."""
        known = {permission.value for permission in Permission}
        members = [Permission(token) for token in tokens or () if token in known]
        if Permission.ALL in members:
            return cls.full()
        return cls(members)

    @classmethod
    def full(cls) -> PermissionSet:
        return cls([Permission.ALL])

    def allows(self, permission: Permission) -> bool:
        """Return True if ``permission`` is granted, directly or through ALL."""
        return Permission.ALL in self._members or permission in self._members

    def to_list(self) -> list[str]:
        """Return the tokens in a stable order for storage."""
        return sorted(member.value for member in self._members)

    def __contains__(self, permission: object) -> bool:
        return permission in self._members

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self):
        return iter(sorted(self._members, key=lambda member: member.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PermissionSet):
            return NotImplemented
        return self._members == other._members

    def __hash__(self) -> int:
        return hash(self._members)

    def __repr__(self) -> str:
        return f"PermissionSet({self.to_list()!r})"


def resolve_new_moderator_permissions(
    tokens: Iterable[str] | None,
    *,
    actor_is_admin: bool,
) -> PermissionSet:
    """Validate the permissions requested for a new moderator.

    Global admins may omit the list, in which case the moderator receives
    MANAGE_POSTS. Everyone else must name at least one permission.
    """
    tokens = list(tokens or [])
    if not tokens:
        if actor_is_admin:
            return PermissionSet([Permission.MANAGE_POSTS])
        raise ValidationError("Moderator permissions are required")
    return PermissionSet.parse(tokens)


def get_moderator(db: Session, user_id: int, subreddit_id: int) -> SubredditModerator | None:
    """Return the moderator row for (user, subreddit), if any."""
    return db.query(SubredditModerator).filter(
        SubredditModerator.subreddit_id == subreddit_id,
        SubredditModerator.user_id == user_id,
    ).first()


def is_moderator(db: Session, user_id: int, subreddit_id: int) -> bool:
    """Return True for any moderator role, or for a global admin."""
    user = db.get(User, user_id)
    if user is not None and user.is_admin:
        return True
    return get_moderator(db, user_id, subreddit_id) is not None


def can_moderate(
    db: Session,
    user_id: int,
    subreddit_id: int,
    required: Permission,
) -> bool:
    """Return True if ``user_id`` holds ``required`` in ``subreddit_id``.

    Resolution order: global admin, OWNER role, ALL, then the explicit
    permission. OWNER wins regardless of the stored set.
    """
    user = db.get(User, user_id)
    if user is None:
        return False
    if user.is_admin:
        return True

    moderator = get_moderator(db, user_id, subreddit_id)
    if moderator is None:
        return False
    if moderator.role == ModeratorRole.OWNER.value:
        return True
    return PermissionSet.from_stored(moderator.permissions).allows(required)


def can_post(db: Session, user_id: int, subreddit_id: int) -> bool:
    """Return True if the user moderates (any role) or subscribes to the subreddit."""
    if get_moderator(db, user_id, subreddit_id) is not None:
        return True
    subscription = db.query(SubredditSubscription).filter(
        SubredditSubscription.subreddit_id == subreddit_id,
        SubredditSubscription.user_id == user_id,
    ).first()
    return subscription is not None
