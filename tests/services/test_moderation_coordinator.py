"""Tests for community bans, moderator management and account bans."""

from datetime import timedelta

import pytest

from linkboard.core.errors import (
    AccountBannedError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from linkboard.db.time import as_utc, utcnow
from linkboard.models import ModeratorRole, SubredditBan, SubredditSubscription
from linkboard.services.moderation import ModerationCoordinator
from linkboard.services.permissions import get_moderator


def test_owner_can_ban_member(db_session, test_user, other_user, subreddit) -> None:
    ban = ModerationCoordinator.ban_user(db_session, test_user, subreddit.id, other_user.id, "spam")

    assert ban.reason == "spam"
    assert ban.banned_by_id == test_user.id
    assert ModerationCoordinator.is_banned(db_session, subreddit.id, other_user.id)


def test_banning_owner_is_always_rejected(db_session, admin_user, test_user, subreddit) -> None:
    with pytest.raises(PermissionDeniedError, match="owner"):
        ModerationCoordinator.ban_user(db_session, admin_user, subreddit.id, test_user.id, "no")

    assert db_session.query(SubredditBan).count() == 0


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_ban_requires_reason(db_session, test_user, other_user, subreddit, reason) -> None:
    with pytest.raises(ValidationError):
        ModerationCoordinator.ban_user(db_session, test_user, subreddit.id, other_user.id, reason)


def test_duplicate_ban_conflicts(db_session, test_user, other_user, subreddit) -> None:
    ModerationCoordinator.ban_user(db_session, test_user, subreddit.id, other_user.id, "spam")

    with pytest.raises(ConflictError):
        ModerationCoordinator.ban_user(db_session, test_user, subreddit.id, other_user.id, "again")


def test_ban_requires_manage_users(db_session, make_user, other_user, subreddit, add_moderator) -> None:
    moderator = make_user()
    add_moderator(subreddit, moderator, ["MANAGE_POSTS"])

    with pytest.raises(PermissionDeniedError):
        ModerationCoordinator.ban_user(db_session, moderator, subreddit.id, other_user.id, "spam")


def test_manage_users_moderator_can_ban(db_session, make_user, other_user, subreddit, add_moderator) -> None:
    moderator = make_user()
    add_moderator(subreddit, moderator, ["MANAGE_USERS"])

    ModerationCoordinator.ban_user(db_session, moderator, subreddit.id, other_user.id, "spam")

    assert ModerationCoordinator.is_banned(db_session, subreddit.id, other_user.id)


def test_ban_unknown_targets(db_session, test_user, subreddit) -> None:
    with pytest.raises(NotFoundError, match="Subreddit"):
        ModerationCoordinator.ban_user(db_session, test_user, 999, test_user.id, "spam")
    with pytest.raises(NotFoundError, match="User"):
        ModerationCoordinator.ban_user(db_session, test_user, subreddit.id, 999, "spam")


def test_unban(db_session, test_user, other_user, subreddit) -> None:
    ModerationCoordinator.ban_user(db_session, test_user, subreddit.id, other_user.id, "spam")
    ModerationCoordinator.unban_user(db_session, test_user, subreddit.id, other_user.id)

    assert not ModerationCoordinator.is_banned(db_session, subreddit.id, other_user.id)
    with pytest.raises(NotFoundError):
        ModerationCoordinator.unban_user(db_session, test_user, subreddit.id, other_user.id)


def test_community_ban_leaves_subscription(db_session, test_user, other_user, subreddit, subscribe) -> None:
    subscribe(subreddit, other_user)

    ModerationCoordinator.ban_user(db_session, test_user, subreddit.id, other_user.id, "spam")

    assert db_session.query(SubredditSubscription).filter(
        SubredditSubscription.user_id == other_user.id
    ).count() == 1


def test_add_moderator(db_session, test_user, other_user, subreddit) -> None:
    moderator, already_exists = ModerationCoordinator.add_moderator(
        db_session, test_user, subreddit.id, other_user.username, permissions=["MANAGE_COMMENTS"]
    )

    assert not already_exists
    assert moderator.role == ModeratorRole.MODERATOR.value
    assert moderator.permissions == ["MANAGE_COMMENTS"]


def test_add_existing_moderator_returns_it(db_session, test_user, subreddit) -> None:
    moderator, already_exists = ModerationCoordinator.add_moderator(
        db_session, test_user, subreddit.id, test_user.username, permissions=["MANAGE_POSTS"]
    )

    assert already_exists
    assert moderator.is_owner


def test_admin_default_permissions(db_session, admin_user, other_user, subreddit) -> None:
    moderator, _ = ModerationCoordinator.add_moderator(
        db_session, admin_user, subreddit.id, other_user.username
    )

    assert moderator.permissions == ["MANAGE_POSTS"]


def test_non_admin_must_name_permissions(db_session, test_user, other_user, subreddit) -> None:
    with pytest.raises(ValidationError):
        ModerationCoordinator.add_moderator(db_session, test_user, subreddit.id, other_user.username)


@pytest.mark.parametrize("permissions", [["ALL", "MANAGE_POSTS"], ["BOGUS"]])
def test_add_moderator_rejects_bad_sets(db_session, test_user, other_user, subreddit, permissions) -> None:
    with pytest.raises(ValidationError):
        ModerationCoordinator.add_moderator(
            db_session, test_user, subreddit.id, other_user.username, permissions=permissions
        )
    assert get_moderator(db_session, other_user.id, subreddit.id) is None


def test_add_moderator_needs_manage_moderators(
    db_session, make_user, other_user, subreddit, add_moderator
) -> None:
    moderator = make_user()
    add_moderator(subreddit, moderator, ["MANAGE_USERS"])

    with pytest.raises(PermissionDeniedError):
        ModerationCoordinator.add_moderator(
            db_session, moderator, subreddit.id, other_user.username, permissions=["MANAGE_POSTS"]
        )


def test_add_unknown_username(db_session, test_user, subreddit) -> None:
    with pytest.raises(NotFoundError):
        ModerationCoordinator.add_moderator(
            db_session, test_user, subreddit.id, "ghost", permissions=["MANAGE_POSTS"]
        )


def test_update_and_remove_moderator(db_session, test_user, other_user, subreddit, add_moderator) -> None:
    add_moderator(subreddit, other_user, ["MANAGE_POSTS"])

    updated = ModerationCoordinator.update_moderator(
        db_session, test_user, subreddit.id, other_user.id, ["MANAGE_USERS", "MANAGE_COMMENTS"]
    )
    assert updated.permissions == ["MANAGE_COMMENTS", "MANAGE_USERS"]

    ModerationCoordinator.remove_moderator(db_session, test_user, subreddit.id, other_user.id)
    assert get_moderator(db_session, other_user.id, subreddit.id) is None

    with pytest.raises(NotFoundError):
        ModerationCoordinator.remove_moderator(db_session, test_user, subreddit.id, other_user.id)


def test_remove_subscriber(db_session, test_user, other_user, subreddit, subscribe) -> None:
    subscribe(subreddit, other_user)

    ModerationCoordinator.remove_subscriber(db_session, test_user, subreddit.id, other_user.id)

    rows = ModerationCoordinator.list_subscribers(db_session, test_user, subreddit.id)
    assert [user.id for _, user in rows] == [test_user.id]


def test_moderator_cannot_be_removed_as_subscriber(db_session, test_user, subreddit) -> None:
    with pytest.raises(PermissionDeniedError):
        ModerationCoordinator.remove_subscriber(db_session, test_user, subreddit.id, test_user.id)


def test_list_subscribers_requires_manage_users(db_session, other_user, subreddit) -> None:
    with pytest.raises(PermissionDeniedError):
        ModerationCoordinator.list_subscribers(db_session, other_user, subreddit.id)


def test_ban_account_requires_admin(db_session, test_user, other_user) -> None:
    with pytest.raises(PermissionDeniedError):
        ModerationCoordinator.ban_account(db_session, test_user, other_user.id, reason="x")


def test_timed_account_ban(db_session, admin_user, other_user) -> None:
    user = ModerationCoordinator.ban_account(
        db_session, admin_user, other_user.id, reason="abuse", duration_days=2
    )

    assert user.is_banned
    remaining = as_utc(user.ban_expires_at) - utcnow()
    assert timedelta(days=1, hours=23) < remaining <= timedelta(days=2)


def test_active_ban_is_enforced(db_session, admin_user, other_user) -> None:
    ModerationCoordinator.ban_account(db_session, admin_user, other_user.id, reason="abuse")

    with pytest.raises(AccountBannedError) as excinfo:
        ModerationCoordinator.enforce_account_ban(db_session, other_user)

    assert excinfo.value.reason == "abuse"
    assert excinfo.value.expires_at is None
    assert excinfo.value.status_code == 403


def test_expired_ban_is_lifted(db_session, other_user) -> None:
    other_user.is_banned = True
    other_user.ban_reason = "old"
    other_user.ban_expires_at = utcnow() - timedelta(minutes=1)
    db_session.flush()

    ModerationCoordinator.enforce_account_ban(db_session, other_user)

    db_session.refresh(other_user)
    assert not other_user.is_banned
    assert other_user.ban_reason is None
    assert other_user.ban_expires_at is None


def test_unban_account(db_session, admin_user, other_user) -> None:
    ModerationCoordinator.ban_account(db_session, admin_user, other_user.id, reason="abuse")
    user = ModerationCoordinator.unban_account(db_session, admin_user, other_user.id)

    assert not user.is_banned
    ModerationCoordinator.enforce_account_ban(db_session, user)
