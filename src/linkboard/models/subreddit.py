"""SQLAlchemy models for communities, their moderators, members and bans."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from linkboard.db.session import Base
from linkboard.db.time import utcnow


class ModeratorRole(str, Enum):
    """Role held by a moderator row."""

    OWNER = "OWNER"
    MODERATOR = "MODERATOR"


class Subreddit(Base):
    """A community grouping posts, moderators and subscribers."""

    __tablename__ = "subreddit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    rules: Mapped[str | None] = mapped_column(Text, nullable=True)
    theme: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("user_account.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class SubredditModerator(Base):
    """Role and permission set of one user inside one subreddit."""

    __tablename__ = "subreddit_moderator"
    __table_args__ = (
        UniqueConstraint("subreddit_id", "user_id", name="uq_subreddit_moderator"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subreddit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("subreddit.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ModeratorRole.MODERATOR.value)
    # Permission tokens; validated through PermissionSet before every write.
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @property
    def is_owner(self) -> bool:
        return self.role == ModeratorRole.OWNER.value


class SubredditSubscription(Base):
    """Membership marker; presence means subscribed."""

    __tablename__ = "subreddit_subscription"
    __table_args__ = (
        UniqueConstraint("subreddit_id", "user_id", name="uq_subreddit_subscription"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subreddit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("subreddit.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class SubredditBan(Base):
    """Community-scoped ban, independent of the account-wide ban."""

    __tablename__ = "subreddit_ban"
    __table_args__ = (UniqueConstraint("subreddit_id", "user_id", name="uq_subreddit_ban"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subreddit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("subreddit.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False
    )
    banned_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("user_account.id", ondelete="SET NULL"), nullable=True
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
