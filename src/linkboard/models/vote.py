# src/linkboard/models/vote.py
"""Models capturing voting interactions on posts and comments."""

from enum import Enum

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from linkboard.db.session import Base


class VoteTarget(str, Enum):
    """Kind of content a vote points at."""

    POST = "post"
    COMMENT = "comment"


class Vote(Base):
    """Per-user vote on a post or a comment.

    A neutral vote is represented by the absence of a row.
    """

    __tablename__ = "vote"
    __table_args__ = (
        CheckConstraint("value IN (1, -1)", name="ck_vote_value"),
        CheckConstraint("target_kind IN ('post', 'comment')", name="ck_vote_target_kind"),
        Index("ix_vote_target", "target_kind", "target_id"),
    )

    # Composite primary key prevents duplicate votes from the same user.
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    target_kind: Mapped[str] = mapped_column(String(16), primary_key=True)
    target_id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # 1 = upvote, -1 = downvote.
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)
