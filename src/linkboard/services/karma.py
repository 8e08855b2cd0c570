"""Karma bookkeeping.

Two numbers are called "karma" and they are intentionally kept apart:

* the cached aggregate on ``User.karma``, the sum of the user's karma events
  (see :func:`recompute_karma`);
* the display karma shown on profiles, the live sum of votes cast on the
  user's posts and comments (see :func:`display_karma`).
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from linkboard.core.errors import NotFoundError
from linkboard.models import Comment, KarmaEvent, Post, User, Vote, VoteTarget

logger = logging.getLogger(__name__)

POST_CREATED_REASON = "post_created"


def recompute_karma(db: Session, user_id: int) -> int:
    """Sum the user's karma events, store the result on the user and return it."""
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    total = db.query(func.coalesce(func.sum(KarmaEvent.amount), 0)).filter(
        KarmaEvent.user_id == user_id
    ).scalar()
    user.karma = int(total or 0)
    db.commit()
    return user.karma


def record_karma_event(
    db: Session,
    user_id: int,
    amount: int,
    reason: str,
    *,
    source_id: int | None = None,
    source_type: str | None = None,
) -> int:
    """Append a karma event and refresh the cached total."""
    db.add(
        KarmaEvent(
            user_id=user_id,
            amount=amount,
            reason=reason,
            source_id=source_id,
            source_type=source_type,
        )
    )
    db.flush()
    total = recompute_karma(db, user_id)
    logger.debug("Karma for user %s is now %s (%+d, %s)", user_id, total, amount, reason)
    return total


def display_karma(db: Session, user_id: int) -> int:
    """Return the live vote sum over all of the user's posts and comments."""
    post_ids = select(Post.id).where(Post.author_id == user_id)
    comment_ids = select(Comment.id).where(Comment.author_id == user_id)

    post_votes = db.query(func.coalesce(func.sum(Vote.value), 0)).filter(
        Vote.target_kind == VoteTarget.POST.value,
        Vote.target_id.in_(post_ids),
    ).scalar()
    comment_votes = db.query(func.coalesce(func.sum(Vote.value), 0)).filter(
        Vote.target_kind == VoteTarget.COMMENT.value,
        Vote.target_id.in_(comment_ids),
    ).scalar()
    return int(post_votes or 0) + int(comment_votes or 0)
