"""Vote ledger: one live vote per (user, target) and the score it feeds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linkboard.core.errors import ConflictError, NotFoundError, ValidationError
from linkboard.models import Comment, Post, Vote, VoteTarget

logger = logging.getLogger(__name__)

VALID_VOTE_VALUES = frozenset({-1, 0, 1})


class VoteAction(str, Enum):
    """What a cast did to the ledger."""

    CREATED = "created"
    UPDATED = "updated"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class VoteResult:
    """Outcome of :meth:`VoteLedger.cast_vote`."""

    action: VoteAction
    value: int
    score: int
    author_id: int

    @property
    def should_notify(self) -> bool:
        return self.action in (VoteAction.CREATED, VoteAction.UPDATED)


class VoteLedger:
    """Applies votes on posts and comments.

    Casting the value a user already holds cancels the vote; casting 0 clears
    it; casting the opposite value flips it in place. The ``vote`` table's
    composite primary key guarantees a single row per (user, kind, target),
    and a concurrent duplicate insert is turned into an update of the row
    that won.
    """

    @staticmethod
    def get_target(db: Session, target_id: int, target_kind: VoteTarget) -> Post | Comment:
        """Return the live (not soft-deleted) post or comment being voted on."""
        if target_kind is VoteTarget.POST:
            target = db.query(Post).filter(Post.id == target_id, Post.is_deleted.is_(False)).first()
            if target is None:
                raise NotFoundError("Post not found")
            return target

        target = db.query(Comment).filter(
            Comment.id == target_id, Comment.is_deleted.is_(False)
        ).first()
        if target is None:
            raise NotFoundError("Comment not found")
        return target

    @staticmethod
    def get_vote(
        db: Session,
        user_id: int,
        target_id: int,
        target_kind: VoteTarget,
    ) -> Vote | None:
        return db.query(Vote).filter(
            Vote.user_id == user_id,
            Vote.target_kind == target_kind.value,
            Vote.target_id == target_id,
        ).first()

    @staticmethod
    def score_for(db: Session, target_id: int, target_kind: VoteTarget) -> int:
        """Return the live sum of vote values on a target."""
        total = db.query(func.coalesce(func.sum(Vote.value), 0)).filter(
            Vote.target_kind == target_kind.value,
            Vote.target_id == target_id,
        ).scalar()
        return int(total or 0)

    @classmethod
    def cast_vote(
        cls,
        db: Session,
        actor_id: int,
        target_id: int,
        target_kind: VoteTarget,
        value: int,
    ) -> VoteResult:
        """Apply ``value`` from ``actor_id`` to a target and commit.

        Raises:
            ValidationError: If ``value`` is not -1, 0 or 1.
            NotFoundError: If the target does not exist or is deleted.
            ConflictError: If a concurrent change keeps conflicting with this one.
        """
        if value not in VALID_VOTE_VALUES:
            raise ValidationError("Vote value must be -1, 0 or 1")

        target = cls.get_target(db, target_id, target_kind)
        author_id = target.author_id

        existing = cls.get_vote(db, actor_id, target_id, target_kind)
        try:
            action = cls._apply(db, existing, actor_id, target_id, target_kind, value)
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.info(
                "Concurrent vote by user %s on %s %s; converting to update",
                actor_id, target_kind.value, target_id,
            )
            try:
                action = cls._convert_conflict(db, actor_id, target_id, target_kind, value)
                db.flush()
            except IntegrityError as err:
                db.rollback()
                logger.warning(
                    "Vote by user %s on %s %s conflicted twice; giving up",
                    actor_id, target_kind.value, target_id,
                )
                raise ConflictError("The vote changed concurrently, please retry") from err
            target = cls.get_target(db, target_id, target_kind)

        score = cls.score_for(db, target_id, target_kind)
        target.score = score
        db.commit()

        current = cls.get_vote(db, actor_id, target_id, target_kind)
        return VoteResult(
            action=action,
            value=current.value if current is not None else 0,
            score=score,
            author_id=author_id,
        )

    @staticmethod
    def _apply(
        db: Session,
        existing: Vote | None,
        actor_id: int,
        target_id: int,
        target_kind: VoteTarget,
        value: int,
    ) -> VoteAction:
        if existing is None:
            if value == 0:
                return VoteAction.UNCHANGED
            db.add(
                Vote(
                    user_id=actor_id,
                    target_kind=target_kind.value,
                    target_id=target_id,
                    value=value,
                )
            )
            return VoteAction.CREATED

        # Repeating the held value cancels it, as does an explicit 0.
        if value == 0 or existing.value == value:
            db.delete(existing)
            return VoteAction.REMOVED

        existing.value = value
        return VoteAction.UPDATED

    @classmethod
    def _convert_conflict(
        cls,
        db: Session,
        actor_id: int,
        target_id: int,
        target_kind: VoteTarget,
        value: int,
    ) -> VoteAction:
        """Resolve a lost insert race: the row exists now, so set it to ``value``."""
        winner = cls.get_vote(db, actor_id, target_id, target_kind)
        if winner is None:
            # The competing row vanished again; nothing left to reconcile against.
            return cls._apply(db, None, actor_id, target_id, target_kind, value)
        if winner.value == value:
            return VoteAction.UNCHANGED
        winner.value = value
        return VoteAction.UPDATED
