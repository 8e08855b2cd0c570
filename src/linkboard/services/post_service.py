"""Service-level helpers for posts and comments."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from urllib.parse import urlparse

from sqlalchemy.orm import Session

from linkboard.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from linkboard.core.settings import settings
from linkboard.db.time import utcnow
from linkboard.models import (
    Comment,
    Post,
    PostMedia,
    Subreddit,
    SubredditModerator,
    SubredditSubscription,
    User,
)
from linkboard.schemas.post import CommentCreate, MediaError, MediaItem, PostCreate, PostUpdate
from linkboard.services.karma import POST_CREATED_REASON, record_karma_event
from linkboard.services.permissions import Permission, can_moderate, can_post

logger = logging.getLogger(__name__)

MEDIA_TYPES = frozenset({"image", "video"})


def preview(text: str, length: int | None = None) -> str:
    """Shorten ``text`` for notification bodies."""
    limit = length or settings.notification_preview_length
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."


def validate_media(items: Sequence[MediaItem]) -> tuple[list[MediaItem], list[MediaError]]:
    """Split media descriptors into accepted items and per-item errors.

    Each item is judged on its own; a rejected item never fails the post.
    """
    accepted: list[MediaItem] = []
    errors: list[MediaError] = []
    for index, item in enumerate(items):
        if len(accepted) >= settings.post_max_media_items:
            errors.append(MediaError(
                index=index,
                detail=f"At most {settings.post_max_media_items} media items are allowed",
            ))
            continue
        if item.type not in MEDIA_TYPES:
            errors.append(MediaError(index=index, detail=f"Unsupported media type: {item.type}"))
            continue
        parsed = urlparse(item.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(MediaError(index=index, detail="Media URL must be an absolute http(s) URL"))
            continue
        accepted.append(item)
    return accepted, errors


def get_post_or_404(db: Session, post_id: int) -> Post:
    """Return a live post; soft-deleted posts count as missing."""
    post = db.query(Post).filter(Post.id == post_id, Post.is_deleted.is_(False)).first()
    if post is None:
        raise NotFoundError("Post not found")
    return post


def get_comment_or_404(db: Session, comment_id: int) -> Comment:
    comment = db.query(Comment).filter(
        Comment.id == comment_id, Comment.is_deleted.is_(False)
    ).first()
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


def create_post(db: Session, author: User, data: PostCreate) -> tuple[Post, list[MediaError]]:
    """Create a post in a subreddit the author may post to.

    The author is credited with a karma event for the new post.

    Returns:
        The post and the media items that were refused.

    Raises:
        NotFoundError: If the subreddit does not exist.
        PermissionDeniedError: If the author is neither a moderator nor a
            subscriber of the subreddit.
    """
    if db.get(Subreddit, data.subreddit_id) is None:
        raise NotFoundError("Subreddit not found")
    if not can_post(db, author.id, data.subreddit_id):
        raise PermissionDeniedError("You do not have permission to post in this subreddit")

    accepted, media_errors = validate_media(data.media)
    post = Post(
        title=data.title,
        content=data.content,
        author_id=author.id,
        subreddit_id=data.subreddit_id,
    )
    post.media = [PostMedia(media_type=item.type, url=item.url) for item in accepted]
    db.add(post)
    db.commit()
    db.refresh(post)

    record_karma_event(
        db,
        author.id,
        settings.post_karma_reward,
        POST_CREATED_REASON,
        source_id=post.id,
        source_type="post",
    )
    db.refresh(post)
    if media_errors:
        logger.info("Post %s created with %d rejected media items", post.id, len(media_errors))
    return post, media_errors


def post_audience(db: Session, post: Post) -> set[int]:
    """Subscribers and moderators of the post's subreddit, excluding the author."""
    subscriber_ids = db.query(SubredditSubscription.user_id).filter(
        SubredditSubscription.subreddit_id == post.subreddit_id
    )
    moderator_ids = db.query(SubredditModerator.user_id).filter(
        SubredditModerator.subreddit_id == post.subreddit_id
    )
    audience = {row[0] for row in subscriber_ids} | {row[0] for row in moderator_ids}
    audience.discard(post.author_id)
    return audience


def update_post(db: Session, actor: User, post_id: int, data: PostUpdate) -> Post:
    """Apply an author edit."""
    post = get_post_or_404(db, post_id)
    if post.author_id != actor.id:
        raise PermissionDeniedError("You can only edit your own posts")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(post, key, value)
    post.updated_at = utcnow()
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, actor: User, post_id: int, reason: str | None = None) -> Post:
    """Soft-delete a post as its author or as a moderator holding MANAGE_POSTS."""
    post = get_post_or_404(db, post_id)
    if post.author_id != actor.id and not can_moderate(
        db, actor.id, post.subreddit_id, Permission.MANAGE_POSTS
    ):
        raise PermissionDeniedError("You do not have permission to delete this post")

    post.is_deleted = True
    post.delete_reason = reason
    db.commit()
    logger.info("Post %s deleted by user %s", post.id, actor.id)
    return post


def list_posts(
    db: Session,
    *,
    subreddit_id: int | None = None,
    author_id: int | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Post]:
    """Return live posts, newest first."""
    query = db.query(Post).filter(Post.is_deleted.is_(False))
    if subreddit_id is not None:
        query = query.filter(Post.subreddit_id == subreddit_id)
    if author_id is not None:
        query = query.filter(Post.author_id == author_id)
    return query.order_by(Post.created_at.desc(), Post.id.desc()).offset(offset).limit(limit).all()


def create_comment(db: Session, author: User, post_id: int, data: CommentCreate) -> Comment:
    """Add a comment to a live post, optionally replying to another comment."""
    post = get_post_or_404(db, post_id)
    if data.parent_id is not None:
        parent = get_comment_or_404(db, data.parent_id)
        if parent.post_id != post.id:
            raise ValidationError("Parent comment belongs to a different post")

    comment = Comment(
        content=data.content,
        author_id=author.id,
        post_id=post.id,
        parent_id=data.parent_id,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def list_comments(db: Session, *, post_id: int | None = None, author_id: int | None = None) -> list[Comment]:
    query = db.query(Comment).filter(Comment.is_deleted.is_(False))
    if post_id is not None:
        query = query.filter(Comment.post_id == post_id)
    if author_id is not None:
        query = query.filter(Comment.author_id == author_id)
    return query.order_by(Comment.created_at.asc(), Comment.id.asc()).all()


def _comment_subreddit_id(db: Session, comment: Comment) -> int:
    post = db.get(Post, comment.post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post.subreddit_id


def update_comment(db: Session, actor: User, comment_id: int, content: str) -> Comment:
    """Edit a comment as its author or as a moderator holding MANAGE_COMMENTS."""
    comment = get_comment_or_404(db, comment_id)
    if comment.author_id != actor.id and not can_moderate(
        db, actor.id, _comment_subreddit_id(db, comment), Permission.MANAGE_COMMENTS
    ):
        raise PermissionDeniedError("You do not have permission to edit this comment")

    comment.content = content
    comment.updated_at = utcnow()
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, actor: User, comment_id: int) -> None:
    """Soft-delete a comment as its author or as a MANAGE_COMMENTS moderator."""
    comment = get_comment_or_404(db, comment_id)
    if comment.author_id != actor.id and not can_moderate(
        db, actor.id, _comment_subreddit_id(db, comment), Permission.MANAGE_COMMENTS
    ):
        raise PermissionDeniedError("You do not have permission to delete this comment")

    comment.is_deleted = True
    db.commit()
    logger.info("Comment %s deleted by user %s", comment.id, actor.id)
