"""Post and comment endpoints for the Linkboard API."""

from fastapi import APIRouter, Body, Query, status

from linkboard.models import Comment, Post
from linkboard.schemas.post import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    PostCreate,
    PostCreateResponse,
    PostDelete,
    PostResponse,
    PostUpdate,
)
from linkboard.services import post_service
from linkboard.services.post_service import preview

from ..dependencies import CurrentUserDep, DispatcherDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])
comments_router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/", response_model=list[PostResponse])
async def list_posts(
    _current_user: CurrentUserDep,
    db: SessionDep,
    subreddit_id: int | None = Query(None, description="Filter by subreddit"),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of posts to return"),
    offset: int = Query(0, ge=0),
) -> list[Post]:
    """List live posts, newest first."""
    return post_service.list_posts(db, subreddit_id=subreddit_id, limit=limit, offset=offset)


@router.post("/", response_model=PostCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    dispatcher: DispatcherDep,
) -> dict[str, object]:
    """Create a post and notify the subreddit's subscribers and moderators.

    Media items that fail validation are dropped from the post and listed
    in ``media_errors``.
    """
    post, media_errors = post_service.create_post(db, current_user, payload)
    await dispatcher.notify_many(
        db,
        actor_id=current_user.id,
        recipient_ids=post_service.post_audience(db, post),
        type="post",
        content=f"New post by {current_user.username}: {preview(post.title)}",
        source_id=post.id,
        source_type="post",
    )
    return {
        **PostResponse.model_validate(post).model_dump(),
        "media_errors": [error.model_dump() for error in media_errors],
    }


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, _current_user: CurrentUserDep, db: SessionDep) -> Post:
    return post_service.get_post_or_404(db, post_id)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    payload: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Post:
    return post_service.update_post(db, current_user, post_id, payload)


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    payload: PostDelete | None = Body(None),
) -> dict[str, str]:
    """Soft-delete a post as its author or a moderator with MANAGE_POSTS."""
    post_service.delete_post(db, current_user, post_id, payload.reason if payload else None)
    return {"message": "Post deleted"}


@router.get("/{post_id}/comments", response_model=list[CommentResponse])
async def list_post_comments(post_id: int, _current_user: CurrentUserDep, db: SessionDep) -> list[Comment]:
    post_service.get_post_or_404(db, post_id)
    return post_service.list_comments(db, post_id=post_id)


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: int,
    payload: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    dispatcher: DispatcherDep,
) -> Comment:
    """Comment on a post and notify the post's author."""
    comment = post_service.create_comment(db, current_user, post_id, payload)
    post = post_service.get_post_or_404(db, post_id)
    await dispatcher.notify(
        db,
        actor_id=current_user.id,
        recipient_id=post.author_id,
        type="comment",
        content=f"{current_user.username} commented on your post: {preview(comment.content)}",
        source_id=post.id,
        source_type="post",
    )
    return comment


@comments_router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(comment_id: int, _current_user: CurrentUserDep, db: SessionDep) -> Comment:
    return post_service.get_comment_or_404(db, comment_id)


@comments_router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    payload: CommentUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Comment:
    return post_service.update_comment(db, current_user, comment_id, payload.content)


@comments_router.delete("/{comment_id}")
async def delete_comment(comment_id: int, current_user: CurrentUserDep, db: SessionDep) -> dict[str, str]:
    post_service.delete_comment(db, current_user, comment_id)
    return {"message": "Comment deleted"}
