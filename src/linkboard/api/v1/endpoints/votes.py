"""Vote endpoints for posts and comments."""

from fastapi import APIRouter

from linkboard.models import VoteTarget
from linkboard.schemas.vote import MyVoteResponse, VoteCreate, VoteResponse
from linkboard.services.votes import VoteLedger, VoteResult

from ..dependencies import CurrentUserDep, DispatcherDep, SessionDep

router = APIRouter(prefix="/votes", tags=["votes"])


def _vote_payload(result: VoteResult) -> dict[str, object]:
    return {"action": result.action.value, "value": result.value, "score": result.score}


@router.post("/posts/{post_id}", response_model=VoteResponse)
async def vote_on_post(
    post_id: int,
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    dispatcher: DispatcherDep,
) -> dict[str, object]:
    """Cast, flip or clear the caller's vote on a post.

    Repeating the vote already held clears it. The author is notified when
    a vote is created or changed.
    """
    result = VoteLedger.cast_vote(db, current_user.id, post_id, VoteTarget.POST, vote_data.value)
    if result.should_notify:
        direction = "upvoted" if result.value > 0 else "downvoted"
        await dispatcher.notify(
            db,
            actor_id=current_user.id,
            recipient_id=result.author_id,
            type="vote",
            content=f"{current_user.username} {direction} your post",
            source_id=post_id,
            source_type="post",
        )
    return _vote_payload(result)


@router.post("/comments/{comment_id}", response_model=VoteResponse)
async def vote_on_comment(
    comment_id: int,
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    dispatcher: DispatcherDep,
) -> dict[str, object]:
    """Cast, flip or clear the caller's vote on a comment.

    Only upvotes notify the comment's author.
    """
    result = VoteLedger.cast_vote(
        db, current_user.id, comment_id, VoteTarget.COMMENT, vote_data.value
    )
    if result.should_notify and result.value > 0:
        await dispatcher.notify(
            db,
            actor_id=current_user.id,
            recipient_id=result.author_id,
            type="vote",
            content=f"{current_user.username} upvoted your comment",
            source_id=comment_id,
            source_type="comment",
        )
    return _vote_payload(result)


@router.get("/posts/{post_id}/my-vote", response_model=MyVoteResponse)
async def get_my_post_vote(post_id: int, current_user: CurrentUserDep, db: SessionDep) -> dict[str, int]:
    VoteLedger.get_target(db, post_id, VoteTarget.POST)
    vote = VoteLedger.get_vote(db, current_user.id, post_id, VoteTarget.POST)
    return {"value": vote.value if vote is not None else 0}


@router.get("/comments/{comment_id}/my-vote", response_model=MyVoteResponse)
async def get_my_comment_vote(
    comment_id: int, current_user: CurrentUserDep, db: SessionDep
) -> dict[str, int]:
    VoteLedger.get_target(db, comment_id, VoteTarget.COMMENT)
    vote = VoteLedger.get_vote(db, current_user.id, comment_id, VoteTarget.COMMENT)
    return {"value": vote.value if vote is not None else 0}
