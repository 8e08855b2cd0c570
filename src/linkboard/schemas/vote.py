"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class VoteCreate(BaseModel):
    """Schema for casting a vote on a post or comment."""

    value: Literal[-1, 0, 1] = Field(
        ..., description="1 = upvote, -1 = downvote, 0 = clear an existing vote"
    )


class VoteResponse(BaseModel):
    """Outcome of a vote cast."""

    action: str
    value: int = Field(..., description="The caller's vote after the cast; 0 when none")
    score: int


class MyVoteResponse(BaseModel):
    value: int
