# src/linkboard/models/__init__.py
"""SQLAlchemy models for the Linkboard application."""

from .karma import KarmaEvent
from .message import PrivateMessage
from .notification import Notification
from .post import Comment, Post, PostMedia
from .subreddit import (
    ModeratorRole,
    Subreddit,
    SubredditBan,
    SubredditModerator,
    SubredditSubscription,
)
from .user import Follow, User
from .vote import Vote, VoteTarget

__all__ = [
    "KarmaEvent",
    "PrivateMessage",
    "Notification",
    "Comment", "Post", "PostMedia",
    "ModeratorRole", "Subreddit", "SubredditBan", "SubredditModerator", "SubredditSubscription",
    "Follow", "User",
    "Vote", "VoteTarget",
]
