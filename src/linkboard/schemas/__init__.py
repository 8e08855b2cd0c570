# src/linkboard/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .message import ConversationResponse, MessageCreate, MessageResponse
from .moderation import BanRequest, BanResponse, ModeratorAdd, ModeratorUpdate
from .notification import NotificationResponse
from .post import CommentCreate, CommentResponse, PostCreate, PostResponse
from .subreddit import SubredditCreate, SubredditResponse
from .user import RegisterRequest, TokenResponse, UserResponse
from .vote import VoteCreate, VoteResponse

__all__ = [
    "ConversationResponse", "MessageCreate", "MessageResponse",
    "BanRequest", "BanResponse", "ModeratorAdd", "ModeratorUpdate",
    "NotificationResponse",
    "CommentCreate", "CommentResponse", "PostCreate", "PostResponse",
    "SubredditCreate", "SubredditResponse",
    "RegisterRequest", "TokenResponse", "UserResponse",
    "VoteCreate", "VoteResponse",
]
