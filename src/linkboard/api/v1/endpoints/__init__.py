# src/linkboard/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .live import router as live_router
from .messages import router as messages_router
from .moderation import router as moderation_router
from .notifications import router as notifications_router
from .posts import comments_router
from .posts import router as posts_router
from .subreddits import router as subreddits_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "auth_router",
    "comments_router",
    "live_router",
    "messages_router",
    "moderation_router",
    "notifications_router",
    "posts_router",
    "subreddits_router",
    "users_router",
    "votes_router",
]
