# src/linkboard/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    comments_router,
    live_router,
    messages_router,
    moderation_router,
    notifications_router,
    posts_router,
    subreddits_router,
    users_router,
    votes_router,
)

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
