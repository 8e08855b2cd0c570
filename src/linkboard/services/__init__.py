# src/linkboard/services/__init__.py
"""Business logic services for the Linkboard application."""

from .live import ConnectionRegistry
from .moderation import ModerationCoordinator
from .notifications import NotificationDispatcher
from .permissions import Permission, PermissionSet
from .votes import VoteAction, VoteLedger, VoteResult

__all__ = [
    "ConnectionRegistry",
    "ModerationCoordinator",
    "NotificationDispatcher",
    "Permission",
    "PermissionSet",
    "VoteAction",
    "VoteLedger",
    "VoteResult",
]
