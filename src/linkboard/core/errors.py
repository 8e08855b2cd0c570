"""Domain errors raised by services and rendered by the API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import status


class LinkboardError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body for this error."""
        return {"detail": self.detail}


class ValidationError(LinkboardError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class AuthenticationError(LinkboardError):
    """The caller could not be identified."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"


class PermissionDeniedError(LinkboardError):
    """The permission resolver refused the action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action"


class NotFoundError(LinkboardError):
    """The targeted entity does not exist (or is soft-deleted)."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ConflictError(LinkboardError):
    """A uniqueness rule was violated."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Already exists"


class AccountBannedError(PermissionDeniedError):
    """The account is under an active platform-wide ban."""

    default_detail = "Your account has been banned"

    def __init__(self, reason: str | None = None, expires_at: datetime | None = None) -> None:
        super().__init__()
        self.reason = reason
        self.expires_at = expires_at

    def to_payload(self) -> dict[str, Any]:
        return {
            "detail": self.detail,
            "reason": self.reason,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


__all__ = [
    "AccountBannedError",
    "AuthenticationError",
    "ConflictError",
    "LinkboardError",
    "NotFoundError",
    "PermissionDeniedError",
    "ValidationError",
]
