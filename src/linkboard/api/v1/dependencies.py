"""Shared API dependencies for authentication and common functionality."""

from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from linkboard.core.errors import AuthenticationError, PermissionDeniedError
from linkboard.core.security import decode_access_token
from linkboard.db.session import SessionLocal, get_db
from linkboard.models import User
from linkboard.services.live import ConnectionRegistry
from linkboard.services.moderation import ModerationCoordinator
from linkboard.services.notifications import NotificationDispatcher

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_session_factory() -> Callable[[], AbstractContextManager[Session]]:
    """Return a factory for sessions scoped to a ``with`` block.

    Long-lived handlers such as the live socket use it so that no pooled
    connection stays checked out for the life of the connection.
    """
    return SessionLocal


SessionFactoryDep = Annotated[
    Callable[[], AbstractContextManager[Session]], Depends(get_session_factory)
]


def resolve_token_user(db: Session, token: str) -> User:
    """Return the active user a bearer token belongs to.

    Expired account bans are lifted here, on the first authenticated
    request after their expiry.

    Raises:
        AuthenticationError: If the token is invalid or the user is gone.
        AccountBannedError: If the account is under an active ban.
    """
    user_id = decode_access_token(token)
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationError("User not found")
    ModerationCoordinator.enforce_account_ban(db, user)
    return user


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from the bearer token."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    return resolve_token_user(db, credentials.credentials)


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_current_admin(current_user: CurrentUserDep) -> User:
    if not current_user.is_admin:
        raise PermissionDeniedError("Administrator privileges required")
    return current_user


AdminUserDep = Annotated[User, Depends(get_current_admin)]


def get_connection_registry(request: Request) -> ConnectionRegistry:
    """Return the registry created at application startup."""
    return request.app.state.connections


def get_dispatcher(
    registry: Annotated[ConnectionRegistry, Depends(get_connection_registry)],
) -> NotificationDispatcher:
    return NotificationDispatcher(registry)


RegistryDep = Annotated[ConnectionRegistry, Depends(get_connection_registry)]
DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]
