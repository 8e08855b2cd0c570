"""Registry of live client connections used for real-time push."""

from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class LiveHandle(Protocol):
    """Anything able to deliver a JSON frame; a Starlette WebSocket qualifies."""

    async def send_json(self, data: Any) -> None: ...


class ConnectionRegistry:
    """Maps a user id to the handle of their most recent live connection.

    One instance lives on ``app.state.connections`` for the lifetime of the
    server process; it is created on startup and cleared on shutdown.
    """

    def __init__(self) -> None:
        self._handles: dict[int, LiveHandle] = {}

    def register(self, user_id: int, handle: LiveHandle) -> None:
        """Attach ``handle`` to ``user_id``, replacing any previous one."""
        self._handles[user_id] = handle
        logger.info("Live connection registered for user %s", user_id)

    def unregister(self, user_id: int, handle: LiveHandle | None = None) -> None:
        """Drop the user's handle.

        When ``handle`` is given, only drop it if it is still the registered
        one, so a stale disconnect cannot evict a newer connection.
        """
        current = self._handles.get(user_id)
        if current is None:
            return
        if handle is not None and current is not handle:
            return
        del self._handles[user_id]
        logger.info("Live connection removed for user %s", user_id)

    def get(self, user_id: int) -> LiveHandle | None:
        return self._handles.get(user_id)

    def is_connected(self, user_id: int) -> bool:
        return user_id in self._handles

    def clear(self) -> None:
        self._handles.clear()

    def __len__(self) -> int:
        return len(self._handles)

    async def push_to_user(self, user_id: int, event: str, payload: Any) -> bool:
        """Send ``payload`` to the user's connection.

        Returns False without error when the user has no registered handle.
        Delivery errors propagate; callers treat the push as best-effort.
        """
        handle = self._handles.get(user_id)
        if handle is None:
            return False
        await handle.send_json({"event": event, "data": payload})
        return True
