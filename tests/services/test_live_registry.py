"""Tests for the live connection registry."""

import pytest

from linkboard.services.live import ConnectionRegistry


class RecordingHandle:
    def __init__(self) -> None:
        self.frames = []

    async def send_json(self, data) -> None:
        self.frames.append(data)


@pytest.mark.asyncio
async def test_push_to_absent_user_returns_false() -> None:
    registry = ConnectionRegistry()

    assert await registry.push_to_user(1, "new_notification", {}) is False


@pytest.mark.asyncio
async def test_push_wraps_event_and_payload() -> None:
    registry = ConnectionRegistry()
    handle = RecordingHandle()
    registry.register(1, handle)

    assert await registry.push_to_user(1, "new_notification", {"id": 9}) is True
    assert handle.frames == [{"event": "new_notification", "data": {"id": 9}}]


def test_newer_connection_replaces_older() -> None:
    registry = ConnectionRegistry()
    old, new = RecordingHandle(), RecordingHandle()
    registry.register(1, old)
    registry.register(1, new)

    # The old socket disconnecting must not evict the new one.
    registry.unregister(1, old)

    assert registry.get(1) is new
    assert len(registry) == 1


def test_unregister_and_clear() -> None:
    registry = ConnectionRegistry()
    registry.register(1, RecordingHandle())
    registry.register(2, RecordingHandle())

    registry.unregister(1)
    assert not registry.is_connected(1)
    assert registry.is_connected(2)

    registry.clear()
    assert len(registry) == 0
