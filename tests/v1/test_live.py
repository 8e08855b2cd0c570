"""Tests for the live WebSocket channel."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
from starlette.websockets import WebSocketDisconnect

from linkboard.api.v1.dependencies import get_session_factory
from linkboard.core.security import create_access_token
from linkboard.db.session import Base
from linkboard.models import User


def test_connect_registers_user(client, test_user, registry) -> None:
    token = create_access_token(test_user.id)

    with client.websocket_connect(f"/api/v1/live?token={token}") as websocket:
        frame = websocket.receive_json()
        assert frame == {"event": "connected", "data": {"user_id": test_user.id}}
        assert registry.is_connected(test_user.id)

    assert not registry.is_connected(test_user.id)


def test_invalid_token_rejected(client, registry) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/api/v1/live?token=not-a-jwt") as websocket:
            websocket.receive_json()

    assert excinfo.value.code == 1008
    assert len(registry) == 0


def test_banned_user_rejected(client, test_user, db_session) -> None:
    test_user.is_banned = True
    test_user.ban_reason = "Spam"
    db_session.flush()
    token = create_access_token(test_user.id)

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/api/v1/live?token={token}") as websocket:
            websocket.receive_json()


def test_open_socket_holds_no_pooled_connection(app, client, tmp_path) -> None:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'live.db'}",
        poolclass=QueuePool,
        pool_size=1,
        max_overflow=0,
        pool_timeout=1,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    with session_factory() as session:
        user = User(username="carol", email="carol@example.com", hashed_password="unused")
        session.add(user)
        session.commit()
        user_id = user.id

    shared_factory = app.dependency_overrides[get_session_factory]
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    try:
        token = create_access_token(user_id)
        with client.websocket_connect(f"/api/v1/live?token={token}") as websocket:
            assert websocket.receive_json()["event"] == "connected"
            assert engine.pool.checkedout() == 0
            # The single pooled connection is still free for other work.
            with session_factory() as session:
                assert session.get(User, user_id) is not None
    finally:
        app.dependency_overrides[get_session_factory] = shared_factory
        engine.dispose()
