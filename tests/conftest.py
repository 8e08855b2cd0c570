# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from itertools import count
from typing import Any

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_REQUESTS", "false")

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from linkboard.api.v1.dependencies import get_session_factory
from linkboard.core.security import create_access_token, hash_password
from linkboard.db.session import Base
from linkboard.db.session import get_db as app_get_session
from linkboard.main import app as fastapi_app
from linkboard.models import (
    Comment,
    ModeratorRole,
    Post,
    Subreddit,
    SubredditModerator,
    SubredditSubscription,
    User,
)
from linkboard.services.live import ConnectionRegistry
from linkboard.services.permissions import PermissionSet

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct-horse"

_USER_COUNTER = count(1)


class RecordingHandle:
    """Live handle that keeps every frame it is sent."""

    def __init__(self) -> None:
        self.frames: list[dict[str, Any]] = []

    async def send_json(self, data: Any) -> None:
        self.frames.append(data)

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.frames]


class BrokenHandle:
    """Live handle whose connection has gone away."""

    async def send_json(self, data: Any) -> None:
        raise ConnectionResetError("socket closed")


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    @contextmanager
    def _shared_session() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_session_factory] = lambda: _shared_session
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_session_factory, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def registry(app: FastAPI, client: TestClient) -> ConnectionRegistry:
    """The connection registry created by the app's startup hook."""
    return app.state.connections


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory persisting users with a known password."""

    def _make_user(username: str | None = None, *, is_admin: bool = False, **fields: Any) -> User:
        username = username or f"user{next(_USER_COUNTER)}"
        user = User(
            username=username,
            email=f"{username}@example.com",
            hashed_password=hash_password(TEST_PASSWORD),
            display_name=username.title(),
            is_admin=is_admin,
            **fields,
        )
        db_session.add(user)
        db_session.flush()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Primary test user; owns ``subreddit`` and authors ``test_post``."""
    return make_user("alice")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    return make_user("bob")


@pytest.fixture()
def admin_user(make_user: Callable[..., User]) -> User:
    return make_user("root", is_admin=True)


def auth_headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers_for(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return auth_headers_for(other_user)


@pytest.fixture()
def admin_auth_token(admin_user: User) -> dict[str, str]:
    return auth_headers_for(admin_user)


@pytest.fixture()
def subreddit(db_session: Session, test_user: User) -> Subreddit:
    """A subreddit owned by ``test_user``."""
    subreddit = Subreddit(name="python", description="All things Python", created_by_id=test_user.id)
    db_session.add(subreddit)
    db_session.flush()
    db_session.add(SubredditModerator(
        subreddit_id=subreddit.id,
        user_id=test_user.id,
        role=ModeratorRole.OWNER.value,
        permissions=PermissionSet.full().to_list(),
    ))
    db_session.add(SubredditSubscription(subreddit_id=subreddit.id, user_id=test_user.id))
    db_session.flush()
    db_session.refresh(subreddit)
    return subreddit


@pytest.fixture()
def add_moderator(db_session: Session) -> Callable[..., SubredditModerator]:
    """Factory adding a MODERATOR row with the given permission tokens."""

    def _add(subreddit: Subreddit, user: User, permissions: list[str]) -> SubredditModerator:
        moderator = SubredditModerator(
            subreddit_id=subreddit.id,
            user_id=user.id,
            role=ModeratorRole.MODERATOR.value,
            permissions=permissions,
        )
        db_session.add(moderator)
        db_session.flush()
        return moderator

    return _add


@pytest.fixture()
def subscribe(db_session: Session) -> Callable[[Subreddit, User], None]:
    def _subscribe(subreddit: Subreddit, user: User) -> None:
        db_session.add(SubredditSubscription(subreddit_id=subreddit.id, user_id=user.id))
        db_session.flush()

    return _subscribe


@pytest.fixture()
def test_post(db_session: Session, test_user: User, subreddit: Subreddit) -> Post:
    """A post by ``test_user`` in ``subreddit``."""
    post = Post(title="Hello world", content="First!", author_id=test_user.id, subreddit_id=subreddit.id)
    db_session.add(post)
    db_session.flush()
    db_session.refresh(post)
    return post


@pytest.fixture()
def test_comment(db_session: Session, test_user: User, test_post: Post) -> Comment:
    """A comment by ``test_user`` on ``test_post``."""
    comment = Comment(content="Nice post", author_id=test_user.id, post_id=test_post.id)
    db_session.add(comment)
    db_session.flush()
    db_session.refresh(comment)
    return comment


@pytest.fixture()
def connect(registry: ConnectionRegistry) -> Callable[[User], RecordingHandle]:
    """Register a recording live handle for a user."""

    def _connect(user: User) -> RecordingHandle:
        handle = RecordingHandle()
        registry.register(user.id, handle)
        return handle

    return _connect


@pytest.fixture()
def test_password() -> str:
    """Plain password of every user created by ``make_user``."""
    return TEST_PASSWORD


@pytest.fixture()
def connect_broken(registry: ConnectionRegistry) -> Callable[[User], None]:
    """Register a live handle that fails on every send."""

    def _connect(user: User) -> None:
        registry.register(user.id, BrokenHandle())

    return _connect


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    """Build authorization headers for any user."""
    return auth_headers_for
