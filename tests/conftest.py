"""Shared pytest fixtures for backend tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Iterator

import mongomock
import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketState

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from agropal.realtime import Connection, Identity, RealtimeHub, build_realtime
from app.config import get_settings
from app.core.security import create_access_token
from app.main import app
from app.services.notifications import NotificationStore

USERS = [
    {"user_id": "farmer-1", "email": "ada@farm.ng", "full_name": "Ada Obi", "is_active": True},
    {"user_id": "farmer-2", "email": "bayo@farm.ng", "full_name": "Bayo Lawal", "is_active": True},
    {"user_id": "farmer-3", "email": "chidi@farm.ng", "full_name": "Chidi Eze", "is_active": True},
    {"user_id": "farmer-off", "email": "gone@farm.ng", "full_name": "Former Member", "is_active": False},
]


class AsyncCursor:
    """Awaitable facade over a mongomock cursor, shaped like motor's."""

    def __init__(self, cursor) -> None:
        self._cursor = cursor

    def sort(self, *args: Any, **kwargs: Any) -> "AsyncCursor":
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def skip(self, count: int) -> "AsyncCursor":
        self._cursor = self._cursor.skip(count)
        return self

    def limit(self, count: int) -> "AsyncCursor":
        self._cursor = self._cursor.limit(count)
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        documents = list(self._cursor)
        return documents if length is None else documents[:length]

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for document in self._cursor:
            yield document


class AsyncCollection:
    """The subset of motor's collection API the stores rely on."""

    def __init__(self, collection) -> None:
        self.sync = collection

    async def insert_one(self, document, *args: Any, **kwargs: Any):
        return self.sync.insert_one(document, *args, **kwargs)

    async def find_one(self, *args: Any, **kwargs: Any):
        return self.sync.find_one(*args, **kwargs)

    def find(self, *args: Any, **kwargs: Any) -> AsyncCursor:
        return AsyncCursor(self.sync.find(*args, **kwargs))

    async def count_documents(self, *args: Any, **kwargs: Any) -> int:
        return self.sync.count_documents(*args, **kwargs)

    async def update_one(self, *args: Any, **kwargs: Any):
        return self.sync.update_one(*args, **kwargs)

    async def update_many(self, *args: Any, **kwargs: Any):
        return self.sync.update_many(*args, **kwargs)

    async def delete_one(self, *args: Any, **kwargs: Any):
        return self.sync.delete_one(*args, **kwargs)

    async def delete_many(self, *args: Any, **kwargs: Any):
        return self.sync.delete_many(*args, **kwargs)

    async def create_indexes(self, *args: Any, **kwargs: Any):
        return self.sync.create_indexes(*args, **kwargs)


class AsyncDatabase:
    def __init__(self, database) -> None:
        self.sync = database

    def __getitem__(self, name: str) -> AsyncCollection:
        return AsyncCollection(self.sync[name])


class DummyWebSocket:
    def __init__(self) -> None:
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[dict[str, Any]] = []
        self.fail_sends = False

    async def send_json(self, payload: dict[str, Any]) -> None:
        if self.fail_sends:
            raise RuntimeError("Cannot call send once a close message has been sent.")
        self.sent.append(payload)

    def events(self) -> list[str]:
        return [message["type"] for message in self.sent]


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def database() -> AsyncDatabase:
    """Provide an isolated in-memory database seeded with a few users."""

    client = mongomock.MongoClient(tz_aware=True)
    db = client["agropal_test"]
    db["users"].insert_many([dict(user) for user in USERS])
    return AsyncDatabase(db)


@pytest.fixture()
def store(database) -> NotificationStore:
    return NotificationStore(database["notifications"])


@pytest.fixture()
def hub(database) -> RealtimeHub:
    return build_realtime(database, get_settings())


@pytest.fixture()
def connect_user(hub) -> Callable[..., Connection]:
    """Register a connection backed by a :class:`DummyWebSocket`."""

    def _connect(user_id: str, email: str | None = None) -> Connection:
        return hub.connect(DummyWebSocket(), Identity(user_id=user_id, email=email))

    return _connect


@pytest.fixture()
def token_for() -> Callable[[str], str]:
    def _token(user_id: str) -> str:
        return create_access_token({"sub": user_id})

    return _token


@pytest.fixture()
def client(database) -> Iterator[TestClient]:
    """Yield a FastAPI TestClient running against the in-memory database."""

    app.state.database = database
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        del app.state.database
