# tests/conftest.py
from __future__ import annotations

import json
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import chat_relay.models  # noqa: F401
from chat_relay.db.session import Base
from chat_relay.main import create_app
from chat_relay.services.history import HistoryService
from chat_relay.services.registry import Connection, ConnectionRegistry
from chat_relay.services.relay import Relay
from chat_relay.services.store import MessageStore

TEST_DB_URL = "sqlite://"
FIXED_NOW_MS = 1_700_000_000_000


class FakeTransport:
    """Records frames sent to it; optionally fails every send."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[str] = []
        self.fail = fail

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(data)

    @property
    def frames(self) -> list[dict[str, Any]]:
        return [json.loads(item) for item in self.sent]


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
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> MessageStore:
    return MessageStore(session_factory)


@pytest.fixture()
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture()
def relay(registry: ConnectionRegistry, store: MessageStore) -> Relay:
    return Relay(registry, store, HistoryService(store), clock=lambda: FIXED_NOW_MS)


@pytest.fixture()
def make_connection(registry: ConnectionRegistry) -> Callable[..., tuple[Connection, FakeTransport]]:
    """Create a registered connection backed by a FakeTransport."""

    def _make(address: str = "10.0.0.1", fail: bool = False) -> tuple[Connection, FakeTransport]:
        transport = FakeTransport(fail=fail)
        connection = Connection(transport, address)
        registry.register(connection)
        return connection, transport

    return _make


@pytest.fixture()
def app(store: MessageStore, registry: ConnectionRegistry) -> FastAPI:
    return create_app(store=store, registry=registry)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
