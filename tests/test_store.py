"""Tests for the SQL-backed message store."""

import time

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chat_relay.models import ChatMessage
from chat_relay.schemas.chat import ChatEvent
from chat_relay.services.store import MessageStore, StoreQueryError, StoreWriteError


def _event(ts: int, channel: str = "#general", **kwargs: object) -> ChatEvent:
    fields = {"channel": channel, "text": f"t{ts}", "timestamp": ts, "sender_ip": "10.0.0.1"}
    fields.update(kwargs)
    return ChatEvent(**fields)


@pytest.mark.asyncio
async def test_append_persists_all_columns(store, session_factory) -> None:
    await store.append(
        _event(
            1000,
            sender_name="alice",
            client_metadata="1920x1080",
            client_uuid="uuid-1",
        )
    )

    with session_factory() as session:
        row = session.scalars(select(ChatMessage)).one()
    assert row.channel == "#general"
    assert row.ip == "10.0.0.1"
    assert row.text == "t1000"
    assert row.ts == 1000
    assert row.from_name == "alice"
    assert row.resolution == "1920x1080"
    assert row.uuid == "uuid-1"


@pytest.mark.asyncio
async def test_query_returns_latest_rows_oldest_first(store) -> None:
    for ts in (500, 100, 400, 200, 300):
        await store.append(_event(ts))

    events = await store.query_history("#general", 3)

    assert [e.timestamp for e in events] == [300, 400, 500]


@pytest.mark.asyncio
async def test_query_more_than_stored_returns_everything(store) -> None:
    await store.append(_event(2))
    await store.append(_event(1))

    events = await store.query_history("#general", 500)

    assert [e.timestamp for e in events] == [1, 2]


@pytest.mark.asyncio
async def test_query_is_scoped_to_channel(store) -> None:
    await store.append(_event(1, channel="#a"))
    await store.append(_event(2, channel="#b"))

    events = await store.query_history("#a", 10)

    assert [e.channel for e in events] == ["#a"]
    assert await store.query_history("#empty", 10) == []


@pytest.mark.asyncio
async def test_duplicate_submissions_are_kept(store) -> None:
    duplicate = _event(7, client_uuid="same")
    await store.append(duplicate)
    await store.append(duplicate)

    events = await store.query_history("#general", 10)

    assert len(events) == 2
    assert {e.client_uuid for e in events} == {"same"}


@pytest.fixture()
def unprovisioned_store() -> MessageStore:
    """A store pointed at a database where the table was never created."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    return MessageStore(sessionmaker(bind=engine))


@pytest.mark.asyncio
async def test_append_failure_raises_store_write_error(unprovisioned_store) -> None:
    with pytest.raises(StoreWriteError):
        await unprovisioned_store.append(_event(1))


@pytest.mark.asyncio
async def test_query_failure_raises_store_query_error(unprovisioned_store) -> None:
    with pytest.raises(StoreQueryError):
        await unprovisioned_store.query_history("#general", 10)


@pytest.mark.asyncio
async def test_store_timeout_is_reported_as_store_error(session_factory, mocker) -> None:
    store = MessageStore(session_factory, timeout=0.05)
    mocker.patch.object(store, "_append_sync", side_effect=lambda event: time.sleep(0.5))

    with pytest.raises(StoreWriteError, match="timed out"):
        await store.append(_event(1))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"timestamp": 10**20},
        {"text": "\ud800"},
    ],
    ids=["ts-beyond-bigint", "lone-surrogate"],
)
async def test_driver_conversion_errors_raise_store_write_error(store, overrides) -> None:
    with pytest.raises(StoreWriteError):
        await store.append(_event(1, **overrides))

    # The failed write must not poison later ones.
    await store.append(_event(2))
    assert [event.timestamp for event in await store.query_history("#general", 10)] == [2]
