"""Durable message store backed by SQLAlchemy.

Every call runs the blocking database work in a worker thread, so a slow
database only stalls the connection that asked for it. The shared engine pool
bounds how many of those calls talk to the database at once; the rest queue.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from chat_relay.db.session import get_session_factory
from chat_relay.models import ChatMessage
from chat_relay.schemas.chat import ChatEvent

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreError(RuntimeError):
    """Base exception raised when the message store cannot complete a call."""


class StoreWriteError(StoreError):
    """Raised when a chat event could not be persisted."""


class StoreQueryError(StoreError):
    """Raised when a history query could not be served."""


class MessageStore:
    """Append-and-query log of chat events keyed by channel."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            session_factory: Session factory to use. Defaults to the process-wide one.
            timeout: Optional upper bound in seconds on each store call.
        """
        self._session_factory = session_factory
        self._timeout = timeout

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    async def append(self, event: ChatEvent) -> None:
        """Insert one chat event.

        Raises:
            StoreWriteError: If the database or its driver rejects the write, or
                the database is unreachable.
        """
        await self._run(self._append_sync, event, error_cls=StoreWriteError)

    async def query_history(self, channel: str, limit: int) -> list[ChatEvent]:
        """Return up to `limit` most recent events of `channel`, oldest first.

        Raises:
            StoreQueryError: If the query fails.
        """
        return await self._run(self._query_sync, channel, limit, error_cls=StoreQueryError)

    async def _run(
        self, func: Callable[..., T], *args: object, error_cls: type[StoreError]
    ) -> T:
        call = asyncio.to_thread(func, *args)
        try:
            if self._timeout is None:
                return await call
            return await asyncio.wait_for(call, timeout=self._timeout)
        except TimeoutError as exc:
            raise error_cls(f"store call timed out after {self._timeout}s") from exc
        except SQLAlchemyError as exc:
            raise error_cls(str(exc)) from exc
        except (OverflowError, ValueError, TypeError) as exc:
            # Driver-level conversion errors surface unwrapped by SQLAlchemy.
            raise error_cls(f"{type(exc).__name__}: {exc}") from exc

    def _append_sync(self, event: ChatEvent) -> None:
        row = ChatMessage(
            channel=event.channel,
            ip=event.sender_ip,
            text=event.text,
            ts=event.timestamp,
            from_name=event.sender_name,
            resolution=event.client_metadata,
            uuid=event.client_uuid,
        )
        with self.session_factory() as session:
            session.add(row)
            session.commit()

    def _query_sync(self, channel: str, limit: int) -> list[ChatEvent]:
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.channel == channel)
            .order_by(ChatMessage.ts.desc(), ChatMessage.id.desc())
            .limit(limit)
        )
        with self.session_factory() as session:
            rows = list(session.scalars(stmt))
        rows.reverse()
        return [ChatEvent.from_row(row) for row in rows]
