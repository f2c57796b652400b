"""Live connection tracking and broadcast fan-out.

Each accepted websocket is wrapped in a `Connection` and owned by a
`ConnectionRegistry`. Broadcasts go out concurrently to a snapshot of the
registry; every send produces a `SendResult` instead of raising, so one broken
transport never interrupts delivery to the others.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """The slice of a websocket the registry needs."""

    async def send_text(self, data: str) -> None: ...


class ConnectionState(str, Enum):
    """Liveness of a registered connection."""

    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(frozen=True)
class SendResult:
    """Outcome of one send attempt to one connection."""

    connection_id: str
    ok: bool
    error: str | None = None


@dataclass
class BroadcastResult:
    """Per-recipient outcomes of a single broadcast."""

    results: list[SendResult] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return sum(1 for result in self.results if result.ok)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if not result.ok)


@dataclass
class DeliveryStats:
    """Running totals of send outcomes, for observability."""

    delivered: int = 0
    failed: int = 0
    broadcasts: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, result: SendResult) -> None:
        with self._lock:
            if result.ok:
                self.delivered += 1
            else:
                self.failed += 1

    def record_broadcast(self) -> None:
        with self._lock:
            self.broadcasts += 1

    def as_dict(self) -> dict[str, int]:
        with self._lock:
            return {
                "broadcasts": self.broadcasts,
                "delivered": self.delivered,
                "failed": self.failed,
            }


def encode_frame(frame: Mapping[str, Any]) -> str:
    """Serialize an outbound frame to JSON text."""
    return json.dumps(frame, ensure_ascii=False, separators=(",", ":"))


class Connection:
    """One accepted client transport.

    The origin address is resolved once at accept time and cannot change.
    Sends are serialized through a per-connection lock so the client sees
    frames in the order they were issued.
    """

    def __init__(self, transport: Transport, address: str) -> None:
        self.id = uuid.uuid4().hex
        self.state = ConnectionState.OPEN
        self._address = address
        self._transport = transport
        self._send_lock = asyncio.Lock()

    @property
    def address(self) -> str:
        return self._address

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    async def send(self, frame: Mapping[str, Any]) -> SendResult:
        """Send one frame to this connection."""
        return await self.send_text(encode_frame(frame))

    async def send_text(self, data: str) -> SendResult:
        """Send pre-encoded text; never raises."""
        if not self.is_open:
            logger.debug("Skipping send to %s (%s): connection %s", self.id, self.address, self.state.value)
            return SendResult(self.id, ok=False, error="connection closed")
        async with self._send_lock:
            try:
                await self._transport.send_text(data)
            except Exception as exc:
                logger.warning("Send to %s (%s) failed: %s", self.id, self.address, exc)
                return SendResult(self.id, ok=False, error=str(exc) or type(exc).__name__)
        return SendResult(self.id, ok=True)

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, address={self.address!r}, state={self.state.value!r})"


class ConnectionRegistry:
    """Owns the set of live connections."""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._lock = threading.Lock()
        self.stats = DeliveryStats()

    def register(self, connection: Connection) -> None:
        with self._lock:
            self._connections[connection.id] = connection
        logger.debug("Registered %r (%d live)", connection, len(self))

    def unregister(self, connection: Connection) -> None:
        with self._lock:
            self._connections.pop(connection.id, None)
        logger.debug("Unregistered %r (%d live)", connection, len(self))

    def snapshot(self) -> list[Connection]:
        """Return the registered connections at this instant."""
        with self._lock:
            return list(self._connections.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, connection: object) -> bool:
        if not isinstance(connection, Connection):
            return False
        with self._lock:
            return connection.id in self._connections

    async def broadcast(self, frame: Mapping[str, Any]) -> BroadcastResult:
        """Send `frame` to every open connection concurrently.

        Membership may change while the broadcast is in flight; recipients are
        taken from a snapshot, so nothing live at the start is skipped.
        """
        data = encode_frame(frame)
        recipients = [conn for conn in self.snapshot() if conn.is_open]
        results = await asyncio.gather(*(conn.send_text(data) for conn in recipients))
        outcome = BroadcastResult(list(results))
        self.stats.record_broadcast()
        for result in outcome.results:
            self.stats.record(result)
        if outcome.failed:
            logger.warning(
                "Broadcast reached %d of %d connections", outcome.delivered, len(recipients)
            )
        return outcome

    def record(self, result: SendResult) -> None:
        """Fold a direct (non-broadcast) send outcome into the stats."""
        self.stats.record(result)
