"""Inbound frame dispatch and fan-out.

The relay is stateless between frames. Each frame is parsed into one of the
variants in `chat_relay.services.protocol`, handed to the handler for that
variant, and the handler's `Reply` says explicitly whether the answer goes
back to the sender or out to every connection.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from chat_relay.db.time import now_ms
from chat_relay.schemas.chat import ChatEvent
from chat_relay.schemas.frames import (
    HistoryFrame,
    HistoryRequestFrame,
    MessageFrame,
    PingFrame,
    PongFrame,
    SayFrame,
    SysFrame,
    UnknownFrame,
)
from chat_relay.services.history import HistoryService
from chat_relay.services.protocol import InboundFrame, ProtocolError, parse_frame
from chat_relay.services.registry import (
    BroadcastResult,
    Connection,
    ConnectionRegistry,
    SendResult,
)
from chat_relay.services.store import MessageStore, StoreError

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "#general"
DEFAULT_SENDER_NAME = "echo"
HISTORY_ERROR_TEXT = "history error"


class ReplyTarget(str, Enum):
    """Who receives a reply."""

    SENDER = "sender"
    BROADCAST = "broadcast"


@dataclass(frozen=True)
class Reply:
    """A frame together with its delivery target."""

    target: ReplyTarget
    frame: dict[str, Any]

    @classmethod
    def to_sender(cls, frame: Any) -> Reply:
        return cls(ReplyTarget.SENDER, frame.to_wire())

    @classmethod
    def to_all(cls, frame: Any) -> Reply:
        return cls(ReplyTarget.BROADCAST, frame.to_wire())


Handler = Callable[[Connection, Any], Awaitable[Reply]]


class Relay:
    """Turns inbound frames into persisted events and outbound deliveries."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        store: MessageStore,
        history: HistoryService | None = None,
        *,
        general_channel: str = DEFAULT_CHANNEL,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.registry = registry
        self.store = store
        self.history = history or HistoryService(store)
        self.general_channel = general_channel
        self._clock = clock
        self._handlers: dict[type, Handler] = {
            SayFrame: self._handle_say,
            HistoryRequestFrame: self._handle_history,
            PingFrame: self._handle_ping,
            UnknownFrame: self._handle_unknown,
        }

    async def handle(self, connection: Connection, raw: str | bytes) -> Reply:
        """Process one inbound frame from `connection` and deliver the reply."""
        try:
            frame: InboundFrame = parse_frame(raw)
        except ProtocolError as exc:
            logger.warning("Rejected frame from %s: %s", connection.address, exc)
            reply = Reply.to_sender(SysFrame(text=str(exc), ts=self._clock()))
        else:
            reply = await self._handlers[type(frame)](connection, frame)
        await self.deliver(connection, reply)
        return reply

    async def deliver(
        self, connection: Connection, reply: Reply
    ) -> BroadcastResult | SendResult:
        """Send `reply` to its target. Failures are logged, never raised."""
        if reply.target is ReplyTarget.BROADCAST:
            return await self.registry.broadcast(reply.frame)
        result = await connection.send(reply.frame)
        self.registry.record(result)
        if not result.ok:
            logger.info("Reply to %s dropped: %s", connection.address, result.error)
        return result

    async def _handle_say(self, connection: Connection, frame: SayFrame) -> Reply:
        channel = frame.channel if frame.channel is not None else self.general_channel
        text = frame.text if frame.text is not None else ""
        sender = frame.sender if frame.sender is not None else DEFAULT_SENDER_NAME
        # Echo the client's own ts so it can match the broadcast to its local copy.
        ts = frame.ts if frame.ts is not None else self._clock()

        event = ChatEvent(
            channel=channel,
            sender_ip=connection.address,
            text=text,
            timestamp=ts,
            sender_name=sender,
            client_metadata=frame.resolution,
            client_uuid=frame.uuid,
        )
        try:
            await self.store.append(event)
        except StoreError as exc:
            # Live delivery still goes ahead; the line just won't be replayable.
            logger.error("Failed to persist message on %s from %s: %s", channel, connection.address, exc)

        logger.info("broadcast -> %s [%s]: %s", connection.address, channel, text)
        return Reply.to_all(
            MessageFrame(channel=channel, sender=sender, text=text, ts=ts, from_ip=connection.address)
        )

    async def _handle_history(self, connection: Connection, frame: HistoryRequestFrame) -> Reply:
        channel = frame.channel if frame.channel is not None else self.general_channel
        try:
            events = await self.history.fetch(channel, frame.limit)
        except StoreError as exc:
            logger.error("History query for %s failed: %s", channel, exc)
            return Reply.to_sender(SysFrame(text=HISTORY_ERROR_TEXT, ts=self._clock()))
        return Reply.to_sender(
            HistoryFrame(channel=channel, items=[event.to_history_item() for event in events])
        )

    async def _handle_ping(self, connection: Connection, frame: PingFrame) -> Reply:
        ts = frame.ts if frame.ts is not None else self._clock()
        return Reply.to_sender(PongFrame(ts=ts))

    async def _handle_unknown(self, connection: Connection, frame: UnknownFrame) -> Reply:
        echoed = json.dumps(frame.payload, ensure_ascii=False, separators=(",", ":"))
        return Reply.to_sender(SysFrame(text=f"echo: {echoed}", ts=self._clock()))
