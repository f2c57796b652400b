"""Wire frames exchanged over the relay's websocket."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

# ---------------------------------------------------------------------------
# Client -> server
# ---------------------------------------------------------------------------


class _InboundFrame(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SayFrame(_InboundFrame):
    """Post a message to a channel.

    `ts` and `uuid` are strict: they are stored and echoed back as the
    client's own identifiers, so a value that would need coercing is rejected
    instead of being rewritten.
    """

    type: Literal["say"]
    channel: str | None = None
    text: str | None = None
    ts: StrictInt | None = None
    sender: str | None = Field(default=None, alias="from")
    resolution: str | None = None
    uuid: StrictStr | None = None


class HistoryRequestFrame(_InboundFrame):
    """Ask for the most recent messages of a channel.

    `limit` is left untyped here; the history service decides how to clamp
    whatever the client sent.
    """

    type: Literal["history"]
    channel: str | None = None
    limit: Any = None


class PingFrame(_InboundFrame):
    """Latency probe; `ts` is echoed back verbatim."""

    type: Literal["ping"]
    ts: Any = None


class UnknownFrame(BaseModel):
    """Any JSON value that is not one of the recognised frame kinds."""

    payload: Any = None


# ---------------------------------------------------------------------------
# Server -> client
# ---------------------------------------------------------------------------


class _OutboundFrame(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready payload using wire field names."""
        return self.model_dump(by_alias=True)


class MessageFrame(_OutboundFrame):
    """A chat line fanned out to every connection."""

    type: Literal["msg"] = "msg"
    channel: str
    sender: str = Field(alias="from")
    text: str
    ts: int
    from_ip: str | None = Field(alias="fromIp")


class HistoryFrame(_OutboundFrame):
    """A chronological history replay for one channel."""

    type: Literal["history"] = "history"
    channel: str
    items: list[dict[str, Any]] = Field(default_factory=list)


class PongFrame(_OutboundFrame):
    """Reply to a ping."""

    type: Literal["pong"] = "pong"
    ts: Any = None


class SysFrame(_OutboundFrame):
    """System notice. With `ip` set it is a connection-identity notice."""

    type: Literal["sys"] = "sys"
    text: str
    ts: int
    ip: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
