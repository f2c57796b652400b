"""Chat event schema shared by the relay and the message store."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class ChatEvent(BaseModel):
    """A validated chat post, as persisted and replayed.

    `client_uuid` and `timestamp` are carried through untouched so consumers
    can deduplicate across reconnects; the relay itself never does.
    """

    model_config = ConfigDict(frozen=True)

    channel: str
    sender_ip: str | None = None
    text: str = ""
    timestamp: int
    sender_name: str | None = None
    client_metadata: str | None = None
    client_uuid: str | None = None

    @classmethod
    def from_row(cls, row: Any) -> ChatEvent:
        """Build an event from a `ChatMessage` row."""
        return cls(
            channel=row.channel,
            sender_ip=row.ip,
            text=row.text or "",
            timestamp=int(row.ts),
            sender_name=row.from_name,
            client_metadata=row.resolution,
            client_uuid=row.uuid,
        )

    def to_history_item(self) -> dict[str, Any]:
        """Return the item shape used inside `history` frames."""
        return {
            "channel": self.channel,
            "ip": self.sender_ip,
            "text": self.text,
            "ts": self.timestamp,
            "from": self.sender_name,
            "resolution": self.client_metadata,
            "uuid": self.client_uuid,
        }
