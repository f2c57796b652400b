"""Parsing of inbound websocket frames into typed variants."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ValidationError

from chat_relay.schemas.frames import HistoryRequestFrame, PingFrame, SayFrame, UnknownFrame

InboundFrame = SayFrame | HistoryRequestFrame | PingFrame | UnknownFrame

_FRAME_MODELS: dict[str, type[BaseModel]] = {
    "say": SayFrame,
    "history": HistoryRequestFrame,
    "ping": PingFrame,
}


class ProtocolError(ValueError):
    """Raised when an inbound frame cannot be understood.

    The message is sent back to the offending client as-is.
    """


def parse_frame(raw: str | bytes) -> InboundFrame:
    """Decode one inbound frame.

    Args:
        raw: Text or UTF-8 bytes received from the client.

    Returns:
        The matching frame model, or `UnknownFrame` for anything without a
        recognised `type`.

    Raises:
        ProtocolError: If the data is not JSON, or a recognised frame carries
            fields of the wrong type.
    """
    try:
        payload: Any = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProtocolError("invalid json") from exc

    kind = payload.get("type") if isinstance(payload, dict) else None
    model = _FRAME_MODELS.get(kind) if isinstance(kind, str) else None
    if model is None:
        return UnknownFrame(payload=payload)
    try:
        return model.model_validate(payload)  # type: ignore[return-value]
    except ValidationError as exc:
        raise ProtocolError(f"invalid {kind} frame") from exc
