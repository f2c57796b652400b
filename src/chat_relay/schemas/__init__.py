"""
Pydantic schemas for the relay's domain events and wire frames.

Wire frames keep the JSON field names clients already speak (`from`, `fromIp`)
through aliases; serialize them with `to_wire()`.
"""

from .chat import ChatEvent
from .frames import (
    HistoryFrame,
    HistoryRequestFrame,
    MessageFrame,
    PingFrame,
    PongFrame,
    SayFrame,
    SysFrame,
    UnknownFrame,
)

__all__ = [
    "ChatEvent",
    "SayFrame", "HistoryRequestFrame", "PingFrame", "UnknownFrame",
    "MessageFrame", "HistoryFrame", "PongFrame", "SysFrame",
]
