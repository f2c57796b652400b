"""Relay services: storage, history, connection registry and dispatch."""

from .history import HistoryService, clamp_history_limit
from .protocol import ProtocolError, parse_frame
from .registry import Connection, ConnectionRegistry, ConnectionState
from .relay import Relay, Reply, ReplyTarget
from .store import MessageStore, StoreError, StoreQueryError, StoreWriteError

__all__ = [
    "HistoryService", "clamp_history_limit",
    "ProtocolError", "parse_frame",
    "Connection", "ConnectionRegistry", "ConnectionState",
    "Relay", "Reply", "ReplyTarget",
    "MessageStore", "StoreError", "StoreQueryError", "StoreWriteError",
]
