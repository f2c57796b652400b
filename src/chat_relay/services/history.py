"""Bounded history replays over the message store."""

from __future__ import annotations

import math
from typing import Any

from chat_relay.schemas.chat import ChatEvent
from chat_relay.services.store import MessageStore

DEFAULT_HISTORY_LIMIT = 200
MIN_HISTORY_LIMIT = 1
MAX_HISTORY_LIMIT = 500


def clamp_history_limit(value: Any) -> int:
    """Turn a client-supplied limit into a row count in [1, 500].

    Missing, non-numeric and non-finite values fall back to the default of 200.
    Numeric strings are accepted; fractional values are floored.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_HISTORY_LIMIT
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return DEFAULT_HISTORY_LIMIT
    if not isinstance(value, (int, float)):
        return DEFAULT_HISTORY_LIMIT
    if isinstance(value, float):
        if not math.isfinite(value):
            return DEFAULT_HISTORY_LIMIT
        value = math.floor(value)
    return min(max(int(value), MIN_HISTORY_LIMIT), MAX_HISTORY_LIMIT)


class HistoryService:
    """Serve the most recent events of a channel in chronological order."""

    def __init__(self, store: MessageStore) -> None:
        self.store = store

    async def fetch(self, channel: str, limit: Any = None) -> list[ChatEvent]:
        """Return at most the clamped `limit` latest events, oldest first.

        Raises:
            StoreQueryError: If the underlying query fails.
        """
        events = await self.store.query_history(channel, clamp_history_limit(limit))
        # sorted() is stable, so equal timestamps keep the store's order.
        return sorted(events, key=lambda event: event.timestamp)
