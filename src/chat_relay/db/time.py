"""Time utilities for chat timestamps."""

from datetime import UTC, datetime


def now_ms() -> int:
    """Return the current UTC time as integer milliseconds since the epoch."""
    return int(datetime.now(UTC).timestamp() * 1000)
