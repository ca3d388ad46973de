"""Epoch unit conversion helpers."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

NANOS_PER_SECOND = 1_000_000_000
MILLIS_PER_SECOND = 1_000
# Epoch values above this are nanoseconds; below are milliseconds.
NANOS_THRESHOLD = 1_000_000_000_000_000


def nanos_to_datetime(value: int) -> datetime:
    seconds, remainder = divmod(int(value), NANOS_PER_SECOND)
    return datetime.fromtimestamp(seconds, tz=UTC).replace(microsecond=remainder // 1_000)


def millis_to_datetime(value: int) -> datetime:
    seconds, remainder = divmod(int(value), MILLIS_PER_SECOND)
    return datetime.fromtimestamp(seconds, tz=UTC).replace(microsecond=remainder * 1_000)


def format_timestamp(value: Any) -> str | None:
    """Render an epoch integer as ISO-8601; strings pass through unchanged."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return str(value)
    if value > NANOS_THRESHOLD:
        return nanos_to_datetime(int(value)).isoformat()
    return millis_to_datetime(int(value)).isoformat()
