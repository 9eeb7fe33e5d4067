"""Timestamp helpers shared by the path resolver and the record store."""

import time
from datetime import datetime, timedelta, timezone


def now_millis() -> int:
    """Current wall-clock time in integer milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def iso_from_millis(timestamp_ms: int) -> str:
    """Format a millisecond timestamp as ISO-8601 UTC with a trailing 'Z'.

    Example: 1768132800123 -> '2026-01-11T12:00:00.123Z'
    """
    seconds, millis = divmod(timestamp_ms, 1000)
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(milliseconds=millis)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return iso_from_millis(now_millis())


def millis_from_iso(value: str) -> int:
    """Parse an ISO-8601 timestamp (trailing 'Z' allowed) to milliseconds.

    Raises:
        ValueError: If the string is not ISO-8601
    """
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)
