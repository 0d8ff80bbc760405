"""
High-precision time utilities.

Provides microsecond-precision timestamps for latency measurement
and sortable UTC timestamps for ledger rows.
"""

import time
from datetime import UTC, datetime


def get_timestamp_us() -> int:
    """
    Get current timestamp in microseconds.

    Uses time.time_ns() for maximum precision, then converts to microseconds.

    Returns:
        Current Unix timestamp in microseconds.
    """
    return time.time_ns() // 1000


def utc_now_iso() -> str:
    """
    Current UTC time as an ISO 8601 string with microseconds.

    Fixed width, so lexical order matches chronological order.

    Example:
        >>> utc_now_iso()
        '2024-01-01T12:00:00.123456+00:00'
    """
    return datetime.now(tz=UTC).isoformat(timespec="microseconds")


class LatencyTimer:
    """
    Context manager for measuring operation latency.

    Example:
        >>> with LatencyTimer() as timer:
        ...     do_something()
        >>> print(f"Latency: {timer.latency_ms}ms")
    """

    __slots__ = ("start_us", "end_us", "latency_us")

    def __init__(self) -> None:
        self.start_us: int = 0
        self.end_us: int = 0
        self.latency_us: int = 0

    def __enter__(self) -> "LatencyTimer":
        self.start_us = get_timestamp_us()
        return self

    def __exit__(self, *args: object) -> None:
        self.end_us = get_timestamp_us()
        self.latency_us = self.end_us - self.start_us

    @property
    def latency_ms(self) -> int:
        """Elapsed time in whole milliseconds."""
        return self.latency_us // 1000
