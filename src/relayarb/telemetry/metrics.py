"""
Metrics collection for trading statistics.

Accumulates per-session trade counters and keeps a rolling window
of relay latencies for console reporting.
"""

import time
from collections import deque
from dataclasses import dataclass

from relayarb.config.constants import LATENCY_WINDOW_SIZE, TIP_REFUND_RATIO
from relayarb.core.types import Stats, TransactionRecord


@dataclass
class LatencyStats:
    """Aggregated latency statistics in milliseconds."""

    min_ms: int = 0
    max_ms: int = 0
    avg_ms: float = 0.0
    p50_ms: int = 0
    p95_ms: int = 0
    count: int = 0


class StatsAggregator:
    """
    Accumulates trading statistics for one control loop.

    Accounting rules per finalized record:
    - every record counts as a trade and adds its cost
    - a success adds its expected profit
    - a refunded tip adds 90% of the tip to relay savings
    """

    def __init__(self, latency_window_size: int = LATENCY_WINDOW_SIZE) -> None:
        """
        Initialize aggregator.

        Args:
            latency_window_size: Number of relay latency samples kept.
        """
        self._stats = Stats()
        self._latencies: deque[int] = deque(maxlen=latency_window_size)
        self._start_time = time.time()

    def record(self, record: TransactionRecord) -> None:
        """
        Apply a finalized transaction record.

        Args:
            record: Record in SUCCESS or FAILED status.
        """
        if not record.is_final:
            raise ValueError("Only finalized records can be aggregated")

        self._stats.total_trades += 1
        if record.is_success:
            self._stats.successful_trades += 1
            self._stats.total_profit += record.expected_profit

        self._stats.total_cost += record.cost_units
        if record.refunded:
            self._stats.relay_savings += record.tip_units * TIP_REFUND_RATIO

        if record.latency_ms > 0:
            self._latencies.append(record.latency_ms)

    def get_latency_stats(self) -> LatencyStats:
        """
        Get relay latency statistics.

        Returns:
            LatencyStats over the rolling window.
        """
        if not self._latencies:
            return LatencyStats()

        samples = sorted(self._latencies)
        n = len(samples)

        return LatencyStats(
            min_ms=samples[0],
            max_ms=samples[-1],
            avg_ms=sum(samples) / n,
            p50_ms=samples[n // 2],
            p95_ms=samples[int(n * 0.95)] if n > 1 else samples[-1],
            count=n,
        )

    def snapshot(self) -> Stats:
        """Return a detached copy of the counters."""
        return self._stats.copy()

    @property
    def stats(self) -> Stats:
        """Live counters (do not mutate)."""
        return self._stats

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time
