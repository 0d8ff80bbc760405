"""
CLI reporter for session statistics.

Prints the end-of-session summary and one-line status updates
for the control loop.
"""

import sys
from datetime import timedelta
from typing import TextIO

from relayarb.telemetry.metrics import StatsAggregator
from relayarb.utils.math import lamports_to_sol


class CLIReporter:
    """
    Console output for a control loop session.

    Amounts are kept in lamports internally and shown in SOL.
    """

    def __init__(
        self,
        aggregator: StatsAggregator,
        network: str = "devnet",
        output: TextIO | None = None,
    ) -> None:
        """
        Initialize CLI reporter.

        Args:
            aggregator: Stats source.
            network: Cluster tag shown in the header.
            output: Output stream (default: stdout).
        """
        self._aggregator = aggregator
        self._network = network
        self._output = output or sys.stdout

    def _format_uptime(self, seconds: float) -> str:
        """Format uptime as HH:MM:SS."""
        td = timedelta(seconds=int(seconds))
        hours, remainder = divmod(int(td.total_seconds()), 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def _write(self, line: str = "") -> None:
        self._output.write(line + "\n")

    def get_status_line(self) -> str:
        """Get a single-line status update."""
        stats = self._aggregator.stats
        latency = self._aggregator.get_latency_stats()

        return (
            f"Trades: {stats.successful_trades}/{stats.total_trades} | "
            f"Profit: {lamports_to_sol(stats.total_profit):+.6f} SOL | "
            f"Cost: {lamports_to_sol(stats.total_cost):.6f} SOL | "
            f"Relay: {latency.avg_ms:.0f}ms"
        )

    def print_summary(self) -> None:
        """Print a final summary."""
        stats = self._aggregator.stats
        latency = self._aggregator.get_latency_stats()
        uptime = self._format_uptime(self._aggregator.uptime_seconds)

        self._write("\n" + "=" * 50)
        self._write(f"  SESSION SUMMARY ({self._network})")
        self._write("=" * 50)
        self._write(f"  Uptime: {uptime}")
        self._write()
        self._write("  TRADES:")
        self._write(f"    Total:        {stats.total_trades:,}")
        self._write(f"    Successful:   {stats.successful_trades:,}")
        self._write(f"    Success rate: {stats.success_rate:.2f}%")
        self._write()
        self._write("  RELAY LATENCY:")
        self._write(f"    Avg: {latency.avg_ms:.0f}ms  P95: {latency.p95_ms}ms  Max: {latency.max_ms}ms")
        self._write()
        self._write("  P&L:")
        self._write(f"    Profit:        {lamports_to_sol(stats.total_profit):+.9f} SOL")
        self._write(f"    Cost:          {lamports_to_sol(stats.total_cost):.9f} SOL")
        self._write(f"    Relay savings: {lamports_to_sol(stats.relay_savings):.9f} SOL")
        self._write("=" * 50)
        self._output.flush()
