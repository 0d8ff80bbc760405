"""Telemetry module for logging, statistics, and reporting."""

from relayarb.telemetry.logger import LogPipeline, setup_logging
from relayarb.telemetry.metrics import LatencyStats, StatsAggregator
from relayarb.telemetry.reporter import CLIReporter


__all__ = [
    "CLIReporter",
    "LatencyStats",
    "LogPipeline",
    "StatsAggregator",
    "setup_logging",
]
