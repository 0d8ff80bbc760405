"""Utility functions for the relay arbitrage bot."""

from relayarb.utils.math import lamports_to_sol, percent_change, safe_divide
from relayarb.utils.time import LatencyTimer, get_timestamp_us, utc_now_iso


__all__ = [
    "LatencyTimer",
    "get_timestamp_us",
    "lamports_to_sol",
    "percent_change",
    "safe_divide",
    "utc_now_iso",
]
