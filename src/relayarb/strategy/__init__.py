"""Strategy module for round-trip scanning and profit calculation."""

from relayarb.strategy.calculator import RoundTrip, build_opportunity, calculate_round_trip
from relayarb.strategy.scanner import OpportunityScanner, ScanStats


__all__ = [
    "OpportunityScanner",
    "RoundTrip",
    "ScanStats",
    "build_opportunity",
    "calculate_round_trip",
]
