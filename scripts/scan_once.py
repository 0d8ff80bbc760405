#!/usr/bin/env python3
"""
One-shot Scan Script.

Quotes every configured round trip once and prints the result
without trading or writing to the ledger.
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for direct execution
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from relayarb.config.constants import SCAN_PROFIT_THRESHOLD_PCT, SOL_MINT
from relayarb.config.settings import get_settings
from relayarb.core.types import mint_label
from relayarb.exchange.jupiter import JupiterClient
from relayarb.strategy.calculator import calculate_round_trip
from relayarb.utils.math import lamports_to_sol


async def main() -> int:
    """Quote each candidate route and display results."""
    print("=" * 60)
    print("  ROUND-TRIP SCAN")
    print("=" * 60)
    print()

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Error loading settings: {e}")
        return 1

    amount = settings.scan_amount_lamports
    print(f"Probe size: {lamports_to_sol(amount)} SOL on {settings.network}")
    print(f"Threshold:  {SCAN_PROFIT_THRESHOLD_PCT}% (trade at {settings.min_profit_percent}%)")
    print()

    found = 0
    async with JupiterClient(settings.jupiter_api_url, settings.slippage_bps) as quotes:
        print(f"{'Route':<22} {'Out (lamports)':>16} {'Profit %':>10}")
        print("-" * 52)

        for candidate in settings.candidate_mints:
            route = f"SOL -> {mint_label(candidate)} -> SOL"

            forward = await quotes.get_quote(SOL_MINT, candidate, amount)
            if forward is None:
                print(f"{route:<22} {'no quote':>16}")
                continue

            reverse = await quotes.get_quote(candidate, SOL_MINT, forward.out_amount)
            if reverse is None:
                print(f"{route:<22} {'no quote':>16}")
                continue

            trip = calculate_round_trip(amount, forward, reverse)
            marker = " *" if trip.profit_percent > SCAN_PROFIT_THRESHOLD_PCT else ""
            if marker:
                found += 1
            print(f"{route:<22} {trip.amount_out:>16,} {trip.profit_percent:>+10.4f}{marker}")

    print()
    print(f"Routes above threshold: {found}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
