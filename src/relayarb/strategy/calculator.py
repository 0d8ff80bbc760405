"""
Round-trip profit calculation.

Prices a base -> candidate -> base route from two aggregator quotes.
All arithmetic on amounts stays in integer atomic units; only the
derived prices and percentages are floats.
"""

from dataclasses import dataclass

from relayarb.core.types import Opportunity, Quote
from relayarb.utils.math import percent_change, safe_divide


@dataclass(slots=True, frozen=True)
class RoundTrip:
    """Profitability of one quoted round trip."""

    amount_in: int
    amount_out: int
    buy_price: float
    sell_price: float
    profit_units: int
    profit_percent: float

    @property
    def is_profitable(self) -> bool:
        """Check if the trip returns more than it spends."""
        return self.profit_units > 0


def calculate_round_trip(amount_in: int, forward: Quote, reverse: Quote) -> RoundTrip:
    """
    Compute prices and profit for a quoted round trip.

    Args:
        amount_in: Base units sent into the forward leg.
        forward: Base -> candidate quote.
        reverse: Candidate -> base quote, sized to forward.out_amount.

    Returns:
        RoundTrip with buy price (candidate per base unit), sell price
        (base per candidate unit), profit in base units and percent.
    """
    amount_out = reverse.out_amount
    profit_units = amount_out - amount_in

    return RoundTrip(
        amount_in=amount_in,
        amount_out=amount_out,
        buy_price=safe_divide(forward.out_amount, amount_in),
        sell_price=safe_divide(reverse.out_amount, forward.out_amount),
        profit_units=profit_units,
        profit_percent=percent_change(amount_in, amount_out),
    )


def build_opportunity(
    base_mint: str,
    candidate_mint: str,
    trip: RoundTrip,
    forward: Quote,
    reverse: Quote,
) -> Opportunity:
    """Wrap a priced round trip into an Opportunity."""
    return Opportunity(
        input_asset=base_mint,
        output_asset=candidate_mint,
        amount_in=trip.amount_in,
        buy_price=trip.buy_price,
        sell_price=trip.sell_price,
        profit_percent=trip.profit_percent,
        profit_units=trip.profit_units,
        quotes=(forward, reverse),
    )
