"""
Opportunity scanning.

Walks the candidate list, quotes each round trip through the
aggregator and keeps the routes that clear the scan threshold.
"""

import logging
from dataclasses import dataclass

from relayarb.config.constants import (
    DEFAULT_CANDIDATE_MINTS,
    DEFAULT_SCAN_AMOUNT_LAMPORTS,
    SCAN_PROFIT_THRESHOLD_PCT,
    SOL_MINT,
)
from relayarb.core.types import Opportunity, QuoteSource, mint_label
from relayarb.storage.ledger import Ledger
from relayarb.strategy.calculator import build_opportunity, calculate_round_trip


logger = logging.getLogger(__name__)


@dataclass
class ScanStats:
    """Statistics for opportunity scanning."""

    total_scans: int = 0
    candidates_checked: int = 0
    quotes_missing: int = 0
    opportunities_found: int = 0
    best_profit_pct: float = 0.0

    def record_opportunity(self, profit_pct: float) -> None:
        """Record an accepted opportunity."""
        self.opportunities_found += 1
        if profit_pct > self.best_profit_pct:
            self.best_profit_pct = profit_pct


class OpportunityScanner:
    """
    Finds profitable base -> candidate -> base round trips.

    Candidates are scanned sequentially in list order. A candidate whose
    quote is unavailable is skipped; any other per-candidate failure is
    logged and the scan moves on.
    """

    def __init__(
        self,
        quote_source: QuoteSource,
        ledger: Ledger,
        candidate_mints: list[str] | None = None,
        base_mint: str = SOL_MINT,
        amount: int = DEFAULT_SCAN_AMOUNT_LAMPORTS,
        threshold_pct: float = SCAN_PROFIT_THRESHOLD_PCT,
    ) -> None:
        """
        Initialize scanner.

        Args:
            quote_source: Aggregator client.
            ledger: Store receiving every accepted opportunity.
            candidate_mints: Intermediate assets, scanned in order.
            base_mint: Asset each round trip starts and ends in.
            amount: Base units probed per round trip.
            threshold_pct: Keep routes with profit strictly above this.
        """
        self._quotes = quote_source
        self._ledger = ledger
        self._candidates = list(candidate_mints or DEFAULT_CANDIDATE_MINTS)
        self._base_mint = base_mint
        self._amount = amount
        self._threshold_pct = threshold_pct
        self._stats = ScanStats()

    async def scan(self) -> list[Opportunity]:
        """
        Run one pass over all candidates.

        Returns:
            Accepted opportunities in candidate order. Each one has
            already been written to the ledger.
        """
        self._stats.total_scans += 1
        opportunities: list[Opportunity] = []

        for candidate in self._candidates:
            self._stats.candidates_checked += 1
            try:
                opportunity = await self._check_candidate(candidate)
            except Exception as e:
                logger.error(f"Scan failed for {mint_label(candidate)}: {e}")
                continue

            if opportunity is not None:
                opportunities.append(opportunity)

        logger.info(
            f"Scan #{self._stats.total_scans}: "
            f"{len(opportunities)}/{len(self._candidates)} routes above "
            f"{self._threshold_pct}%"
        )
        return opportunities

    async def _check_candidate(self, candidate: str) -> Opportunity | None:
        """Quote and price a single round trip."""
        forward = await self._quotes.get_quote(self._base_mint, candidate, self._amount)
        if forward is None:
            self._stats.quotes_missing += 1
            return None

        reverse = await self._quotes.get_quote(candidate, self._base_mint, forward.out_amount)
        if reverse is None:
            self._stats.quotes_missing += 1
            return None

        trip = calculate_round_trip(self._amount, forward, reverse)
        logger.debug(
            f"{mint_label(self._base_mint)} -> {mint_label(candidate)}: "
            f"out={trip.amount_out} profit={trip.profit_percent:.4f}%"
        )

        if trip.profit_percent <= self._threshold_pct:
            return None

        opportunity = build_opportunity(self._base_mint, candidate, trip, forward, reverse)
        self._ledger.record_opportunity(opportunity)
        self._stats.record_opportunity(opportunity.profit_percent)

        logger.info(
            f"Opportunity {opportunity.path}: "
            f"profit={opportunity.profit_percent:.4f}% ({opportunity.profit_units} units)"
        )
        return opportunity

    @property
    def stats(self) -> ScanStats:
        """Get scanning statistics."""
        return self._stats

    @property
    def candidates(self) -> list[str]:
        """Candidate mints in scan order."""
        return list(self._candidates)
