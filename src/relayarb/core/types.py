"""
Type definitions for the relay arbitrage bot.

This module contains the dataclasses, enums and Protocol definitions
shared across the scanner, executor, ledger and control surface.
Amounts are integer atomic units (lamports for SOL) unless noted.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Protocol

from relayarb.config.constants import MINT_SYMBOLS, VENUE_JUPITER
from relayarb.utils.math import safe_divide
from relayarb.utils.time import utc_now_iso


# =============================================================================
# Enums
# =============================================================================


class TxStatus(str, Enum):
    """Lifecycle of a relayed transaction."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


# =============================================================================
# Market Data Types
# =============================================================================


def mint_label(mint: str) -> str:
    """Short label for a mint address."""
    return MINT_SYMBOLS.get(mint, f"{mint[:6]}...")


@dataclass(slots=True, frozen=True)
class Quote:
    """
    Priced swap quote from the aggregator.

    The raw payload is kept verbatim so it can be posted back
    to the swap-build endpoint.
    """

    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int
    payload: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(slots=True, frozen=True)
class Opportunity:
    """
    A round trip base -> candidate -> base priced above the scan threshold.

    Frozen: persisted once and never updated.
    """

    input_asset: str
    output_asset: str
    amount_in: int
    buy_price: float
    sell_price: float
    profit_percent: float
    profit_units: int
    quotes: tuple[Quote, Quote]
    venue: str = VENUE_JUPITER

    @property
    def forward_quote(self) -> Quote:
        """Base -> candidate leg."""
        return self.quotes[0]

    @property
    def reverse_quote(self) -> Quote:
        """Candidate -> base leg."""
        return self.quotes[1]

    @property
    def path(self) -> str:
        """Human readable route, e.g. 'SOL -> USDC -> SOL'."""
        base = mint_label(self.input_asset)
        return f"{base} -> {mint_label(self.output_asset)} -> {base}"

    def to_dict(self) -> dict[str, Any]:
        """Export as a JSON-ready dict."""
        return {
            "path": self.path,
            "token_in": self.input_asset,
            "token_out": self.output_asset,
            "amount_in": self.amount_in,
            "buy_price": self.buy_price,
            "sell_price": self.sell_price,
            "profit_percent": self.profit_percent,
            "profit_units": self.profit_units,
            "quotes": [q.payload for q in self.quotes],
        }


# =============================================================================
# Execution Types
# =============================================================================


@dataclass(slots=True)
class TransactionRecord:
    """
    Outcome of one trade attempt.

    Attribute names match the ledger's `transactions` columns.
    A record leaves PENDING exactly once.
    """

    network: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    expected_profit: int
    status: TxStatus = TxStatus.PENDING
    tx_signature: str | None = None
    method: str | None = None
    dex: str = VENUE_JUPITER
    actual_profit: int | None = None
    cost_units: int = 0
    tip_units: int = 0
    refunded: bool = False
    latency_ms: int = 0
    error_message: str | None = None
    timestamp: str = field(default_factory=utc_now_iso)
    id: int | None = None

    @property
    def is_success(self) -> bool:
        """Check if the trade landed without error."""
        return self.status == TxStatus.SUCCESS

    @property
    def is_final(self) -> bool:
        """Check if the record reached a terminal state."""
        return self.status != TxStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        """Export as a JSON-ready dict."""
        return {
            "id": self.id,
            "tx_signature": self.tx_signature,
            "timestamp": self.timestamp,
            "network": self.network,
            "method": self.method,
            "dex": self.dex,
            "token_in": self.token_in,
            "token_out": self.token_out,
            "amount_in": self.amount_in,
            "amount_out": self.amount_out,
            "expected_profit": self.expected_profit,
            "actual_profit": self.actual_profit,
            "cost_units": self.cost_units,
            "tip_units": self.tip_units,
            "refunded": self.refunded,
            "status": self.status.value,
            "latency_ms": self.latency_ms,
            "error_message": self.error_message,
        }


# =============================================================================
# Statistics Types
# =============================================================================


@dataclass(slots=True)
class Stats:
    """
    In-memory trading counters of one control loop.

    Values only grow; a new loop starts from zero.
    """

    total_trades: int = 0
    successful_trades: int = 0
    total_profit: int = 0
    total_cost: int = 0
    relay_savings: float = 0.0

    @property
    def success_rate(self) -> float:
        """Successful trades as a percentage of all trades."""
        return safe_divide(self.successful_trades, self.total_trades) * 100

    def copy(self) -> "Stats":
        """Return a detached snapshot."""
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Export as a JSON-ready dict."""
        return {
            "totalTrades": self.total_trades,
            "successfulTrades": self.successful_trades,
            "successRate": self.success_rate,
            "totalProfit": self.total_profit,
            "totalCost": self.total_cost,
            "relaySavings": self.relay_savings,
        }


@dataclass(slots=True, frozen=True)
class LedgerSummary:
    """Aggregates computed from persisted transaction rows."""

    total_transactions: int = 0
    successful_transactions: int = 0
    average_latency: float = 0.0
    total_profit: int = 0
    total_cost: int = 0
    relay_savings: float = 0.0

    @property
    def success_rate(self) -> float:
        """Successful rows as a percentage of all rows."""
        return safe_divide(self.successful_transactions, self.total_transactions) * 100

    def to_dict(self) -> dict[str, Any]:
        """Export as a JSON-ready dict."""
        return {
            "totalTransactions": self.total_transactions,
            "successfulTransactions": self.successful_transactions,
            "successRate": self.success_rate,
            "avgLatency": self.average_latency,
            "totalProfit": self.total_profit,
            "totalCost": self.total_cost,
            "relaySavings": self.relay_savings,
        }


@dataclass(slots=True, frozen=True)
class BotState:
    """Externally visible state of the control loop."""

    is_running: bool
    stats: Stats


# =============================================================================
# Protocols
# =============================================================================


class QuoteSource(Protocol):
    """Protocol for swap quote providers."""

    async def get_quote(self, input_mint: str, output_mint: str, amount: int) -> Quote | None:
        """Fetch a quote, or None when unavailable."""
        ...

    async def build_swap(self, quote: Quote, user_public_key: str) -> str:
        """Return a base64 unsigned swap transaction for the quote."""
        ...


class TransactionObserver(Protocol):
    """Protocol for live transaction subscribers."""

    async def send_text(self, data: str) -> None:
        """Deliver one encoded event."""
        ...
