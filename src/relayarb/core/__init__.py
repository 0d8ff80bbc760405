"""Core module containing the control loop, broadcaster, and type definitions."""

from relayarb.core.errors import (
    ControlConflictError,
    ExecutionError,
    FatalStartupError,
    LedgerError,
    RelayArbError,
    RelayError,
    TransientSourceError,
)
from relayarb.core.types import (
    BotState,
    LedgerSummary,
    Opportunity,
    Quote,
    Stats,
    TransactionRecord,
    TxStatus,
)


__all__ = [
    "BotState",
    "ControlConflictError",
    "ExecutionError",
    "FatalStartupError",
    "LedgerError",
    "LedgerSummary",
    "Opportunity",
    "Quote",
    "RelayArbError",
    "RelayError",
    "Stats",
    "TransactionRecord",
    "TransientSourceError",
    "TxStatus",
]
