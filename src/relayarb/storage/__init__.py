"""Storage module for the SQLite trade ledger."""

from relayarb.storage.ledger import Ledger


__all__ = [
    "Ledger",
]
