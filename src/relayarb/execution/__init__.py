"""Execution module for signing and relaying trades."""

from relayarb.execution.executor import ChainRpc, TradeExecutor
from relayarb.execution.signer import TransactionSigner, load_keypair


__all__ = [
    "ChainRpc",
    "TradeExecutor",
    "TransactionSigner",
    "load_keypair",
]
