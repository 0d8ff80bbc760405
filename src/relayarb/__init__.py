"""
Relay Arbitrage Bot.

An asynchronous trading bot that scans round-trip swap routes on Solana
through the Jupiter aggregator and relays profitable trades through the
Gateway transaction-delivery service.
"""

__version__ = "1.0.0"
__author__ = "Tim"
