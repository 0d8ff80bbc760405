"""Exchange integration module for the aggregator, relay and RPC."""

from relayarb.exchange.gateway import GatewayClient, RelaySendResult
from relayarb.exchange.jupiter import JupiterClient
from relayarb.exchange.models import BuildOptions, SendOptions
from relayarb.exchange.rpc import SolanaRpc


__all__ = [
    "BuildOptions",
    "GatewayClient",
    "JupiterClient",
    "RelaySendResult",
    "SendOptions",
    "SolanaRpc",
]
