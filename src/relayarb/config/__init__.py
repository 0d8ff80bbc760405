"""Configuration module for the relay arbitrage bot."""

from relayarb.config.constants import (
    GATEWAY_API_URL,
    JUPITER_API_URL,
    LAMPORTS_PER_SOL,
    SOL_MINT,
)
from relayarb.config.settings import (
    ServerSettings,
    Settings,
    get_server_settings,
    get_settings,
    load_settings,
)


__all__ = [
    "GATEWAY_API_URL",
    "JUPITER_API_URL",
    "LAMPORTS_PER_SOL",
    "SOL_MINT",
    "ServerSettings",
    "Settings",
    "get_server_settings",
    "get_settings",
    "load_settings",
]
