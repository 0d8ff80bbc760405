"""
Trading constants and configuration values.

This module contains all hardcoded values used throughout the bot.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Network Endpoints
# =============================================================================

DEVNET_RPC_URL: Final[str] = "https://api.devnet.solana.com"

JUPITER_API_URL: Final[str] = "https://quote-api.jup.ag/v6"
GATEWAY_API_URL: Final[str] = "https://gateway.sanctum.so"

# Aggregator endpoints
ENDPOINT_QUOTE: Final[str] = "/quote"
ENDPOINT_SWAP: Final[str] = "/swap"

# Relay endpoints
ENDPOINT_TX_BUILD: Final[str] = "/v1/transaction/build"
ENDPOINT_TX_SEND: Final[str] = "/v1/transaction/send"


# =============================================================================
# Token Mints
# =============================================================================

SOL_MINT: Final[str] = "So11111111111111111111111111111111111111112"
USDC_MINT: Final[str] = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT: Final[str] = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"

DEFAULT_CANDIDATE_MINTS: Final[tuple[str, ...]] = (USDC_MINT, USDT_MINT)

# Short labels for console output
MINT_SYMBOLS: Final[dict[str, str]] = {
    SOL_MINT: "SOL",
    USDC_MINT: "USDC",
    USDT_MINT: "USDT",
}

# Venue label stored on every transaction and opportunity row
VENUE_JUPITER: Final[str] = "Jupiter"


# =============================================================================
# Units
# =============================================================================

LAMPORTS_PER_SOL: Final[int] = 1_000_000_000


# =============================================================================
# Quote Configuration
# =============================================================================

DEFAULT_SLIPPAGE_BPS: Final[int] = 50
QUOTE_TIMEOUT_MS: Final[int] = 5000
SWAP_TIMEOUT_MS: Final[int] = 10_000


# =============================================================================
# Relay Configuration
# =============================================================================

RELAY_BUILD_TIMEOUT_MS: Final[int] = 10_000
RELAY_SEND_TIMEOUT_MS: Final[int] = 30_000

DEFAULT_DELIVERY_METHOD: Final[str] = "optimized"
DEFAULT_TIP_LAMPORTS: Final[int] = 10_000
DEFAULT_PRIORITY_FEE: Final[str] = "auto"

# Method reported when the relay omits deliveryMethod
FALLBACK_DELIVERY_METHOD: Final[str] = "gateway"

# Share of the tip returned when the relay reports a refund
TIP_REFUND_RATIO: Final[float] = 0.9


# =============================================================================
# Trading Constraints
# =============================================================================

# Probe size for each round trip (0.01 SOL)
DEFAULT_SCAN_AMOUNT_LAMPORTS: Final[int] = 10_000_000

# Scanner keeps routes strictly above this profit (percent)
SCAN_PROFIT_THRESHOLD_PCT: Final[float] = 0.1

# Control loop skips opportunities below this profit (percent)
DEFAULT_MIN_PROFIT_PCT: Final[float] = 0.5

DEFAULT_MAX_POSITION_SIZE_SOL: Final[float] = 0.1

# Pre-flight wallet balance requirement
DEFAULT_MIN_BALANCE_SOL: Final[float] = 0.01

# Network fee estimate charged to every landed trade (0.0001 SOL)
DEFAULT_ESTIMATED_FEE_LAMPORTS: Final[int] = 100_000

# Placeholder shipped in sample env files
PLACEHOLDER_PRIVATE_KEY: Final[str] = "your_base58_private_key_here"


# =============================================================================
# Control Loop Pacing
# =============================================================================

DEFAULT_TRADE_DELAY_S: Final[float] = 3.0
DEFAULT_SCAN_INTERVAL_S: Final[float] = 15.0
DEFAULT_ERROR_BACKOFF_S: Final[float] = 5.0


# =============================================================================
# Storage
# =============================================================================

DEFAULT_DATABASE_PATH: Final[str] = "./gateway_bot.db"

DEFAULT_TRANSACTION_LIMIT: Final[int] = 50
MAX_TRANSACTION_LIMIT: Final[int] = 1000
OPPORTUNITY_LIMIT: Final[int] = 20


# =============================================================================
# Event Broadcasting
# =============================================================================

EVENT_TRANSACTION: Final[str] = "transaction"
OBSERVER_SEND_TIMEOUT: Final[float] = 2.0  # seconds


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000

# Rotation for the JSON lines log file
LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUP_COUNT: Final[int] = 3

# Rolling window for relay latency samples
LATENCY_WINDOW_SIZE: Final[int] = 500
