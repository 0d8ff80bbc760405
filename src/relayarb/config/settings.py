"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.

`ServerSettings` covers what the control surface needs to boot.
`Settings` adds the trading configuration, which is read again on every
bot start so a bad trading value fails that start instead of the server.
"""

from functools import lru_cache
from typing import Literal

from pydantic import (
    AliasChoices,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from relayarb.config.constants import (
    DEFAULT_CANDIDATE_MINTS,
    DEFAULT_DATABASE_PATH,
    DEFAULT_DELIVERY_METHOD,
    DEFAULT_ERROR_BACKOFF_S,
    DEFAULT_ESTIMATED_FEE_LAMPORTS,
    DEFAULT_MAX_POSITION_SIZE_SOL,
    DEFAULT_MIN_BALANCE_SOL,
    DEFAULT_MIN_PROFIT_PCT,
    DEFAULT_SCAN_AMOUNT_LAMPORTS,
    DEFAULT_SCAN_INTERVAL_S,
    DEFAULT_SLIPPAGE_BPS,
    DEFAULT_TIP_LAMPORTS,
    DEFAULT_TRADE_DELAY_S,
    DEVNET_RPC_URL,
    GATEWAY_API_URL,
    JUPITER_API_URL,
    LAMPORTS_PER_SOL,
    SOL_MINT,
)
from relayarb.core.errors import FatalStartupError


class ServerSettings(BaseSettings):
    """
    Control surface settings loaded from environment variables.

    Unknown variables are ignored, so trading values never block the
    server from starting.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # =========================================================================
    # Network Configuration
    # =========================================================================

    network: Literal["devnet", "testnet", "mainnet-beta"] = Field(
        default="devnet",
        description="Cluster tag sent to the relay and shown in stats",
    )

    # =========================================================================
    # Storage & Server
    # =========================================================================

    database_path: str = Field(
        default=DEFAULT_DATABASE_PATH,
        description="SQLite ledger file",
    )

    host: str = Field(
        default="0.0.0.0",
        description="Control surface bind address",
    )

    port: int = Field(
        default=3001,
        ge=1,
        le=65535,
        description="Control surface port",
    )

    # =========================================================================
    # Operation Mode
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: str | None = Field(
        default=None,
        description="Optional log file path",
    )

    @property
    def is_mainnet(self) -> bool:
        """Whether trades hit real funds."""
        return self.network == "mainnet-beta"


class Settings(ServerSettings):
    """
    Full bot settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Sensitive values use SecretStr for safe handling.
    """

    # =========================================================================
    # Endpoints
    # =========================================================================

    rpc_endpoint: str = Field(
        default=DEVNET_RPC_URL,
        description="Solana JSON-RPC endpoint for balance, blockhash and confirmation",
    )

    jupiter_api_url: str = Field(
        default=JUPITER_API_URL,
        validation_alias=AliasChoices("jupiter_api_url", "jupiter_api"),
        description="Base URL of the Jupiter quote aggregator",
    )

    # =========================================================================
    # Relay Credentials
    # =========================================================================

    gateway_api_url: str = Field(
        default=GATEWAY_API_URL,
        description="Base URL of the Gateway transaction relay",
    )

    gateway_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Bearer token for the Gateway relay",
    )

    # =========================================================================
    # Wallet
    # =========================================================================

    wallet_private_key: SecretStr | None = Field(
        default=None,
        description="Base58 secret key (or JSON byte array) of the trading wallet",
    )

    # =========================================================================
    # Trading Configuration
    # =========================================================================

    min_profit_percent: float = Field(
        default=DEFAULT_MIN_PROFIT_PCT,
        ge=0.0,
        validation_alias=AliasChoices("min_profit_percent", "min_profit_usd"),
        description="Opportunities below this round-trip profit (percent) are skipped",
    )

    max_position_size_sol: float = Field(
        default=DEFAULT_MAX_POSITION_SIZE_SOL,
        gt=0.0,
        description="Upper bound for the probe amount of a single round trip",
    )

    scan_amount_lamports: int = Field(
        default=DEFAULT_SCAN_AMOUNT_LAMPORTS,
        gt=0,
        description="Input amount of each round-trip probe in lamports",
    )

    candidate_mints: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CANDIDATE_MINTS),
        description="Intermediate assets for SOL -> X -> SOL routes",
    )

    slippage_bps: int = Field(
        default=DEFAULT_SLIPPAGE_BPS,
        ge=0,
        le=10_000,
        description="Slippage tolerance passed to the aggregator",
    )

    estimated_fee_lamports: int = Field(
        default=DEFAULT_ESTIMATED_FEE_LAMPORTS,
        ge=0,
        description="Network fee estimate booked as cost for every sent trade",
    )

    min_balance_sol: float = Field(
        default=DEFAULT_MIN_BALANCE_SOL,
        ge=0.0,
        description="Minimum wallet balance required to start trading",
    )

    # =========================================================================
    # Relay Options
    # =========================================================================

    relay_delivery_method: Literal["optimized", "jito", "rpc", "sanctum"] = Field(
        default=DEFAULT_DELIVERY_METHOD,
        description="Delivery strategy requested from the relay",
    )

    relay_tip_lamports: int = Field(
        default=DEFAULT_TIP_LAMPORTS,
        ge=0,
        description="Priority tip attached by the relay",
    )

    relay_priority_fee: str = Field(
        default="auto",
        description="Priority fee: 'auto' or micro-lamports as an integer string",
    )

    relay_round_robin: bool = Field(
        default=True,
        description="Let the relay rotate across the configured RPC endpoints",
    )

    relay_rpcs: list[str] = Field(
        default_factory=list,
        description="RPC endpoints for relay round robin (defaults to rpc_endpoint)",
    )

    # =========================================================================
    # Control Loop Pacing
    # =========================================================================

    trade_delay_s: float = Field(
        default=DEFAULT_TRADE_DELAY_S,
        ge=0.0,
        description="Pause after each executed trade",
    )

    scan_interval_s: float = Field(
        default=DEFAULT_SCAN_INTERVAL_S,
        ge=0.0,
        description="Pause between scan cycles",
    )

    error_backoff_s: float = Field(
        default=DEFAULT_ERROR_BACKOFF_S,
        ge=0.0,
        description="Pause after an unexpected cycle error",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("candidate_mints", mode="after")
    @classmethod
    def validate_candidates(cls, v: list[str]) -> list[str]:
        """Reject empty lists and the base asset itself."""
        if not v:
            raise ValueError("At least one candidate mint is required")
        if SOL_MINT in v:
            raise ValueError("Candidate mints must not include the base asset")
        return v

    @field_validator("relay_priority_fee", mode="after")
    @classmethod
    def validate_priority_fee(cls, v: str) -> str:
        """Accept 'auto' or a non-negative integer."""
        if v != "auto" and not v.isdigit():
            raise ValueError("Priority fee must be 'auto' or a non-negative integer")
        return v

    @model_validator(mode="after")
    def validate_position_size(self) -> "Settings":
        """Keep the probe amount inside the position limit."""
        if self.scan_amount_lamports > self.max_position_lamports:
            raise ValueError(
                f"scan_amount_lamports ({self.scan_amount_lamports}) exceeds "
                f"max_position_size_sol ({self.max_position_size_sol})"
            )
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_position_lamports(self) -> int:
        """Position limit in lamports."""
        return round(self.max_position_size_sol * LAMPORTS_PER_SOL)

    @property
    def min_balance_lamports(self) -> int:
        """Pre-flight balance requirement in lamports."""
        return round(self.min_balance_sol * LAMPORTS_PER_SOL)

    @property
    def send_rpcs(self) -> list[str]:
        """RPC list handed to the relay for round robin."""
        return list(self.relay_rpcs) or [self.rpc_endpoint]


@lru_cache(maxsize=1)
def get_server_settings() -> ServerSettings:
    """
    Get cached control surface settings.

    Clear cache with `get_server_settings.cache_clear()` if needed.
    """
    return ServerSettings()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()


def load_settings() -> Settings:
    """
    Read the full settings from the environment, uncached.

    Raises:
        FatalStartupError: If any value fails validation. The message
            names the offending settings, not their values.
    """
    try:
        return Settings()
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) or "settings" for err in e.errors()})
        raise FatalStartupError(f"Invalid configuration: {', '.join(fields)}") from e
