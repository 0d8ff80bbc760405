"""
Pydantic models for aggregator and relay payloads.

These models provide type-safe parsing of remote responses and
validated option sets for outgoing relay requests.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from relayarb.config.constants import (
    DEFAULT_DELIVERY_METHOD,
    DEFAULT_PRIORITY_FEE,
    DEFAULT_TIP_LAMPORTS,
    FALLBACK_DELIVERY_METHOD,
)


# =============================================================================
# Aggregator Responses
# =============================================================================


class QuoteResponse(BaseModel):
    """Swap quote from the aggregator; unknown route fields are kept."""

    input_mint: str = Field(alias="inputMint")
    output_mint: str = Field(alias="outputMint")
    in_amount: int = Field(alias="inAmount", ge=0)
    out_amount: int = Field(alias="outAmount", ge=0)
    slippage_bps: int | None = Field(default=None, alias="slippageBps")
    price_impact_pct: str | None = Field(default=None, alias="priceImpactPct")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class SwapResponse(BaseModel):
    """Unsigned swap transaction from the aggregator."""

    swap_transaction: str = Field(alias="swapTransaction", min_length=1)
    last_valid_block_height: int | None = Field(default=None, alias="lastValidBlockHeight")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =============================================================================
# Relay Options
# =============================================================================


class BuildOptions(BaseModel):
    """Options for the relay's build endpoint."""

    delivery_method: Literal["optimized", "jito", "rpc", "sanctum"] = DEFAULT_DELIVERY_METHOD  # type: ignore[assignment]
    tip_lamports: int = Field(default=DEFAULT_TIP_LAMPORTS, ge=0)
    priority_fee: Literal["auto"] | int = DEFAULT_PRIORITY_FEE  # type: ignore[assignment]

    model_config = ConfigDict(frozen=True)

    @field_validator("priority_fee", mode="after")
    @classmethod
    def validate_priority_fee(cls, v: str | int) -> str | int:
        """Reject negative explicit fees."""
        if isinstance(v, int) and v < 0:
            raise ValueError("Priority fee must be non-negative")
        return v

    def to_payload(self) -> dict[str, Any]:
        """Wire representation."""
        return {
            "deliveryMethod": self.delivery_method,
            "jitoTipLamports": self.tip_lamports,
            "priorityFee": self.priority_fee,
        }


class SendOptions(BaseModel):
    """Options for the relay's send endpoint."""

    enable_round_robin: bool = True
    rpcs: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> dict[str, Any]:
        """Wire representation."""
        return {
            "enableRoundRobin": self.enable_round_robin,
            "rpcs": list(self.rpcs),
        }


# =============================================================================
# Relay Responses
# =============================================================================


class SendResponse(BaseModel):
    """Relay acknowledgement of a submitted transaction."""

    signature: str = Field(min_length=1)
    delivery_method: str | None = Field(default=None, alias="deliveryMethod")
    jito_refunded: bool | None = Field(default=None, alias="jitoRefunded")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def method(self) -> str:
        """Delivery method, defaulting when the relay omits it."""
        return self.delivery_method or FALLBACK_DELIVERY_METHOD

    @property
    def refunded(self) -> bool:
        """Whether the relay returned the priority tip."""
        return bool(self.jito_refunded)
