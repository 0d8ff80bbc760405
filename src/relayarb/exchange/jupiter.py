"""
Jupiter v6 aggregator client.

Quotes are best-effort: any failure yields None so the scanner can
skip the candidate. Swap builds are part of a live trade and raise.
"""

import logging

from pydantic import ValidationError

from relayarb.config.constants import (
    DEFAULT_SLIPPAGE_BPS,
    ENDPOINT_QUOTE,
    ENDPOINT_SWAP,
    JUPITER_API_URL,
    QUOTE_TIMEOUT_MS,
    SWAP_TIMEOUT_MS,
)
from relayarb.core.errors import ExecutionError, TransientSourceError
from relayarb.core.types import Quote
from relayarb.exchange.client import HttpClient
from relayarb.exchange.models import QuoteResponse, SwapResponse


logger = logging.getLogger(__name__)


class JupiterClient(HttpClient):
    """
    Quote source backed by the Jupiter aggregator.

    Stateless apart from the pooled HTTP session; no retries.
    """

    error_class = TransientSourceError

    def __init__(
        self,
        base_url: str = JUPITER_API_URL,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
        timeout_ms: int = QUOTE_TIMEOUT_MS,
    ) -> None:
        """
        Initialize the aggregator client.

        Args:
            base_url: Jupiter API root.
            slippage_bps: Slippage tolerance sent with every quote.
            timeout_ms: Quote request timeout.
        """
        super().__init__(base_url)
        self._slippage_bps = slippage_bps
        self._timeout_ms = timeout_ms

    async def get_quote(self, input_mint: str, output_mint: str, amount: int) -> Quote | None:
        """
        Fetch a priced quote for swapping `amount` units of input_mint.

        Args:
            input_mint: Asset sold.
            output_mint: Asset bought.
            amount: Input amount in atomic units.

        Returns:
            Quote, or None on timeout, transport error or bad payload.
        """
        try:
            return await self._fetch_quote(input_mint, output_mint, amount)
        except TransientSourceError as e:
            logger.debug(f"Quote {input_mint[:6]}->{output_mint[:6]} unavailable: {e}")
            return None

    async def _fetch_quote(self, input_mint: str, output_mint: str, amount: int) -> Quote:
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(self._slippage_bps),
        }
        data = await self._request("GET", ENDPOINT_QUOTE, self._timeout_ms, params=params)

        try:
            parsed = QuoteResponse.model_validate(data)
        except ValidationError as e:
            raise TransientSourceError(f"Malformed quote: {e.error_count()} errors") from e

        return Quote(
            input_mint=parsed.input_mint,
            output_mint=parsed.output_mint,
            in_amount=parsed.in_amount,
            out_amount=parsed.out_amount,
            payload=data,
        )

    async def build_swap(self, quote: Quote, user_public_key: str) -> str:
        """
        Request an unsigned swap transaction for a quote.

        Args:
            quote: Quote previously returned by get_quote.
            user_public_key: Wallet that signs and pays.

        Returns:
            Base64-encoded versioned transaction.

        Raises:
            ExecutionError: If the aggregator cannot build the swap.
        """
        body = {
            "quoteResponse": quote.payload,
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": True,
        }

        try:
            data = await self._request("POST", ENDPOINT_SWAP, SWAP_TIMEOUT_MS, json=body)
            return SwapResponse.model_validate(data).swap_transaction
        except TransientSourceError as e:
            raise ExecutionError(f"Swap build failed: {e}", code=e.code) from e
        except ValidationError as e:
            raise ExecutionError("Swap build returned no transaction") from e
