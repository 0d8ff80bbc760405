"""
Solana JSON-RPC adapter.

Narrow wrapper over the solana-py async client: the bot only needs
balances, a recent blockhash and signature confirmation.
"""

import logging

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException, UnconfirmedTxError
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from relayarb.core.errors import ExecutionError


logger = logging.getLogger(__name__)


class SolanaRpc:
    """Ledger access for balance checks, blockhashes and confirmations."""

    def __init__(self, endpoint: str) -> None:
        """
        Initialize the RPC adapter.

        Args:
            endpoint: JSON-RPC URL.
        """
        self._endpoint = endpoint
        self._client = AsyncClient(endpoint, commitment=Confirmed)

    async def get_balance(self, owner: Pubkey) -> int:
        """Wallet balance in lamports."""
        try:
            response = await self._client.get_balance(owner, commitment=Confirmed)
        except (SolanaRpcException, RPCException) as e:
            raise ExecutionError(f"Balance lookup failed: {e}") from e
        return response.value

    async def get_latest_blockhash(self) -> Hash:
        """Most recent blockhash at confirmed commitment."""
        try:
            response = await self._client.get_latest_blockhash(commitment=Confirmed)
        except (SolanaRpcException, RPCException) as e:
            raise ExecutionError(f"Blockhash lookup failed: {e}") from e
        return response.value.blockhash

    async def confirm(self, signature: str) -> str | None:
        """
        Wait for a signature to reach confirmed commitment.

        Args:
            signature: Base58 transaction signature.

        Returns:
            None when the transaction landed cleanly, otherwise a
            description of the on-chain error.

        Raises:
            ExecutionError: If confirmation could not be obtained.
        """
        try:
            response = await self._client.confirm_transaction(
                Signature.from_string(signature),
                commitment=Confirmed,
            )
        except (SolanaRpcException, RPCException, UnconfirmedTxError, ValueError) as e:
            raise ExecutionError(f"Confirmation failed: {e}") from e

        status = response.value[0] if response.value else None
        if status is None:
            return "Transaction status unavailable"
        if status.err is not None:
            logger.warning(f"Transaction {signature[:16]}... failed on-chain: {status.err}")
            return str(status.err)
        return None

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    @property
    def endpoint(self) -> str:
        """JSON-RPC URL."""
        return self._endpoint
