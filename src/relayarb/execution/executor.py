"""
Trade execution pipeline.

Turns an opportunity into a relayed, confirmed transaction:
swap build -> blockhash -> sign -> relay -> confirm -> record.
"""

import logging
from typing import Protocol

from solders.hash import Hash
from solders.pubkey import Pubkey

from relayarb.config.constants import (
    DEFAULT_ESTIMATED_FEE_LAMPORTS,
    DEFAULT_TIP_LAMPORTS,
    FALLBACK_DELIVERY_METHOD,
)
from relayarb.core.broadcaster import EventBroadcaster
from relayarb.core.errors import LedgerError
from relayarb.core.types import Opportunity, QuoteSource, TransactionRecord, TxStatus
from relayarb.exchange.gateway import GatewayClient
from relayarb.exchange.models import SendOptions
from relayarb.execution.signer import TransactionSigner
from relayarb.storage.ledger import Ledger
from relayarb.telemetry.metrics import StatsAggregator


logger = logging.getLogger(__name__)


class ChainRpc(Protocol):
    """Ledger queries the executor and control loop depend on."""

    async def get_balance(self, owner: Pubkey) -> int: ...

    async def get_latest_blockhash(self) -> Hash: ...

    async def confirm(self, signature: str) -> str | None: ...


class TradeExecutor:
    """
    Executes opportunities one at a time.

    Only the forward leg's swap is sent; the reverse quote serves
    pricing. Every attempt produces exactly one finalized ledger row,
    one stats update and one broadcast, success or not.
    """

    def __init__(
        self,
        quote_source: QuoteSource,
        rpc: ChainRpc,
        signer: TransactionSigner,
        relay: GatewayClient,
        ledger: Ledger,
        aggregator: StatsAggregator,
        broadcaster: EventBroadcaster,
        network: str,
        send_options: SendOptions | None = None,
        estimated_fee_lamports: int = DEFAULT_ESTIMATED_FEE_LAMPORTS,
        tip_lamports: int = DEFAULT_TIP_LAMPORTS,
    ) -> None:
        """
        Initialize executor.

        Args:
            quote_source: Aggregator used for the swap build.
            rpc: Blockhash and confirmation source.
            signer: Wallet signer.
            relay: Transaction relay.
            ledger: Store for transaction rows.
            aggregator: In-memory session statistics.
            broadcaster: Live observers of finalized records.
            network: Cluster tag written to every record.
            send_options: Relay send options (round robin, rpcs).
            estimated_fee_lamports: Cost booked per sent transaction.
            tip_lamports: Relay tip booked per sent transaction.
        """
        self._quotes = quote_source
        self._rpc = rpc
        self._signer = signer
        self._relay = relay
        self._ledger = ledger
        self._aggregator = aggregator
        self._broadcaster = broadcaster
        self._network = network
        self._send_options = send_options
        self._fee_lamports = estimated_fee_lamports
        self._tip_lamports = tip_lamports

    async def execute(self, opportunity: Opportunity) -> TransactionRecord:
        """
        Execute an opportunity.

        Args:
            opportunity: Opportunity to trade.

        Returns:
            Finalized TransactionRecord; status FAILED signals failure.
            Trade errors never propagate.
        """
        record = TransactionRecord(
            network=self._network,
            token_in=opportunity.input_asset,
            token_out=opportunity.output_asset,
            amount_in=opportunity.amount_in,
            amount_out=opportunity.forward_quote.out_amount,
            expected_profit=opportunity.profit_units,
            dex=opportunity.venue,
        )

        try:
            await self._submit(opportunity, record)
        except Exception as e:
            logger.error(f"Trade {opportunity.path} failed: {e}")
            self._record_failure(record, str(e) or type(e).__name__)

        self._aggregator.record(record)
        self._broadcaster.publish(record)

        if record.is_success:
            logger.info(
                f"Trade {opportunity.path} landed: {record.tx_signature} "
                f"expected={record.expected_profit} units latency={record.latency_ms}ms"
            )
        return record

    async def _submit(self, opportunity: Opportunity, record: TransactionRecord) -> None:
        """Run the pipeline, leaving record finalized on normal return."""
        swap_tx = await self._quotes.build_swap(
            opportunity.forward_quote,
            str(self._signer.public_key),
        )

        blockhash = await self._rpc.get_latest_blockhash()
        signed = self._signer.sign_encoded(swap_tx, blockhash)

        result = await self._relay.send(signed, self._send_options)

        record.tx_signature = result.signature
        record.method = result.method
        record.refunded = result.refunded
        record.latency_ms = result.latency_ms
        record.cost_units = self._fee_lamports
        record.tip_units = self._tip_lamports
        self._ledger.record_transaction(record)

        error = await self._rpc.confirm(result.signature)
        status = TxStatus.FAILED if error else TxStatus.SUCCESS

        self._ledger.finalize_transaction(record.id or 0, status, error)
        record.status = status
        record.error_message = error

    def _record_failure(self, record: TransactionRecord, message: str) -> None:
        """Finalize a failed attempt, inserting a row if none exists yet."""
        record.status = TxStatus.FAILED
        record.error_message = message
        if record.method is None:
            record.method = FALLBACK_DELIVERY_METHOD

        try:
            if record.id is not None:
                self._ledger.finalize_transaction(record.id, TxStatus.FAILED, message)
            else:
                self._ledger.record_transaction(record)
        except LedgerError as e:
            logger.error(f"Could not persist failed trade: {e}")
