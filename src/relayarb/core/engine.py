"""
Control loop orchestrator.

Runs the scan -> execute -> pause cycle as a single background task
and owns the lifecycle of the network clients it was built with.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from relayarb.config.settings import Settings
from relayarb.core.broadcaster import EventBroadcaster
from relayarb.core.errors import ControlConflictError, ExecutionError, FatalStartupError
from relayarb.core.types import BotState, Stats
from relayarb.exchange.gateway import GatewayClient
from relayarb.exchange.jupiter import JupiterClient
from relayarb.exchange.models import BuildOptions, SendOptions
from relayarb.exchange.rpc import SolanaRpc
from relayarb.execution.executor import ChainRpc, TradeExecutor
from relayarb.execution.signer import TransactionSigner
from relayarb.storage.ledger import Ledger
from relayarb.strategy.scanner import OpportunityScanner
from relayarb.telemetry.metrics import StatsAggregator
from relayarb.telemetry.reporter import CLIReporter
from relayarb.utils.math import lamports_to_sol


logger = logging.getLogger(__name__)


class Closeable(Protocol):
    """Anything holding a network session."""

    async def close(self) -> None: ...


class ControlLoop:
    """
    Trading lifecycle: stopped -> running -> stopped.

    Cancellation is cooperative. stop() flips the running flag and
    wakes any pause; an in-flight trade always runs to completion,
    after which the background task closes its clients and exits.
    """

    def __init__(
        self,
        scanner: OpportunityScanner,
        executor: TradeExecutor,
        rpc: ChainRpc,
        signer: TransactionSigner,
        aggregator: StatsAggregator,
        reporter: CLIReporter,
        min_profit_percent: float,
        min_balance_lamports: int,
        trade_delay_s: float,
        scan_interval_s: float,
        error_backoff_s: float,
        resources: Sequence[Closeable] = (),
    ) -> None:
        """
        Initialize the control loop.

        Args:
            scanner: Opportunity source.
            executor: Trade pipeline.
            rpc: Used for the pre-flight balance check.
            signer: Wallet whose balance is checked.
            aggregator: Session statistics.
            reporter: Console summary on stop.
            min_profit_percent: Opportunities below this are skipped.
            min_balance_lamports: Pre-flight balance requirement.
            trade_delay_s: Pause after each executed trade.
            scan_interval_s: Pause between scan cycles.
            error_backoff_s: Pause after a failed cycle.
            resources: Clients closed when the loop exits.
        """
        self._scanner = scanner
        self._executor = executor
        self._rpc = rpc
        self._signer = signer
        self._aggregator = aggregator
        self._reporter = reporter
        self._min_profit_percent = min_profit_percent
        self._min_balance_lamports = min_balance_lamports
        self._trade_delay_s = trade_delay_s
        self._scan_interval_s = scan_interval_s
        self._error_backoff_s = error_backoff_s
        self._resources = list(resources)

        self._running = False
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """
        Run pre-flight checks and launch the background task.

        Raises:
            ControlConflictError: If already running.
            FatalStartupError: If the wallet balance is too low or
                cannot be read. The loop stays stopped.
        """
        if self._running:
            raise ControlConflictError("Bot already running")

        try:
            balance = await self._check_balance()
        except Exception:
            await self._close_resources()
            raise

        logger.info(
            f"Starting bot for wallet {self._signer.public_key} "
            f"(balance {lamports_to_sol(balance):.4f} SOL)"
        )

        self._running = True
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name="relayarb-control-loop")

    async def _check_balance(self) -> int:
        """Read the wallet balance and enforce the minimum."""
        try:
            balance = await self._rpc.get_balance(self._signer.public_key)
        except ExecutionError as e:
            raise FatalStartupError(f"Cannot read wallet balance: {e}") from e

        if balance < self._min_balance_lamports:
            raise FatalStartupError(
                f"Insufficient balance: {lamports_to_sol(balance):.4f} SOL "
                f"(need at least {lamports_to_sol(self._min_balance_lamports):.4f} SOL)"
            )
        return balance

    def stop(self) -> Stats:
        """
        Request shutdown and report the session.

        Returns:
            Snapshot of the session statistics.

        Raises:
            ControlConflictError: If not running.
        """
        if not self._running:
            raise ControlConflictError("Bot not running")

        self._running = False
        self._stop_event.set()

        logger.info(f"Stopping bot: {self._reporter.get_status_line()}")
        self._reporter.print_summary()
        return self._aggregator.snapshot()

    async def join(self) -> None:
        """Wait until the background task has exited."""
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        """Main loop body."""
        try:
            while self._running:
                try:
                    await self._cycle()
                except Exception as e:
                    logger.exception(f"Cycle error: {e}")
                    await self._pause(self._error_backoff_s)
        finally:
            await self._close_resources()
            logger.info("Control loop exited")

    async def _cycle(self) -> None:
        """Scan once, trade what qualifies, then wait for the next scan."""
        opportunities = await self._scanner.scan()

        for opportunity in opportunities:
            if not self._running:
                break

            if opportunity.profit_percent < self._min_profit_percent:
                logger.debug(
                    f"Skipping {opportunity.path}: {opportunity.profit_percent:.4f}% "
                    f"< {self._min_profit_percent}%"
                )
                continue

            await self._executor.execute(opportunity)
            logger.info(self._reporter.get_status_line())
            await self._pause(self._trade_delay_s)

        await self._pause(self._scan_interval_s)

    async def _pause(self, seconds: float) -> None:
        """Sleep, waking early if stop() is called."""
        if not self._running:
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def _close_resources(self) -> None:
        """Close every owned client, logging failures."""
        for resource in self._resources:
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"Error closing {type(resource).__name__}: {e}")

    @property
    def is_running(self) -> bool:
        """Check if the loop is running."""
        return self._running

    @property
    def stats(self) -> Stats:
        """Snapshot of the session statistics."""
        return self._aggregator.snapshot()

    @property
    def state(self) -> BotState:
        """Running flag plus statistics."""
        return BotState(is_running=self._running, stats=self.stats)

    @property
    def is_finished(self) -> bool:
        """Check if the background task has exited (or never started)."""
        return self._task is None or self._task.done()


def create_control_loop(
    settings: Settings,
    ledger: Ledger,
    broadcaster: EventBroadcaster,
) -> ControlLoop:
    """
    Build a fully wired control loop from settings.

    Raises:
        FatalStartupError: If the wallet key is missing or invalid.
    """
    secret = settings.wallet_private_key
    signer = TransactionSigner.from_secret(secret.get_secret_value() if secret else None)

    api_key = settings.gateway_api_key.get_secret_value()
    if not api_key:
        logger.warning("GATEWAY_API_KEY is empty; relay requests will be unauthenticated")

    priority_fee = settings.relay_priority_fee
    build_options = BuildOptions(
        delivery_method=settings.relay_delivery_method,
        tip_lamports=settings.relay_tip_lamports,
        priority_fee=priority_fee if priority_fee == "auto" else int(priority_fee),
    )
    send_options = SendOptions(
        enable_round_robin=settings.relay_round_robin,
        rpcs=settings.send_rpcs,
    )

    quotes = JupiterClient(settings.jupiter_api_url, slippage_bps=settings.slippage_bps)
    relay = GatewayClient(
        api_key,
        settings.network,
        base_url=settings.gateway_api_url,
        build_options=build_options,
        send_options=send_options,
    )
    rpc = SolanaRpc(settings.rpc_endpoint)
    aggregator = StatsAggregator()

    scanner = OpportunityScanner(
        quotes,
        ledger,
        candidate_mints=settings.candidate_mints,
        amount=settings.scan_amount_lamports,
    )
    executor = TradeExecutor(
        quote_source=quotes,
        rpc=rpc,
        signer=signer,
        relay=relay,
        ledger=ledger,
        aggregator=aggregator,
        broadcaster=broadcaster,
        network=settings.network,
        send_options=send_options,
        estimated_fee_lamports=settings.estimated_fee_lamports,
        tip_lamports=build_options.tip_lamports,
    )

    return ControlLoop(
        scanner=scanner,
        executor=executor,
        rpc=rpc,
        signer=signer,
        aggregator=aggregator,
        reporter=CLIReporter(aggregator, network=settings.network),
        min_profit_percent=settings.min_profit_percent,
        min_balance_lamports=settings.min_balance_lamports,
        trade_delay_s=settings.trade_delay_s,
        scan_interval_s=settings.scan_interval_s,
        error_backoff_s=settings.error_backoff_s,
        resources=(quotes, relay, rpc),
    )
