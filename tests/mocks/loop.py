"""
Stub control loop factory for testing.

Wires a real ControlLoop around a stubbed scanner and executor so
lifecycle behavior can be tested without quotes or trades.
"""

import io
from collections.abc import Sequence
from unittest.mock import AsyncMock, MagicMock

from solders.keypair import Keypair

from relayarb.core.engine import Closeable, ControlLoop
from relayarb.core.types import Opportunity
from relayarb.execution.executor import ChainRpc
from relayarb.execution.signer import TransactionSigner
from relayarb.telemetry.metrics import StatsAggregator
from relayarb.telemetry.reporter import CLIReporter
from tests.mocks.relay import MockRpc


def make_stub_loop(
    opportunities: list[Opportunity] | None = None,
    rpc: ChainRpc | None = None,
    scan_interval_s: float = 0.01,
    resources: Sequence[Closeable] = (),
) -> tuple[ControlLoop, MagicMock, MagicMock]:
    """
    Build a control loop with stub collaborators.

    Returns:
        The loop, its scanner stub and its executor stub.
    """
    scanner = MagicMock()
    scanner.scan = AsyncMock(return_value=opportunities or [])
    executor = MagicMock()
    executor.execute = AsyncMock()
    aggregator = StatsAggregator()

    loop = ControlLoop(
        scanner=scanner,
        executor=executor,
        rpc=rpc or MockRpc(),
        signer=TransactionSigner(Keypair()),
        aggregator=aggregator,
        reporter=CLIReporter(aggregator, output=io.StringIO()),
        min_profit_percent=0.5,
        min_balance_lamports=10_000_000,
        trade_delay_s=0.0,
        scan_interval_s=scan_interval_s,
        error_backoff_s=0.01,
        resources=resources,
    )
    return loop, scanner, executor
