"""
Integration tests for the bot context.

Tests the single-loop guarantee when start requests overlap.
"""

import asyncio

import pytest

from relayarb.config.settings import Settings
from relayarb.core.context import BotContext
from relayarb.core.engine import ControlLoop
from relayarb.core.errors import ControlConflictError
from relayarb.storage.ledger import Ledger
from tests.mocks import MockRpc, make_stub_loop


class TestConcurrentStart:
    """Tests for overlapping start requests."""

    @pytest.fixture
    def loops(self) -> list[ControlLoop]:
        """Every loop the context builds."""
        return []

    @pytest.fixture
    def context(self, settings: Settings, ledger: Ledger, loops: list[ControlLoop]) -> BotContext:
        """Context whose pre-flight balance check is slow."""

        def factory() -> ControlLoop:
            loop = make_stub_loop(rpc=MockRpc(balance_delay=0.05), scan_interval_s=0.05)[0]
            loops.append(loop)
            return loop

        return BotContext(settings, ledger, loop_factory=factory)

    @pytest.mark.asyncio
    async def test_overlapping_starts(
        self, context: BotContext, loops: list[ControlLoop]
    ) -> None:
        """Test only one of two overlapping starts launches a loop."""
        results = await asyncio.gather(
            context.start_bot(), context.start_bot(), return_exceptions=True
        )

        try:
            assert results.count(None) == 1
            conflicts = [r for r in results if isinstance(r, ControlConflictError)]
            assert len(conflicts) == 1
            assert str(conflicts[0]) == "Bot already running"
            assert sum(loop.is_running for loop in loops) == 1
            assert context.bot is loops[0]
        finally:
            await context.shutdown()

        assert not any(loop.is_running for loop in loops)

    @pytest.mark.asyncio
    async def test_stop_reaches_started_loop(
        self, context: BotContext, loops: list[ControlLoop]
    ) -> None:
        """Test stop halts the loop that won the race."""
        await asyncio.gather(context.start_bot(), context.start_bot(), return_exceptions=True)

        context.stop_bot()
        await asyncio.wait_for(loops[0].join(), timeout=1.0)

        assert not context.is_running
        assert not any(loop.is_running for loop in loops)
        await context.shutdown()
