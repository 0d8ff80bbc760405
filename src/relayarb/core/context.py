"""
Process-level bot context.

Holds the ledger, the broadcaster and at most one control loop, and
is handed to the control surface explicitly instead of living in
module globals.
"""

import asyncio
import logging
from collections.abc import Callable

from relayarb.config.settings import ServerSettings, Settings, load_settings
from relayarb.core.broadcaster import EventBroadcaster
from relayarb.core.engine import ControlLoop, create_control_loop
from relayarb.core.errors import ControlConflictError
from relayarb.core.types import Stats
from relayarb.storage.ledger import Ledger


logger = logging.getLogger(__name__)


# Builds a fresh control loop; raises FatalStartupError on bad config
LoopFactory = Callable[[], ControlLoop]


class BotContext:
    """
    Owner of the current control loop.

    Each start builds a new loop, so session statistics begin at zero.
    """

    def __init__(
        self,
        settings: ServerSettings,
        ledger: Ledger,
        broadcaster: EventBroadcaster | None = None,
        loop_factory: LoopFactory | None = None,
    ) -> None:
        """
        Initialize context.

        Args:
            settings: Control surface settings. A full `Settings` is
                used as is; otherwise trading settings are read from
                the environment on every start.
            ledger: Opened ledger shared by all loops.
            broadcaster: Live event fan-out.
            loop_factory: Overrides how control loops are built.
        """
        self._settings = settings
        self._ledger = ledger
        self._broadcaster = broadcaster or EventBroadcaster()
        self._loop_factory = loop_factory or self._default_factory
        self._bot: ControlLoop | None = None
        self._start_lock = asyncio.Lock()

    def _default_factory(self) -> ControlLoop:
        if isinstance(self._settings, Settings):
            settings = self._settings
        else:
            settings = load_settings()
        return create_control_loop(settings, self._ledger, self._broadcaster)

    async def start_bot(self) -> None:
        """
        Build and start a new control loop.

        Raises:
            ControlConflictError: If a loop is already running.
            FatalStartupError: If construction or pre-flight fails.
        """
        # One start at a time, including the pre-flight awaits
        async with self._start_lock:
            if self.is_running:
                raise ControlConflictError("Bot already running")

            # A stopped loop may still be finishing its last trade
            if self._bot is not None and not self._bot.is_finished:
                await self._bot.join()

            bot = self._loop_factory()
            await bot.start()
            self._bot = bot

        self._broadcaster.broadcast("status", {"isRunning": True, "network": self.network})
        logger.info("Bot started")

    def stop_bot(self) -> Stats:
        """
        Stop the running control loop.

        Returns:
            Final session statistics.

        Raises:
            ControlConflictError: If no loop is running.
        """
        if self._bot is None or not self._bot.is_running:
            raise ControlConflictError("Bot not running")

        stats = self._bot.stop()
        self._broadcaster.broadcast("status", {"isRunning": False, "network": self.network})
        logger.info("Bot stopped")
        return stats

    async def shutdown(self) -> None:
        """Stop any running loop, wait for it and close the ledger."""
        if self.is_running:
            self.stop_bot()
        if self._bot is not None:
            await self._bot.join()
        await self._broadcaster.drain()
        self._ledger.close()

    @property
    def is_running(self) -> bool:
        """Check if a control loop is running."""
        return self._bot is not None and self._bot.is_running

    @property
    def bot(self) -> ControlLoop | None:
        """Current (or last) control loop."""
        return self._bot

    @property
    def ledger(self) -> Ledger:
        """Shared ledger."""
        return self._ledger

    @property
    def broadcaster(self) -> EventBroadcaster:
        """Live event fan-out."""
        return self._broadcaster

    @property
    def network(self) -> str:
        """Cluster tag."""
        return self._settings.network
