"""
Live event fan-out to connected observers.

Publishing never waits for delivery: each observer gets its own
delivery task bounded by a send timeout, and observers that fail
or time out are dropped.
"""

import asyncio
import logging
from typing import Any

import orjson

from relayarb.config.constants import EVENT_TRANSACTION, OBSERVER_SEND_TIMEOUT
from relayarb.core.types import TransactionObserver, TransactionRecord


logger = logging.getLogger(__name__)


class EventBroadcaster:
    """
    Best-effort observer registry.

    Features:
    - Non-blocking publish (delivery runs in background tasks)
    - Per-observer send timeout
    - Error isolation: a failing observer is removed, others continue
    - No replay for late observers
    """

    def __init__(self, send_timeout: float = OBSERVER_SEND_TIMEOUT) -> None:
        """
        Initialize broadcaster.

        Args:
            send_timeout: Seconds an observer may take per message.
        """
        self._send_timeout = send_timeout
        self._observers: list[TransactionObserver] = []
        self._pending: set[asyncio.Task[None]] = set()

    def register(self, observer: TransactionObserver) -> None:
        """Add an observer; registering twice has no effect."""
        if observer not in self._observers:
            self._observers.append(observer)
            logger.debug(f"Observer registered ({len(self._observers)} total)")

    def unregister(self, observer: TransactionObserver) -> bool:
        """
        Remove an observer.

        Returns:
            True if the observer was registered.
        """
        if observer in self._observers:
            self._observers.remove(observer)
            logger.debug(f"Observer removed ({len(self._observers)} left)")
            return True
        return False

    def publish(self, record: TransactionRecord) -> int:
        """
        Push a finalized transaction to every observer.

        Returns:
            Number of deliveries scheduled.
        """
        return self.broadcast(EVENT_TRANSACTION, record.to_dict())

    def broadcast(self, event_type: str, data: dict[str, Any]) -> int:
        """
        Encode an event once and schedule delivery to all observers.

        Must be called from inside the running event loop.

        Returns:
            Number of deliveries scheduled.
        """
        if not self._observers:
            return 0

        message = orjson.dumps({"type": event_type, "data": data}).decode()

        for observer in list(self._observers):
            task = asyncio.create_task(self._deliver(observer, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        return len(self._observers)

    async def _deliver(self, observer: TransactionObserver, message: str) -> None:
        """Send one message, dropping the observer on failure."""
        try:
            await asyncio.wait_for(observer.send_text(message), timeout=self._send_timeout)
        except Exception as e:
            logger.warning(f"Dropping observer after failed delivery: {e!r}")
            self.unregister(observer)

    async def drain(self) -> None:
        """Wait for all in-flight deliveries to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def observer_count(self) -> int:
        """Number of registered observers."""
        return len(self._observers)
