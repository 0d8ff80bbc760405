"""
Unit tests for EventBroadcaster.

Tests fan-out, observer isolation and the no-replay rule.
"""

import pytest

from relayarb.core.broadcaster import EventBroadcaster
from relayarb.core.types import TxStatus
from tests.conftest import make_record
from tests.mocks import MockObserver


class TestEventBroadcaster:
    """Tests for EventBroadcaster."""

    @pytest.fixture
    def broadcaster(self) -> EventBroadcaster:
        """Broadcaster with a short send timeout."""
        return EventBroadcaster(send_timeout=0.05)

    @pytest.mark.asyncio
    async def test_publish_to_all(self, broadcaster: EventBroadcaster) -> None:
        """Test every observer receives a finalized record."""
        first, second = MockObserver(), MockObserver()
        broadcaster.register(first)
        broadcaster.register(second)

        scheduled = broadcaster.publish(make_record(signature="abc"))
        await broadcaster.drain()

        assert scheduled == 2
        for observer in (first, second):
            assert len(observer.events) == 1
            event = observer.events[0]
            assert event["type"] == "transaction"
            assert event["data"]["tx_signature"] == "abc"
            assert event["data"]["status"] == "success"

    @pytest.mark.asyncio
    async def test_failed_records_published(self, broadcaster: EventBroadcaster) -> None:
        """Test failures are broadcast like successes."""
        observer = MockObserver()
        broadcaster.register(observer)

        broadcaster.publish(make_record(status=TxStatus.FAILED, signature=None))
        await broadcaster.drain()

        assert observer.events[0]["data"]["status"] == "failed"

    @pytest.mark.asyncio
    async def test_no_observers(self, broadcaster: EventBroadcaster) -> None:
        """Test publishing without observers is a no-op."""
        assert broadcaster.publish(make_record()) == 0

    @pytest.mark.asyncio
    async def test_failing_observer_dropped(self, broadcaster: EventBroadcaster) -> None:
        """Test a broken observer is removed and others still receive."""
        healthy, broken = MockObserver(), MockObserver(fail=True)
        broadcaster.register(healthy)
        broadcaster.register(broken)

        broadcaster.publish(make_record())
        await broadcaster.drain()

        assert broadcaster.observer_count == 1
        assert len(healthy.messages) == 1

    @pytest.mark.asyncio
    async def test_slow_observer_dropped(self, broadcaster: EventBroadcaster) -> None:
        """Test an observer exceeding the send timeout is removed."""
        healthy, slow = MockObserver(), MockObserver(delay=1.0)
        broadcaster.register(healthy)
        broadcaster.register(slow)

        broadcaster.publish(make_record())
        await broadcaster.drain()

        assert broadcaster.observer_count == 1
        assert slow.messages == []
        assert len(healthy.messages) == 1

    @pytest.mark.asyncio
    async def test_no_replay_for_late_observer(self, broadcaster: EventBroadcaster) -> None:
        """Test observers only see events published after registering."""
        early = MockObserver()
        broadcaster.register(early)
        broadcaster.publish(make_record(signature="first"))
        await broadcaster.drain()

        late = MockObserver()
        broadcaster.register(late)
        broadcaster.publish(make_record(signature="second"))
        await broadcaster.drain()

        assert [e["data"]["tx_signature"] for e in early.events] == ["first", "second"]
        assert [e["data"]["tx_signature"] for e in late.events] == ["second"]

    def test_register_twice(self, broadcaster: EventBroadcaster) -> None:
        """Test duplicate registration is ignored."""
        observer = MockObserver()
        broadcaster.register(observer)
        broadcaster.register(observer)

        assert broadcaster.observer_count == 1
        assert broadcaster.unregister(observer) is True
        assert broadcaster.unregister(observer) is False

    @pytest.mark.asyncio
    async def test_custom_event(self, broadcaster: EventBroadcaster) -> None:
        """Test arbitrary event types use the same envelope."""
        observer = MockObserver()
        broadcaster.register(observer)

        broadcaster.broadcast("status", {"isRunning": True})
        await broadcaster.drain()

        assert observer.events == [{"type": "status", "data": {"isRunning": True}}]
