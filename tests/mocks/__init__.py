"""Mock implementations for testing."""

from tests.mocks.loop import make_stub_loop
from tests.mocks.observer import MockObserver
from tests.mocks.quotes import MockQuoteSource
from tests.mocks.relay import MockRelay, MockRpc, failing_relay


__all__ = [
    "MockObserver",
    "MockQuoteSource",
    "MockRelay",
    "MockRpc",
    "failing_relay",
    "make_stub_loop",
]
