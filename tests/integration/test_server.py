"""
Integration tests for the control surface.

Drives the FastAPI app through TestClient with a real ledger and
broadcaster and stubbed control loops.
"""

import time
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from relayarb.config.constants import DEFAULT_TRANSACTION_LIMIT
from relayarb.config.settings import ServerSettings, Settings
from relayarb.core.broadcaster import EventBroadcaster
from relayarb.core.context import BotContext
from relayarb.core.engine import ControlLoop
from relayarb.core.errors import FatalStartupError
from relayarb.core.types import TxStatus
from relayarb.dashboard.server import create_app, parse_limit
from relayarb.storage.ledger import Ledger
from tests.conftest import make_opportunity, make_record
from tests.mocks import MockRpc, make_stub_loop


def wait_until(condition: Callable[[], bool], timeout: float = 1.0) -> None:
    """Block until condition() holds."""
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)


def stub_factory() -> ControlLoop:
    return make_stub_loop(scan_interval_s=0.05)[0]


@pytest.fixture
def context(settings: Settings, ledger: Ledger) -> BotContext:
    """Context whose loops never touch the network."""
    return BotContext(settings, ledger, EventBroadcaster(), loop_factory=stub_factory)


@pytest.fixture
def client(context: BotContext) -> Iterator[TestClient]:
    """Client with the app lifespan running."""
    with TestClient(create_app(context)) as test_client:
        yield test_client


# =============================================================================
# Read Endpoints
# =============================================================================


class TestReadEndpoints:
    """Tests for the ledger-backed endpoints."""

    def test_root(self, client: TestClient) -> None:
        """Test the health endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["isRunning"] is False

    def test_stats_empty(self, client: TestClient) -> None:
        """Test stats on an empty ledger."""
        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {
            "totalTransactions": 0,
            "successfulTransactions": 0,
            "successRate": 0.0,
            "avgLatency": 0.0,
            "totalProfit": 0,
            "totalCost": 0,
            "relaySavings": 0.0,
            "isRunning": False,
            "network": "devnet",
        }

    def test_stats_aggregates(self, client: TestClient, ledger: Ledger) -> None:
        """Test stats reflect persisted rows."""
        ledger.record_transaction(make_record(signature="a", refunded=True, latency_ms=100))
        ledger.record_transaction(
            make_record(status=TxStatus.FAILED, signature="b", latency_ms=300)
        )

        data = client.get("/api/stats").json()

        assert data["totalTransactions"] == 2
        assert data["successfulTransactions"] == 1
        assert data["successRate"] == pytest.approx(50.0)
        assert data["avgLatency"] == pytest.approx(200.0)
        assert data["totalProfit"] == 40_000
        assert data["totalCost"] == 200_000
        assert data["relaySavings"] == pytest.approx(9_000)

    def test_stats_ledger_failure(self, client: TestClient, ledger: Ledger) -> None:
        """Test storage failures surface as 500 with an error body."""
        ledger.close()

        response = client.get("/api/stats")

        assert response.status_code == 500
        assert "error" in response.json()

    def test_transactions(self, client: TestClient, ledger: Ledger) -> None:
        """Test newest-first listing with a limit."""
        for i in range(3):
            ledger.record_transaction(make_record(signature=f"sig{i}"))

        response = client.get("/api/transactions", params={"limit": 2})

        assert response.status_code == 200
        assert [r["tx_signature"] for r in response.json()] == ["sig2", "sig1"]

    @pytest.mark.parametrize("limit", [0, -5, "ten"])
    def test_transactions_bad_limit(
        self, client: TestClient, ledger: Ledger, limit: object
    ) -> None:
        """Test invalid limits fall back to the default page size."""
        for i in range(DEFAULT_TRANSACTION_LIMIT + 5):
            ledger.record_transaction(make_record(signature=f"sig{i}"))

        response = client.get("/api/transactions", params={"limit": limit})

        assert response.status_code == 200
        assert len(response.json()) == DEFAULT_TRANSACTION_LIMIT

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(None, 50), ("10", 10), ("0", 50), ("-5", 50), ("ten", 50), ("2.5", 50), ("5000", 1000)],
    )
    def test_parse_limit(self, raw: str | None, expected: int) -> None:
        """Test query limits are parsed, defaulted and capped."""
        assert parse_limit(raw) == expected

    def test_opportunities(self, client: TestClient, ledger: Ledger) -> None:
        """Test the opportunity listing."""
        ledger.record_opportunity(make_opportunity())

        rows = client.get("/api/opportunities").json()

        assert len(rows) == 1
        assert rows[0]["path"] == "SOL -> USDC -> SOL"
        assert rows[0]["executed"] is False


# =============================================================================
# Bot Control
# =============================================================================


class TestBotControl:
    """Tests for start/stop."""

    def test_start_and_stop(self, client: TestClient) -> None:
        """Test a full start/stop cycle."""
        response = client.post("/api/bot/start")

        assert response.status_code == 200
        assert response.json() == {"message": "Bot started successfully", "isRunning": True}
        assert client.get("/").json()["isRunning"] is True

        response = client.post("/api/bot/stop")

        assert response.status_code == 200
        assert response.json()["message"] == "Bot stopped"
        assert response.json()["stats"]["totalTrades"] == 0
        assert client.get("/").json()["isRunning"] is False

    def test_start_twice(self, client: TestClient) -> None:
        """Test a second start is a conflict."""
        client.post("/api/bot/start")

        response = client.post("/api/bot/start")

        assert response.status_code == 400
        assert response.json() == {"error": "Bot already running"}

    def test_stop_idle(self, client: TestClient) -> None:
        """Test stopping an idle bot is a conflict."""
        response = client.post("/api/bot/stop")

        assert response.status_code == 400
        assert response.json() == {"error": "Bot not running"}

    def test_restart(self, client: TestClient) -> None:
        """Test the bot can be started again after a stop."""
        client.post("/api/bot/start")
        client.post("/api/bot/stop")

        response = client.post("/api/bot/start")

        assert response.status_code == 200
        assert client.post("/api/bot/stop").json()["stats"]["totalTrades"] == 0

    def test_start_low_balance(self, settings: Settings, ledger: Ledger) -> None:
        """Test a failed pre-flight check returns 500 and leaves the bot stopped."""
        context = BotContext(
            settings,
            ledger,
            loop_factory=lambda: make_stub_loop(rpc=MockRpc(balance=0))[0],
        )

        with TestClient(create_app(context)) as client:
            response = client.post("/api/bot/start")

            assert response.status_code == 500
            assert "Insufficient balance" in response.json()["error"]
            assert client.get("/").json()["isRunning"] is False

    def test_start_construction_failure(self, settings: Settings, ledger: Ledger) -> None:
        """Test factory errors return 500."""

        def broken_factory() -> ControlLoop:
            raise FatalStartupError("WALLET_PRIVATE_KEY is not set")

        context = BotContext(settings, ledger, loop_factory=broken_factory)

        with TestClient(create_app(context)) as client:
            response = client.post("/api/bot/start")

        assert response.status_code == 500
        assert response.json() == {"error": "WALLET_PRIVATE_KEY is not set"}

    def test_start_without_wallet(self, tmp_path: Path, ledger: Ledger) -> None:
        """Test the default factory refuses to start without a wallet key."""
        settings = Settings(_env_file=None, database_path=str(tmp_path / "bot.db"))
        context = BotContext(settings, ledger)

        with TestClient(create_app(context)) as client:
            response = client.post("/api/bot/start")

        assert response.status_code == 500
        assert "WALLET_PRIVATE_KEY" in response.json()["error"]

    def test_start_invalid_trading_config(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, ledger: Ledger
    ) -> None:
        """Test a bad trading value fails the start, not the server."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MIN_PROFIT_PERCENT", "abc")
        context = BotContext(ServerSettings(_env_file=None), ledger)

        with TestClient(create_app(context)) as client:
            assert client.get("/").status_code == 200
            response = client.post("/api/bot/start")

        assert response.status_code == 500
        assert response.json() == {"error": "Invalid configuration: min_profit_percent"}
        assert not context.is_running

    def test_shutdown_stops_bot(self, context: BotContext, ledger: Ledger) -> None:
        """Test the app lifespan stops the loop and closes the ledger."""
        with TestClient(create_app(context)) as client:
            client.post("/api/bot/start")
            assert context.is_running

        assert not context.is_running
        assert ledger.is_closed


# =============================================================================
# WebSocket
# =============================================================================


class TestWebSocket:
    """Tests for the live event stream."""

    def test_init_event(self, client: TestClient) -> None:
        """Test the first message describes the bot state."""
        with client.websocket_connect("/ws") as ws:
            event = ws.receive_json()

        assert event == {"type": "init", "data": {"isRunning": False, "network": "devnet"}}

    def test_transaction_pushed(self, client: TestClient, context: BotContext) -> None:
        """Test finalized transactions are pushed to connected clients."""
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            wait_until(lambda: context.broadcaster.observer_count == 1)

            async def publish() -> None:
                context.broadcaster.publish(make_record(signature="live"))
                await context.broadcaster.drain()

            client.portal.call(publish)  # type: ignore[union-attr]
            event = ws.receive_json()

        assert event["type"] == "transaction"
        assert event["data"]["tx_signature"] == "live"
        assert event["data"]["status"] == "success"

    def test_status_pushed_on_start(self, client: TestClient, context: BotContext) -> None:
        """Test connected clients see the bot start."""
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            wait_until(lambda: context.broadcaster.observer_count == 1)

            client.post("/api/bot/start")
            event = ws.receive_json()

        assert event == {"type": "status", "data": {"isRunning": True, "network": "devnet"}}

    def test_disconnect_unregisters(self, client: TestClient, context: BotContext) -> None:
        """Test closed connections leave the observer registry."""
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            wait_until(lambda: context.broadcaster.observer_count == 1)

        wait_until(lambda: context.broadcaster.observer_count == 0)
