"""
FastAPI control surface for the relay arbitrage bot.

Read endpoints serve ledger data; start/stop drive the control loop;
/ws streams finalized transactions to dashboards.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import orjson
import uvicorn
from fastapi import Depends, FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from relayarb import __version__
from relayarb.config.constants import DEFAULT_TRANSACTION_LIMIT, MAX_TRANSACTION_LIMIT
from relayarb.config.settings import ServerSettings, get_server_settings
from relayarb.core.broadcaster import EventBroadcaster
from relayarb.core.context import BotContext
from relayarb.core.errors import ControlConflictError, FatalStartupError, LedgerError
from relayarb.storage.ledger import Ledger
from relayarb.telemetry.logger import setup_logging


logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    """JSON error body without internals."""
    return JSONResponse(status_code=status_code, content={"error": message})


def parse_limit(raw: str | None) -> int:
    """Row limit from a query value; anything but a positive integer means the default."""
    try:
        limit = int(raw) if raw is not None else DEFAULT_TRANSACTION_LIMIT
    except ValueError:
        return DEFAULT_TRANSACTION_LIMIT
    if limit < 1:
        return DEFAULT_TRANSACTION_LIMIT
    return min(limit, MAX_TRANSACTION_LIMIT)


def get_context(request: Request) -> BotContext:
    """Dependency: the BotContext attached to the app."""
    return request.app.state.context  # type: ignore[no-any-return]


def create_app(context: BotContext) -> FastAPI:
    """
    Build the control surface around an existing context.

    The context is shut down (loop stopped, ledger closed) when the
    application's lifespan ends.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        logger.info("Shutting down control surface")
        await context.shutdown()

    app = FastAPI(title="Relay Arbitrage Bot", version=__version__, lifespan=lifespan)
    app.state.context = context
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.get("/")(get_root)
    app.get("/api/stats")(get_stats)
    app.get("/api/transactions")(get_transactions)
    app.get("/api/opportunities")(get_opportunities)
    app.post("/api/bot/start")(start_bot)
    app.post("/api/bot/stop")(stop_bot)
    app.websocket("/ws")(websocket_endpoint)
    return app


# =============================================================================
# HTTP Handlers
# =============================================================================


async def get_root(context: BotContext = Depends(get_context)) -> dict[str, Any]:
    return {
        "status": "ok",
        "message": "Relay arbitrage bot API",
        "isRunning": context.is_running,
    }


async def get_stats(context: BotContext = Depends(get_context)) -> Any:
    try:
        summary = context.ledger.summary()
    except LedgerError as e:
        return error_response(500, str(e))

    return {
        **summary.to_dict(),
        "isRunning": context.is_running,
        "network": context.network,
    }


async def get_transactions(
    limit: str | None = Query(default=None),
    context: BotContext = Depends(get_context),
) -> Any:
    try:
        return context.ledger.recent_transactions(parse_limit(limit))
    except LedgerError as e:
        return error_response(500, str(e))


async def get_opportunities(context: BotContext = Depends(get_context)) -> Any:
    try:
        return context.ledger.recent_opportunities()
    except LedgerError as e:
        return error_response(500, str(e))


async def start_bot(context: BotContext = Depends(get_context)) -> Any:
    try:
        await context.start_bot()
    except ControlConflictError as e:
        return error_response(400, str(e))
    except FatalStartupError as e:
        logger.error(f"Bot start refused: {e}")
        return error_response(500, str(e))
    except Exception as e:
        logger.exception("Bot construction failed")
        return error_response(500, f"Failed to start bot: {e}")

    return {"message": "Bot started successfully", "isRunning": True}


async def stop_bot(context: BotContext = Depends(get_context)) -> Any:
    try:
        stats = context.stop_bot()
    except ControlConflictError as e:
        return error_response(400, str(e))

    return {"message": "Bot stopped", "stats": stats.to_dict()}


# =============================================================================
# WebSocket
# =============================================================================


async def websocket_endpoint(websocket: WebSocket) -> None:
    context: BotContext = websocket.app.state.context
    await websocket.accept()

    await websocket.send_text(
        orjson.dumps(
            {"type": "init", "data": {"isRunning": context.is_running, "network": context.network}}
        ).decode()
    )
    context.broadcaster.register(websocket)

    try:
        while True:
            # Inbound messages are ignored; reading detects disconnects
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        context.broadcaster.unregister(websocket)


# =============================================================================
# Entry Point
# =============================================================================


def build_context(settings: ServerSettings) -> BotContext:
    """Open the ledger and wrap it in a context."""
    ledger = Ledger(settings.database_path).open()
    return BotContext(settings, ledger, EventBroadcaster())


def main() -> None:
    settings = get_server_settings()
    log_pipeline = setup_logging(
        level=settings.log_level,
        log_file=Path(settings.log_file) if settings.log_file else None,
    )

    try:
        app = create_app(build_context(settings))

        print(
            f"""
╔═══════════════════════════════════════════════════════════════╗
║              RELAY ARBITRAGE BOT v{__version__:<24}    ║
╚═══════════════════════════════════════════════════════════════╝

Network:   {settings.network}
API:       http://localhost:{settings.port}
WebSocket: ws://localhost:{settings.port}/ws
Ledger:    {settings.database_path}
Press Ctrl+C to stop.
    """
        )
        if settings.is_mainnet:
            print("⚠️  WARNING: mainnet-beta selected, trades use real funds.\n")

        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            log_level="warning",
        )
    finally:
        log_pipeline.stop()


if __name__ == "__main__":
    main()
