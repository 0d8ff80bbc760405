"""Dashboard module: HTTP and WebSocket control surface."""

from relayarb.dashboard.server import build_context, create_app, main


__all__ = [
    "build_context",
    "create_app",
    "main",
]
