"""
Unit tests for the log pipeline.

Tests formatters, queue delivery to console and file, and restoring
the root logger afterwards.
"""

import io
import logging
from datetime import datetime
from pathlib import Path

import orjson

from relayarb.telemetry.logger import (
    JsonLineFormatter,
    LogPipeline,
    MicrosecondFormatter,
    setup_logging,
)


def make_log_record(
    msg: str = "trade %s", args: tuple[object, ...] = ("sig",)
) -> logging.LogRecord:
    return logging.LogRecord("relayarb.test", logging.INFO, __file__, 1, msg, args, None)


class TestFormatters:
    """Tests for console and file formatting."""

    def test_microsecond_timestamp(self) -> None:
        """Test timestamps carry six fractional digits."""
        record = make_log_record()
        record.created = datetime(2026, 1, 2, 3, 4, 5, 250000).timestamp()

        assert MicrosecondFormatter().formatTime(record) == "2026-01-02 03:04:05.250000"

    def test_json_line(self) -> None:
        """Test file records are single JSON objects with the rendered message."""
        line = JsonLineFormatter().format(make_log_record())

        entry = orjson.loads(line)
        assert "\n" not in line
        assert entry["message"] == "trade sig"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "relayarb.test"
        assert entry["ts"].endswith("+00:00")


class TestLogPipeline:
    """Tests for queue-backed delivery."""

    def test_console_and_file(self, tmp_path: Path) -> None:
        """Test records reach both outputs once the pipeline stops."""
        stream = io.StringIO()
        log_file = tmp_path / "logs" / "bot.jsonl"

        with LogPipeline(level=logging.INFO, log_file=log_file, stream=stream):
            logging.getLogger("relayarb.test").info("relayed %s", "5sig")
            logging.getLogger("relayarb.test").debug("hidden")

        assert "relayed 5sig" in stream.getvalue()
        assert "hidden" not in stream.getvalue()
        entries = [orjson.loads(line) for line in log_file.read_text().splitlines()]
        assert [e["message"] for e in entries] == ["relayed 5sig"]

    def test_third_party_records_routed(self) -> None:
        """Test non-relayarb loggers share the pipeline."""
        stream = io.StringIO()

        with LogPipeline(stream=stream):
            logging.getLogger("solana.rpc").warning("node is behind")

        assert "solana.rpc" in stream.getvalue()
        assert "node is behind" in stream.getvalue()

    def test_stop_restores_root(self) -> None:
        """Test the previous root handlers and level come back."""
        root = logging.getLogger()
        sentinel = logging.NullHandler()
        root.addHandler(sentinel)
        level_before = root.level

        try:
            pipeline = LogPipeline(level=logging.ERROR, stream=io.StringIO())
            pipeline.start()
            assert sentinel not in root.handlers
            assert root.level == logging.ERROR

            pipeline.stop()

            assert sentinel in root.handlers
            assert root.level == level_before
            assert not pipeline.is_running
        finally:
            root.removeHandler(sentinel)

    def test_setup_logging(self) -> None:
        """Test level names are resolved and noisy libraries quieted."""
        pipeline = setup_logging(level="warning")

        try:
            assert pipeline.is_running
            assert logging.getLogger().level == logging.WARNING
            assert logging.getLogger("aiohttp").level == logging.WARNING
        finally:
            pipeline.stop()
