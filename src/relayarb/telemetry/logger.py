"""
Process-wide log pipeline.

Every logger (relayarb, solana, uvicorn) feeds one queue that a
background thread drains, so console and file I/O never stall the event
loop between relay calls. The console gets readable lines; the optional
log file gets rotating JSON lines for later forensics.
"""

import logging
import sys
from datetime import UTC, datetime
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import Any, Final, TextIO

import orjson

from relayarb.config.constants import (
    LOG_DATE_FORMAT,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
    LOG_FORMAT,
    MAX_LOG_QUEUE_SIZE,
)


# Chatty at INFO; capped at WARNING
QUIET_LOGGERS: Final[tuple[str, ...]] = (
    "aiohttp",
    "asyncio",
    "httpx",
    "httpcore",
    "uvicorn.access",
)


class MicrosecondFormatter(logging.Formatter):
    """Console formatter with microsecond precision timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ct = datetime.fromtimestamp(record.created)
        return f"{ct.strftime(datefmt or LOG_DATE_FORMAT)}.{ct.microsecond:06d}"


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="microseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        return orjson.dumps(entry).decode()


class LogPipeline:
    """
    Queue-backed output for the root logger.

    `start()` swaps the root logger's handlers for a single QueueHandler;
    `stop()` flushes the queue and puts the previous handlers back.
    """

    def __init__(
        self,
        level: int = logging.INFO,
        log_file: Path | None = None,
        stream: TextIO | None = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            level: Minimum level for every output.
            log_file: Optional JSON lines file, rotated by size.
            stream: Console stream (stdout by default).
        """
        self._level = level
        self._log_file = log_file
        self._stream = stream or sys.stdout
        self._queue: Queue[logging.LogRecord] = Queue(maxsize=MAX_LOG_QUEUE_SIZE)
        self._queue_handler: QueueHandler | None = None
        self._listener: QueueListener | None = None
        self._outputs: list[logging.Handler] = []
        self._previous_handlers: list[logging.Handler] = []
        self._previous_level = logging.NOTSET

    def _build_outputs(self) -> list[logging.Handler]:
        console = logging.StreamHandler(self._stream)
        console.setFormatter(MicrosecondFormatter(LOG_FORMAT, LOG_DATE_FORMAT))
        outputs: list[logging.Handler] = [console]

        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                self._log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setFormatter(JsonLineFormatter())
            outputs.append(file_handler)

        return outputs

    def start(self) -> None:
        """Route root logger output through the queue."""
        if self._listener is not None:
            return

        root = logging.getLogger()
        self._previous_handlers = root.handlers[:]
        self._previous_level = root.level
        for handler in self._previous_handlers:
            root.removeHandler(handler)

        self._outputs = self._build_outputs()
        self._queue_handler = QueueHandler(self._queue)
        root.addHandler(self._queue_handler)
        root.setLevel(self._level)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        self._listener = QueueListener(self._queue, *self._outputs)
        self._listener.start()

    def stop(self) -> None:
        """Flush queued records and restore the previous root handlers."""
        if self._listener is None:
            return

        root = logging.getLogger()
        if self._queue_handler:
            root.removeHandler(self._queue_handler)
            self._queue_handler = None

        # Drains whatever is still queued before returning
        self._listener.stop()
        self._listener = None

        for output in self._outputs:
            output.close()
        self._outputs = []

        for handler in self._previous_handlers:
            root.addHandler(handler)
        root.setLevel(self._previous_level)
        self._previous_handlers = []

    @property
    def is_running(self) -> bool:
        """Whether the listener thread is active."""
        return self._listener is not None

    def __enter__(self) -> "LogPipeline":
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
) -> LogPipeline:
    """
    Set up process-wide logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional JSON lines log file.

    Returns:
        The started pipeline. Call stop() on shutdown.
    """
    pipeline = LogPipeline(
        level=getattr(logging, level.upper(), logging.INFO),
        log_file=log_file,
    )
    pipeline.start()
    return pipeline
