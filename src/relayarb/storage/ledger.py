"""
SQLite trade ledger.

Append-only record of every opportunity and transaction, plus the
aggregate queries behind the stats endpoint. Each operation opens its
own short-lived connection; the file runs in WAL mode so the control
surface can read while the control loop writes.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import orjson

from relayarb.config.constants import (
    DEFAULT_TRANSACTION_LIMIT,
    OPPORTUNITY_LIMIT,
    TIP_REFUND_RATIO,
)
from relayarb.core.errors import LedgerError
from relayarb.core.types import LedgerSummary, Opportunity, TransactionRecord, TxStatus
from relayarb.utils.time import utc_now_iso


logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tx_signature TEXT UNIQUE,
    timestamp TEXT NOT NULL,
    network TEXT NOT NULL,
    method TEXT,
    dex TEXT,
    token_in TEXT,
    token_out TEXT,
    amount_in INTEGER,
    amount_out INTEGER,
    expected_profit INTEGER,
    actual_profit INTEGER,
    cost_units INTEGER NOT NULL DEFAULT 0,
    tip_units INTEGER NOT NULL DEFAULT 0,
    refunded INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL CHECK (status IN ('pending', 'success', 'failed')),
    latency_ms INTEGER NOT NULL DEFAULT 0,
    error_message TEXT
);

CREATE TABLE IF NOT EXISTS arbitrage_opportunities (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    path TEXT,
    token_in TEXT NOT NULL,
    token_out TEXT NOT NULL,
    dex_buy TEXT,
    dex_sell TEXT,
    amount_in INTEGER,
    buy_price REAL,
    sell_price REAL,
    profit_percent REAL,
    profit_units INTEGER,
    quotes TEXT,
    executed INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_transactions_timestamp ON transactions(timestamp);
CREATE INDEX IF NOT EXISTS idx_transactions_status ON transactions(status);
"""

_TRANSACTION_COLUMNS = (
    "tx_signature",
    "timestamp",
    "network",
    "method",
    "dex",
    "token_in",
    "token_out",
    "amount_in",
    "amount_out",
    "expected_profit",
    "actual_profit",
    "cost_units",
    "tip_units",
    "refunded",
    "status",
    "latency_ms",
    "error_message",
)


class Ledger:
    """
    Persistent store for opportunities and transactions.

    Rows are inserted once; the only mutation is the single
    pending -> success/failed transition of a transaction.
    """

    def __init__(self, path: str | Path) -> None:
        """
        Initialize ledger.

        Args:
            path: SQLite database file. Parent directories are created.
        """
        self._path = Path(path)
        self._closed = False

    # =========================================================================
    # Connection Management
    # =========================================================================

    def open(self) -> "Ledger":
        """Create the file, enable WAL and apply the schema."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._closed = False

        with self.cursor(commit=True) as c:
            c.execute("PRAGMA journal_mode=WAL;")
            c.execute("PRAGMA synchronous=NORMAL;")
            c.executescript(SCHEMA)

        logger.info(f"Ledger ready at {self._path}")
        return self

    def close(self) -> None:
        """Refuse further operations."""
        self._closed = True
        logger.info("Ledger closed")

    def get_connection(self) -> sqlite3.Connection:
        """Get a configured SQLite connection."""
        conn = sqlite3.connect(self._path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def cursor(self, commit: bool = False) -> Iterator[sqlite3.Cursor]:
        """
        Context manager for database interaction.

        Raises:
            LedgerError: If the ledger is closed or SQLite fails.
        """
        if self._closed:
            raise LedgerError("Ledger is closed")

        try:
            conn = self.get_connection()
        except sqlite3.Error as e:
            raise LedgerError(f"Cannot open ledger {self._path}: {e}") from e

        try:
            yield conn.cursor()
            if commit:
                conn.commit()
        except sqlite3.Error as e:
            if commit:
                conn.rollback()
            logger.error(f"Ledger error: {e}")
            raise LedgerError(str(e)) from e
        finally:
            conn.close()

    def _fetchone(self, query: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        """Fetch a single row as a dict."""
        with self.cursor() as c:
            c.execute(query, params)
            row = c.fetchone()
            return dict(row) if row else None

    def _fetchall(self, query: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        """Fetch multiple rows as dicts."""
        with self.cursor() as c:
            c.execute(query, params)
            return [dict(row) for row in c.fetchall()]

    # =========================================================================
    # Writes
    # =========================================================================

    def record_opportunity(self, opportunity: Opportunity) -> int:
        """
        Insert an accepted opportunity.

        Returns:
            Row id.
        """
        quotes = orjson.dumps([q.payload for q in opportunity.quotes]).decode()

        with self.cursor(commit=True) as c:
            c.execute(
                """
                INSERT INTO arbitrage_opportunities (
                    timestamp, path, token_in, token_out, dex_buy, dex_sell,
                    amount_in, buy_price, sell_price, profit_percent,
                    profit_units, quotes, executed
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0)
                """,
                (
                    utc_now_iso(),
                    opportunity.path,
                    opportunity.input_asset,
                    opportunity.output_asset,
                    opportunity.venue,
                    opportunity.venue,
                    opportunity.amount_in,
                    opportunity.buy_price,
                    opportunity.sell_price,
                    opportunity.profit_percent,
                    opportunity.profit_units,
                    quotes,
                ),
            )
            return int(c.lastrowid or 0)

    def record_transaction(self, record: TransactionRecord) -> int:
        """
        Insert a transaction record and assign its id.

        Returns:
            Row id.
        """
        values = record.to_dict()
        values["refunded"] = int(record.refunded)
        placeholders = ", ".join("?" for _ in _TRANSACTION_COLUMNS)

        with self.cursor(commit=True) as c:
            c.execute(
                f"INSERT INTO transactions ({', '.join(_TRANSACTION_COLUMNS)}) "
                f"VALUES ({placeholders})",
                tuple(values[col] for col in _TRANSACTION_COLUMNS),
            )
            row_id = int(c.lastrowid or 0)

        record.id = row_id
        return row_id

    def finalize_transaction(
        self,
        tx_id: int,
        status: TxStatus,
        error_message: str | None = None,
    ) -> bool:
        """
        Move a pending transaction to its terminal status.

        Args:
            tx_id: Row id returned by record_transaction.
            status: SUCCESS or FAILED.
            error_message: Failure reason, if any.

        Returns:
            True if the row was pending and is now final.
        """
        if status == TxStatus.PENDING:
            raise ValueError("Cannot finalize a transaction as pending")

        with self.cursor(commit=True) as c:
            c.execute(
                """
                UPDATE transactions SET status = ?, error_message = ?
                WHERE id = ? AND status = 'pending'
                """,
                (status.value, error_message, tx_id),
            )
            updated = c.rowcount == 1

        if not updated:
            logger.warning(f"Transaction {tx_id} was not pending; status left unchanged")
        return updated

    # =========================================================================
    # Reads
    # =========================================================================

    def get_transaction(self, tx_id: int) -> dict[str, Any] | None:
        """Fetch one transaction row."""
        row = self._fetchone("SELECT * FROM transactions WHERE id = ?", (tx_id,))
        return self._transaction_row(row) if row else None

    def recent_transactions(self, limit: int = DEFAULT_TRANSACTION_LIMIT) -> list[dict[str, Any]]:
        """Latest transactions, newest first."""
        rows = self._fetchall(
            "SELECT * FROM transactions ORDER BY timestamp DESC, id DESC LIMIT ?",
            (max(1, int(limit)),),
        )
        return [self._transaction_row(row) for row in rows]

    def recent_opportunities(self) -> list[dict[str, Any]]:
        """Latest opportunities, newest first, capped."""
        rows = self._fetchall(
            "SELECT * FROM arbitrage_opportunities ORDER BY timestamp DESC, id DESC LIMIT ?",
            (OPPORTUNITY_LIMIT,),
        )
        for row in rows:
            row["quotes"] = orjson.loads(row["quotes"]) if row["quotes"] else []
            row["executed"] = bool(row["executed"])
        return rows

    def summary(self) -> LedgerSummary:
        """Aggregate statistics over all transaction rows."""
        row = self._fetchone(
            """
            SELECT
                COUNT(*) AS total,
                COALESCE(SUM(CASE WHEN status = 'success' THEN 1 ELSE 0 END), 0) AS successful,
                COALESCE(AVG(NULLIF(latency_ms, 0)), 0) AS avg_latency,
                COALESCE(SUM(CASE WHEN status = 'success'
                    THEN COALESCE(actual_profit, expected_profit) ELSE 0 END), 0) AS total_profit,
                COALESCE(SUM(cost_units), 0) AS total_cost,
                COALESCE(SUM(CASE WHEN refunded = 1
                    THEN tip_units * ? ELSE 0 END), 0) AS relay_savings
            FROM transactions
            """,
            (TIP_REFUND_RATIO,),
        )
        if row is None:
            return LedgerSummary()

        return LedgerSummary(
            total_transactions=int(row["total"]),
            successful_transactions=int(row["successful"]),
            average_latency=float(row["avg_latency"]),
            total_profit=int(row["total_profit"]),
            total_cost=int(row["total_cost"]),
            relay_savings=float(row["relay_savings"]),
        )

    @staticmethod
    def _transaction_row(row: dict[str, Any]) -> dict[str, Any]:
        """Normalize SQLite integers back to booleans."""
        row["refunded"] = bool(row["refunded"])
        return row

    @property
    def path(self) -> Path:
        """Database file location."""
        return self._path

    @property
    def is_closed(self) -> bool:
        """Check if the ledger refuses operations."""
        return self._closed
