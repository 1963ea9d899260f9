"""Sync history.

Every push, pull or sync leaves one entry behind so the user can audit what
happened. Entries are appended, never modified, and listed most recent
first.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from dataclasses import dataclass
from pathlib import Path

from contentsync.client.sync.types import SyncResult
from contentsync.core.types import HistoryStatus, SyncKind

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


def classify_status(result: SyncResult) -> HistoryStatus:
    """Classify the outcome of an invocation.

    Args:
        result: Completed result.

    Returns:
        SUCCESS without errors, PARTIAL if errors occurred but some records
        were still transferred, ERROR otherwise.
    """
    if result.success:
        return HistoryStatus.SUCCESS
    if result.transferred > 0:
        return HistoryStatus.PARTIAL
    return HistoryStatus.ERROR


@dataclass(frozen=True)
class SyncHistoryEntry:
    """One recorded invocation.

    Attributes:
        id: Storage row id.
        sync_id: ``sync-<epoch ms>`` identifier.
        type: Kind of invocation.
        status: Classified outcome.
        pushed: Records written remotely.
        pulled: Records written locally.
        conflicts: Remote values discarded in favour of local ones.
        errors: Error messages collected.
        timestamp: Epoch milliseconds when the entry was recorded.
    """

    id: int
    sync_id: str
    type: SyncKind
    status: HistoryStatus
    pushed: int
    pulled: int
    conflicts: int
    errors: tuple[str, ...]
    timestamp: int

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> SyncHistoryEntry:
        """Create SyncHistoryEntry from database row."""
        return cls(
            id=row["id"],
            sync_id=row["sync_id"],
            type=SyncKind(row["type"]),
            status=HistoryStatus(row["status"]),
            pushed=row["pushed"],
            pulled=row["pulled"],
            conflicts=row["conflicts"],
            errors=tuple(json.loads(row["errors"])),
            timestamp=row["timestamp"],
        )


class SyncHistoryRecorder:
    """SQLite-backed, append-only sync history."""

    def __init__(self, db_path: Path | str) -> None:
        """Open (or create) the history database.

        Args:
            db_path: Path to SQLite database file (``:memory:`` allowed).
        """
        if str(db_path) != ":memory:":
            db_path = Path(db_path)
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()
        self._conn = sqlite3.connect(
            str(db_path),
            check_same_thread=False,
            isolation_level=None,
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS sync_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                sync_id TEXT NOT NULL,
                type TEXT NOT NULL,
                status TEXT NOT NULL,
                pushed INTEGER NOT NULL,
                pulled INTEGER NOT NULL,
                conflicts INTEGER NOT NULL,
                errors TEXT NOT NULL,
                timestamp INTEGER NOT NULL
            )
        """)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def record(
        self,
        kind: SyncKind,
        result: SyncResult,
        timestamp: int | None = None,
    ) -> SyncHistoryEntry:
        """Append an entry for a completed invocation.

        Args:
            kind: push, pull or sync.
            result: Result returned by the orchestrator.
            timestamp: Epoch milliseconds (defaults to now).

        Returns:
            The stored entry.
        """
        if timestamp is None:
            timestamp = int(time.time() * 1000)
        kind = SyncKind(kind)
        status = classify_status(result)
        sync_id = f"sync-{timestamp}"

        with self._lock:
            cursor = self._conn.execute(
                """
                INSERT INTO sync_history (
                    sync_id, type, status, pushed, pulled, conflicts, errors, timestamp
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    sync_id,
                    kind.value,
                    status.value,
                    result.pushed,
                    result.pulled,
                    result.conflicts,
                    json.dumps(result.errors),
                    timestamp,
                ),
            )
            row_id = cursor.lastrowid

        logger.info(f"Recorded {kind.value} as {status.value} ({sync_id})")
        return SyncHistoryEntry(
            id=int(row_id or 0),
            sync_id=sync_id,
            type=kind,
            status=status,
            pushed=result.pushed,
            pulled=result.pulled,
            conflicts=result.conflicts,
            errors=tuple(result.errors),
            timestamp=timestamp,
        )

    def list_entries(self, limit: int | None = DEFAULT_HISTORY_LIMIT) -> list[SyncHistoryEntry]:
        """List entries, most recent first.

        Args:
            limit: Maximum number of entries (None for all).

        Returns:
            History entries.
        """
        sql = "SELECT * FROM sync_history ORDER BY timestamp DESC, id DESC"
        params: tuple[int, ...] = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [SyncHistoryEntry.from_row(row) for row in rows]

    def latest(self) -> SyncHistoryEntry | None:
        """Get the most recent entry, if any."""
        entries = self.list_entries(limit=1)
        return entries[0] if entries else None
