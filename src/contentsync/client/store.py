"""Local content store.

This module provides:
- LocalStore: SQLite database holding one table per entity type
- LocalCollection: per-type view used by the sync orchestrator

Records are kept as JSON documents. The natural key and ``updatedAt`` are
also stored in their own columns so lookups do not need to parse every row.
Each write commits on its own; there is no transaction spanning several
records.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

from contentsync.core.types import EntityType

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Local store rejected an operation."""


class LocalStore:
    """SQLite-based local content store."""

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the local store.

        Args:
            db_path: Path to SQLite database file (``:memory:`` allowed).
        """
        if str(db_path) != ":memory:":
            db_path = Path(db_path)
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path

        # Lock for thread-safe database access
        self._lock = threading.RLock()

        self._conn = sqlite3.connect(
            str(db_path),
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")

        self._create_tables()
        self._collections = {
            entity_type: LocalCollection(self, entity_type)
            for entity_type in EntityType
        }

    def _create_tables(self) -> None:
        """Create one table per entity type if missing."""
        with self._lock:
            for entity_type in EntityType:
                self._conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {entity_type.value} (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        entity_id TEXT NOT NULL UNIQUE,
                        updated_at REAL NOT NULL DEFAULT 0,
                        data TEXT NOT NULL
                    )
                """)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def collection(self, entity_type: EntityType) -> LocalCollection:
        """Get the collection holding records of one type."""
        return self._collections[entity_type]

    def counts(self) -> dict[EntityType, int]:
        """Count records per entity type."""
        with self._lock:
            return {
                entity_type: self._conn.execute(
                    f"SELECT COUNT(*) FROM {entity_type.value}"
                ).fetchone()[0]
                for entity_type in EntityType
            }

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Run a statement under the store lock."""
        with self._lock:
            return self._conn.execute(sql, params)


class LocalCollection:
    """Records of a single entity type.

    Records are plain dicts. Rows returned by this class carry the storage
    row id under ``id``.
    """

    def __init__(self, store: LocalStore, entity_type: EntityType) -> None:
        self._store = store
        self.entity_type = entity_type
        self._table = entity_type.value

    def _natural_key(self, record: dict[str, Any]) -> str:
        entity_id = record.get(self.entity_type.natural_key)
        if not entity_id:
            raise StoreError(
                f"{self.entity_type.label} is missing {self.entity_type.natural_key}"
            )
        return str(entity_id)

    @staticmethod
    def _from_row(row: sqlite3.Row) -> dict[str, Any]:
        record: dict[str, Any] = json.loads(row["data"])
        record["id"] = row["id"]
        return record

    @staticmethod
    def _serialize(record: dict[str, Any]) -> str:
        return json.dumps({k: v for k, v in record.items() if k != "id"})

    def list_all(self) -> list[dict[str, Any]]:
        """List every record, in insertion order."""
        rows = self._store.execute(
            f"SELECT * FROM {self._table} ORDER BY id"
        ).fetchall()
        return [self._from_row(row) for row in rows]

    def find_by_natural_key(self, entity_id: str) -> dict[str, Any] | None:
        """Get a record by its natural key.

        Returns:
            The record if found, None otherwise.
        """
        row = self._store.execute(
            f"SELECT * FROM {self._table} WHERE entity_id = ?",
            (entity_id,),
        ).fetchone()
        if row is None:
            return None
        return self._from_row(row)

    def insert(self, record: dict[str, Any]) -> int:
        """Insert a new record.

        Returns:
            Storage row id of the new record.

        Raises:
            StoreError: If the natural key is missing or already used.
        """
        entity_id = self._natural_key(record)
        try:
            cursor = self._store.execute(
                f"INSERT INTO {self._table} (entity_id, updated_at, data) VALUES (?, ?, ?)",
                (entity_id, record.get("updatedAt") or 0, self._serialize(record)),
            )
        except sqlite3.IntegrityError as e:
            raise StoreError(
                f"{self.entity_type.label} {entity_id} already exists"
            ) from e
        row_id = cursor.lastrowid
        logger.debug(f"Inserted {self.entity_type.singular} {entity_id} as row {row_id}")
        return int(row_id) if row_id is not None else 0

    def update_by_id(self, row_id: int, record: dict[str, Any]) -> None:
        """Replace the record stored under a row id.

        Raises:
            StoreError: If no row has this id.
        """
        entity_id = self._natural_key(record)
        cursor = self._store.execute(
            f"UPDATE {self._table} SET entity_id = ?, updated_at = ?, data = ? WHERE id = ?",
            (entity_id, record.get("updatedAt") or 0, self._serialize(record), row_id),
        )
        if cursor.rowcount == 0:
            raise StoreError(f"No {self.entity_type.singular} with row id {row_id}")
