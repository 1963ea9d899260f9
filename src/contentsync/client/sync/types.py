"""Shared types for sync operations.

This module provides:
- SyncError, SyncInProgressError: Exception classes
- SyncResult: Counts and errors of one push/pull/sync invocation
- RemoteObjectStore, RecordCollection, RecordStore: Protocols for the two
  replicas the orchestrator reconciles
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from contentsync.client.api import RemoteEntry
from contentsync.core.types import EntityType


class SyncError(Exception):
    """Base exception for sync errors."""


class SyncInProgressError(SyncError):
    """Another push/pull/sync is already running on this orchestrator."""


@dataclass
class SyncResult:
    """Result of a push, pull or sync.

    Counts only ever grow during an invocation. The result is successful
    exactly when no error was collected.
    """

    pushed: int = 0
    pulled: int = 0
    conflicts: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no error was collected."""
        return not self.errors

    @property
    def transferred(self) -> int:
        """Records written to either replica."""
        return self.pushed + self.pulled

    def add_error(self, error: str) -> None:
        """Add an error message."""
        self.errors.append(error)

    def merge(self, other: SyncResult) -> SyncResult:
        """Combine two results: counts add up, errors are concatenated."""
        return SyncResult(
            pushed=self.pushed + other.pushed,
            pulled=self.pulled + other.pulled,
            conflicts=self.conflicts + other.conflicts,
            errors=[*self.errors, *other.errors],
        )


class RemoteObjectStore(Protocol):
    """Remote replica: path-addressed objects with version tokens."""

    def read(self, path: str) -> bytes: ...

    def create(self, path: str, body: bytes, message: str) -> str: ...

    def update(
        self, path: str, body: bytes, message: str, version_token: str
    ) -> str: ...

    def list(self, path: str) -> list[RemoteEntry]: ...

    def version_token_for(self, path: str) -> str | None: ...


class RecordCollection(Protocol):
    """Local records of one entity type."""

    def list_all(self) -> list[dict[str, Any]]: ...

    def find_by_natural_key(self, entity_id: str) -> dict[str, Any] | None: ...

    def insert(self, record: dict[str, Any]) -> int: ...

    def update_by_id(self, row_id: int, record: dict[str, Any]) -> None: ...


class RecordStore(Protocol):
    """Local replica."""

    def collection(self, entity_type: EntityType) -> RecordCollection: ...
