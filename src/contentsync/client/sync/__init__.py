"""Sync operations between the local store and the remote repository.

Architecture:
    SyncOrchestrator → (codec ↔ LocalStore) and (codec ↔ ContentsClient)
                     → SyncHistoryRecorder

Components:
- **SyncOrchestrator**: push, pull and sync per entity type
- **SyncResult**: counts and errors of one invocation
- **Protocols**: RemoteObjectStore, RecordStore, RecordCollection

All public symbols are re-exported here.
"""

from contentsync.client.sync.orchestrator import SyncOrchestrator
from contentsync.client.sync.types import (
    RecordCollection,
    RecordStore,
    RemoteObjectStore,
    SyncError,
    SyncInProgressError,
    SyncResult,
)

__all__ = [
    "RecordCollection",
    "RecordStore",
    "RemoteObjectStore",
    "SyncError",
    "SyncInProgressError",
    "SyncOrchestrator",
    "SyncResult",
]
