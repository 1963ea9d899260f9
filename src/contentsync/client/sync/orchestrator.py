"""Sync orchestrator reconciling the local store with the remote repository.

This module provides:
- SyncOrchestrator: push, pull and sync (pull then push) per entity type

Policy:
- push rewrites every local record of the selected types. The version token
  is looked up before each write and only decides between create and update.
- pull inserts unknown records and overwrites a local record only when the
  remote ``updatedAt`` is strictly newer. Otherwise the remote value is
  dropped and counted as a conflict, so the local side wins ties.
- sync pulls, then pushes every local record except those the pull just
  wrote, which already match the remote copy.
- A failure on one record or one type is collected in the result and
  processing moves on. Nothing is retried.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any

from contentsync.client.api import NotFoundError
from contentsync.client.codec import commit_message, decode, encode, is_record_file, path_for
from contentsync.client.sync.types import (
    RecordStore,
    RemoteObjectStore,
    SyncInProgressError,
    SyncResult,
)
from contentsync.core.types import DEFAULT_ENTITY_TYPES, EntityType, SyncKind

if TYPE_CHECKING:
    from contentsync.client.api import RemoteEntry
    from contentsync.client.history import SyncHistoryRecorder

logger = logging.getLogger(__name__)


def _updated_at(record: dict[str, Any]) -> float:
    value = record.get("updatedAt")
    return value if isinstance(value, (int, float)) else 0


class SyncOrchestrator:
    """Coordinates push/pull between the local store and the remote store.

    The orchestrator keeps no state between invocations. It does own a
    single-flight guard: starting an invocation while another one runs
    raises SyncInProgressError instead of letting both race on the same
    paths.
    """

    def __init__(
        self,
        remote: RemoteObjectStore,
        store: RecordStore,
        history: SyncHistoryRecorder | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            remote: Remote object client.
            store: Local record store.
            history: Optional recorder used by run().
        """
        self._remote = remote
        self._store = store
        self._history = history
        self._in_flight = threading.Lock()

    @property
    def is_running(self) -> bool:
        """Check if an invocation is in flight."""
        return self._in_flight.locked()

    @contextlib.contextmanager
    def _single_flight(self, kind: SyncKind) -> Iterator[None]:
        if not self._in_flight.acquire(blocking=False):
            raise SyncInProgressError(f"Cannot start {kind.value}: a sync is already running")
        try:
            yield
        finally:
            self._in_flight.release()

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def push(self, types: Iterable[EntityType | str] = DEFAULT_ENTITY_TYPES) -> SyncResult:
        """Write every local record of the selected types to the remote store.

        Args:
            types: Entity types to push.

        Returns:
            SyncResult with ``pushed`` and collected errors.
        """
        with self._single_flight(SyncKind.PUSH):
            return self._push(types)

    def pull(self, types: Iterable[EntityType | str] = DEFAULT_ENTITY_TYPES) -> SyncResult:
        """Bring remote records of the selected types into the local store.

        Args:
            types: Entity types to pull.

        Returns:
            SyncResult with ``pulled``, ``conflicts`` and collected errors.
        """
        with self._single_flight(SyncKind.PULL):
            return self._pull(types)

    def sync(self, types: Iterable[EntityType | str] = DEFAULT_ENTITY_TYPES) -> SyncResult:
        """Pull, then push.

        The push only starts once the pull is complete. Records the pull
        just copied from the remote are identical on both sides and are not
        written back; every other local record is pushed.

        Args:
            types: Entity types to synchronize.

        Returns:
            Combined result of both phases.
        """
        types = list(types)
        with self._single_flight(SyncKind.SYNC):
            # Keyed by the entityId inside each file. A file whose name differs
            # from its entityId is not rewritten under the canonical path here.
            just_pulled: set[tuple[EntityType, str]] = set()
            pull_result = self._pull(types, just_pulled)
            push_result = self._push(types, skip=just_pulled)
        return pull_result.merge(push_result)

    def run(
        self,
        kind: SyncKind | str,
        types: Iterable[EntityType | str] = DEFAULT_ENTITY_TYPES,
    ) -> SyncResult:
        """Run one invocation and record it in the history.

        Args:
            kind: push, pull or sync.
            types: Entity types to process.

        Returns:
            Result of the invocation.
        """
        kind = SyncKind(kind)
        operation = {
            SyncKind.PUSH: self.push,
            SyncKind.PULL: self.pull,
            SyncKind.SYNC: self.sync,
        }[kind]
        result = operation(types)

        logger.info(
            f"{kind.value} finished: pushed={result.pushed} pulled={result.pulled} "
            f"conflicts={result.conflicts} errors={len(result.errors)}"
        )
        if self._history is not None:
            self._history.record(kind, result)
        return result

    # -------------------------------------------------------------------------
    # Push
    # -------------------------------------------------------------------------

    def _push(
        self,
        types: Iterable[EntityType | str],
        skip: set[tuple[EntityType, str]] | None = None,
    ) -> SyncResult:
        result = SyncResult()
        try:
            for entity_type in [EntityType(t) for t in types]:
                self._push_type(entity_type, result, skip or set())
        except Exception as e:
            logger.error(f"Push aborted: {e}")
            result.add_error(f"General error: {e}")
        return result

    def _push_type(
        self,
        entity_type: EntityType,
        result: SyncResult,
        skip: set[tuple[EntityType, str]],
    ) -> None:
        try:
            records = self._store.collection(entity_type).list_all()
        except Exception as e:
            logger.error(f"Failed to enumerate local {entity_type.value}: {e}")
            result.add_error(f"{entity_type.value.capitalize()}: {e}")
            return

        logger.debug(f"Pushing {len(records)} {entity_type.value}")
        for record in records:
            entity_id = record.get(entity_type.natural_key)
            if (entity_type, entity_id) in skip:
                continue
            try:
                self._push_record(entity_type, record)
                result.pushed += 1
            except Exception as e:
                logger.warning(f"Failed to push {entity_type.singular} {entity_id}: {e}")
                result.add_error(f"{entity_type.label} {entity_id}: {e}")

    def _push_record(self, entity_type: EntityType, record: dict[str, Any]) -> None:
        path = path_for(entity_type, record[entity_type.natural_key])
        body = encode(record)
        version_token = self._remote.version_token_for(path)

        if version_token:
            message = commit_message(entity_type, record, created=False)
            self._remote.update(path, body, message, version_token)
        else:
            message = commit_message(entity_type, record, created=True)
            self._remote.create(path, body, message)

    # -------------------------------------------------------------------------
    # Pull
    # -------------------------------------------------------------------------

    def _pull(
        self,
        types: Iterable[EntityType | str],
        pulled_keys: set[tuple[EntityType, str]] | None = None,
    ) -> SyncResult:
        result = SyncResult()
        if pulled_keys is None:
            pulled_keys = set()
        try:
            for entity_type in [EntityType(t) for t in types]:
                self._pull_type(entity_type, result, pulled_keys)
        except Exception as e:
            logger.error(f"Pull aborted: {e}")
            result.add_error(f"General error: {e}")
        return result

    def _pull_type(
        self,
        entity_type: EntityType,
        result: SyncResult,
        pulled_keys: set[tuple[EntityType, str]],
    ) -> None:
        try:
            entries: list[RemoteEntry] = self._remote.list(entity_type.directory)
        except NotFoundError:
            entries = []
        except Exception as e:
            logger.error(f"Failed to list remote {entity_type.value}: {e}")
            result.add_error(f"{entity_type.value.capitalize()}: {e}")
            return

        logger.debug(f"Pulling {len(entries)} entries from {entity_type.directory}")
        for entry in entries:
            if not entry.is_file or not is_record_file(entry.name):
                continue
            try:
                entity_id = self._pull_record(entity_type, entry.path, result)
                if entity_id is not None:
                    pulled_keys.add((entity_type, entity_id))
            except Exception as e:
                logger.warning(f"Failed to pull {entry.path}: {e}")
                result.add_error(f"{entity_type.label} {entry.name}: {e}")

    def _pull_record(
        self, entity_type: EntityType, path: str, result: SyncResult
    ) -> str | None:
        """Apply one remote object locally.

        Returns:
            The natural key if the local store was written, None if the
            local record was kept.
        """
        remote_record = decode(entity_type, self._remote.read(path))
        entity_id = remote_record[entity_type.natural_key]
        collection = self._store.collection(entity_type)
        local_record = collection.find_by_natural_key(entity_id)

        if local_record is None:
            collection.insert(remote_record)
            result.pulled += 1
            return entity_id

        if _updated_at(remote_record) > _updated_at(local_record):
            collection.update_by_id(local_record["id"], remote_record)
            result.pulled += 1
            return entity_id

        # Local wins ties; the remote value is discarded.
        logger.debug(f"Kept local {entity_type.singular} {entity_id}")
        result.conflicts += 1
        return None
