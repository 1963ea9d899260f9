"""Shared fixtures for contentsync tests."""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

import pytest

from contentsync.client.api import (
    NotFoundError,
    RemoteEntry,
    RemoteError,
    VersionMismatchError,
)
from contentsync.client.codec import encode
from contentsync.client.store import LocalStore
from contentsync.client.sync import SyncOrchestrator


class FakeRemote:
    """In-memory repository with per-object version tokens.

    Every successful write gets a new token. Updates must present the
    current token, creates must target a free path, exactly like the
    contents API.
    """

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.directories: set[str] = set()
        self.messages: list[str] = []
        self.failing: set[str] = set()
        self._revision = 0

    def _next_token(self) -> str:
        self._revision += 1
        return f"sha{self._revision}"

    def _check(self, path: str) -> None:
        if path in self.failing:
            raise RemoteError("Server Error", 500)

    def seed(self, path: str, record: dict[str, Any] | bytes) -> str:
        """Place an object directly, bypassing commit messages."""
        body = record if isinstance(record, bytes) else encode(record)
        token = self._next_token()
        self.objects[path] = (body, token)
        return token

    def record(self, path: str) -> dict[str, Any]:
        """Decode a stored object as JSON."""
        return dict(json.loads(self.objects[path][0]))

    def token(self, path: str) -> str:
        return self.objects[path][1]

    # RemoteObjectStore

    def read(self, path: str) -> bytes:
        self._check(path)
        if path not in self.objects:
            raise NotFoundError("Not Found", 404)
        return self.objects[path][0]

    def create(self, path: str, body: bytes, message: str) -> str:
        self._check(path)
        if path in self.objects:
            raise VersionMismatchError('Invalid request. "sha" wasn\'t supplied.', 422)
        token = self._next_token()
        self.objects[path] = (body, token)
        self.messages.append(message)
        return token

    def update(self, path: str, body: bytes, message: str, version_token: str) -> str:
        self._check(path)
        if path not in self.objects:
            raise NotFoundError("Not Found", 404)
        if self.objects[path][1] != version_token:
            raise VersionMismatchError(f"{path} does not match {version_token}", 409)
        token = self._next_token()
        self.objects[path] = (body, token)
        self.messages.append(message)
        return token

    def list(self, path: str) -> list[RemoteEntry]:
        self._check(path)
        prefix = path.rstrip("/") + "/"
        entries = [
            RemoteEntry(name=p[len(prefix):], path=p, version_token=token, type="file")
            for p, (_, token) in sorted(self.objects.items())
            if p.startswith(prefix) and "/" not in p[len(prefix):]
        ]
        entries.extend(
            RemoteEntry(name=d[len(prefix):], path=d, version_token="tree", type="dir")
            for d in sorted(self.directories)
            if d.startswith(prefix) and "/" not in d[len(prefix):]
        )
        return entries

    def version_token_for(self, path: str) -> str | None:
        parent, _, name = path.rpartition("/")
        for entry in self.list(parent):
            if entry.name == name:
                return entry.version_token
        return None


@pytest.fixture
def remote() -> FakeRemote:
    """Create an empty in-memory repository."""
    return FakeRemote()


@pytest.fixture
def store() -> Iterator[LocalStore]:
    """Create an in-memory local store."""
    local_store = LocalStore(":memory:")
    yield local_store
    local_store.close()


@pytest.fixture
def orchestrator(remote: FakeRemote, store: LocalStore) -> SyncOrchestrator:
    """Create an orchestrator over the fake remote and the local store."""
    return SyncOrchestrator(remote, store)
