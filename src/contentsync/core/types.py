"""Shared types for contentsync.

This module defines the enums used by the store, the codec, the orchestrator
and the history recorder.
"""

from __future__ import annotations

from enum import Enum


class EntityType(str, Enum):
    """Kind of record kept in sync.

    The value is the plural name used both as the remote directory name
    and as the local table name.
    """

    ACTIVITIES = "activities"
    RESOURCES = "resources"
    SESSIONS = "sessions"
    RESPONSES = "responses"
    TOKENS = "tokens"

    @property
    def natural_key(self) -> str:
        """Field holding the stable identifier shared by both replicas."""
        return _NATURAL_KEYS[self]

    @property
    def singular(self) -> str:
        """Lowercase singular name, e.g. ``activity``."""
        return _SINGULAR[self]

    @property
    def label(self) -> str:
        """Capitalized singular name used in error messages."""
        return self.singular.capitalize()

    @property
    def directory(self) -> str:
        """Remote directory holding one object per record."""
        return f"data/{self.value}"


_NATURAL_KEYS = {
    EntityType.ACTIVITIES: "activityId",
    EntityType.RESOURCES: "resourceId",
    EntityType.SESSIONS: "sessionId",
    EntityType.RESPONSES: "responseId",
    EntityType.TOKENS: "tokenId",
}

_SINGULAR = {
    EntityType.ACTIVITIES: "activity",
    EntityType.RESOURCES: "resource",
    EntityType.SESSIONS: "session",
    EntityType.RESPONSES: "response",
    EntityType.TOKENS: "token",
}

# Responses are written by learners and are only synced on request.
DEFAULT_ENTITY_TYPES: tuple[EntityType, ...] = (
    EntityType.ACTIVITIES,
    EntityType.RESOURCES,
    EntityType.SESSIONS,
    EntityType.TOKENS,
)


class SyncKind(str, Enum):
    """Kind of orchestrator invocation."""

    PUSH = "push"
    PULL = "pull"
    SYNC = "sync"


class HistoryStatus(str, Enum):
    """Outcome of one invocation as recorded in the sync history."""

    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"
