"""Core module - Shared configuration, types, and record schemas."""

from contentsync.core.config import DEFAULT_API_URL, SyncConfig
from contentsync.core.models import (
    RECORD_MODELS,
    ValidationIssue,
    ValidationResult,
    validate_and_sanitize,
    validate_record,
)
from contentsync.core.types import (
    DEFAULT_ENTITY_TYPES,
    EntityType,
    HistoryStatus,
    SyncKind,
)

__all__ = [
    # Config
    "DEFAULT_API_URL",
    "SyncConfig",
    # Records
    "RECORD_MODELS",
    "ValidationIssue",
    "ValidationResult",
    "validate_and_sanitize",
    "validate_record",
    # Types
    "DEFAULT_ENTITY_TYPES",
    "EntityType",
    "HistoryStatus",
    "SyncKind",
]
