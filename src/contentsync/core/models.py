"""Pydantic schemas for content records.

Records travel as plain dicts between the local store and the remote
repository. These models describe the minimum shape each entity type must
have; unknown fields are kept as-is so that newer writers do not lose data
when an older client round-trips a record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, ValidationError

from contentsync.core.types import EntityType

Timestamp = StrictInt | StrictFloat


class RecordModel(BaseModel):
    """Fields shared by every record."""

    model_config = ConfigDict(extra="allow")

    createdAt: Timestamp | None = None
    updatedAt: Timestamp = 0


class ActivityRecord(RecordModel):
    """Activity authored by a trainer."""

    activityId: str = Field(min_length=1)
    title: str = Field(min_length=1)
    content: dict[str, Any] | None = None


class ResourceRecord(RecordModel):
    """External or uploaded learning resource."""

    resourceId: str = Field(min_length=1)
    title: str = Field(min_length=1)
    type: Literal["pdf", "video", "link", "document", "image", "other"]
    url: str | None = None
    metadata: dict[str, Any] | None = None


class SessionRecord(RecordModel):
    """Ordered group of activities."""

    sessionId: str = Field(min_length=1)
    title: str = Field(min_length=1)
    activities: list[str]


class ResponseRecord(RecordModel):
    """Learner answer to an activity."""

    responseId: str = Field(min_length=1)
    activityId: str = Field(min_length=1)
    activityTitle: str | None = None
    studentName: str | None = None
    studentId: str | None = None
    content: dict[str, Any] | None = None
    score: float | None = Field(default=None, ge=0, le=100)
    status: Literal["pending", "completed", "graded"] | None = None


class TokenRecord(RecordModel):
    """Access token handed out to learners."""

    tokenId: str = Field(min_length=1)
    token: str = Field(min_length=1)
    activityId: str | None = None
    activityTitle: str | None = None
    expiresAt: Timestamp | None = None
    maxUses: int | None = None
    uses: int = 0
    isActive: bool = True
    description: str | None = None


RECORD_MODELS: dict[EntityType, type[RecordModel]] = {
    EntityType.ACTIVITIES: ActivityRecord,
    EntityType.RESOURCES: ResourceRecord,
    EntityType.SESSIONS: SessionRecord,
    EntityType.RESPONSES: ResponseRecord,
    EntityType.TOKENS: TokenRecord,
}


@dataclass
class ValidationIssue:
    """One problem found in a record."""

    field: str
    message: str


@dataclass
class ValidationResult:
    """Result of validate_and_sanitize()."""

    valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    sanitized: dict[str, Any] | None = None


def sanitize(entity_type: EntityType, data: dict[str, Any]) -> dict[str, Any]:
    """Drop unset values and trim free-text fields.

    Args:
        entity_type: Type of the record.
        data: Raw record.

    Returns:
        A new, sanitized dict.
    """
    sanitized = {k: v for k, v in data.items() if v is not None}

    if isinstance(sanitized.get("title"), str):
        sanitized["title"] = sanitized["title"].strip()

    if entity_type is EntityType.RESOURCES and isinstance(sanitized.get("url"), str):
        sanitized["url"] = sanitized["url"].strip()

    if entity_type is EntityType.SESSIONS and not isinstance(
        sanitized.get("activities"), list
    ):
        sanitized["activities"] = []

    return sanitized


def format_errors(error: ValidationError) -> list[ValidationIssue]:
    """Convert pydantic errors to readable issues."""
    issues = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "root"
        if err["type"] == "missing":
            message = f'Field "{loc}" is required'
        else:
            message = f'Field "{loc}": {err["msg"]}'
        issues.append(ValidationIssue(field=loc, message=message))
    return issues


def validate_record(entity_type: EntityType, data: Any) -> dict[str, Any]:
    """Validate a record against its type schema.

    Args:
        entity_type: Type of the record.
        data: Decoded record.

    Returns:
        A shallow copy of the record, unknown fields included.

    Raises:
        pydantic.ValidationError: If the record does not match the schema.
    """
    RECORD_MODELS[entity_type].model_validate(data)
    return dict(data)


def validate_and_sanitize(
    entity_type: EntityType, data: dict[str, Any]
) -> ValidationResult:
    """Sanitize then validate a record before it is persisted locally.

    Args:
        entity_type: Type of the record.
        data: Record as entered by the user.

    Returns:
        ValidationResult carrying the sanitized record when valid.
    """
    sanitized = sanitize(entity_type, data)
    try:
        validate_record(entity_type, sanitized)
    except ValidationError as e:
        return ValidationResult(valid=False, errors=format_errors(e))
    return ValidationResult(valid=True, sanitized=sanitized)
