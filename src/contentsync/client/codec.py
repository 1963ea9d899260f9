"""Conversion between local records and remote objects.

Each record is stored as one pretty-printed JSON file at
``data/<entity type>/<natural key>.json``. The storage-internal row id is
local to each replica and never written remotely.
"""

from __future__ import annotations

import json
from typing import Any

from contentsync.core.types import EntityType

OBJECT_SUFFIX = ".json"
LOCAL_ONLY_FIELDS = frozenset({"id"})


class ParseError(Exception):
    """Remote object body could not be turned into a record."""


def path_for(entity_type: EntityType, entity_id: str) -> str:
    """Get the remote path of a record.

    Args:
        entity_type: Type of the record.
        entity_id: Natural key of the record.

    Returns:
        Repository path of the object.
    """
    return f"{entity_type.directory}/{entity_id}{OBJECT_SUFFIX}"


def is_record_file(name: str) -> bool:
    """Check if a directory entry name looks like a record object."""
    return name.endswith(OBJECT_SUFFIX)


def encode(record: dict[str, Any]) -> bytes:
    """Serialize a record to an object body.

    Args:
        record: Record as stored locally.

    Returns:
        UTF-8 JSON body.
    """
    payload = {k: v for k, v in record.items() if k not in LOCAL_ONLY_FIELDS}
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def decode(entity_type: EntityType, body: bytes | str) -> dict[str, Any]:
    """Parse an object body into a record.

    Args:
        entity_type: Expected type of the record.
        body: Object body.

    Returns:
        The record, without any local row id.

    Raises:
        ParseError: If the body is not a JSON object, lacks its natural key,
            or carries a non-numeric ``updatedAt``.
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}")

    for key in LOCAL_ONLY_FIELDS:
        data.pop(key, None)

    entity_id = data.get(entity_type.natural_key)
    if not isinstance(entity_id, str) or not entity_id:
        raise ParseError(
            f"Invalid {entity_type.singular}: missing {entity_type.natural_key}"
        )

    # Pull compares updatedAt numerically.
    updated_at = data.get("updatedAt")
    if updated_at is not None and (
        isinstance(updated_at, bool) or not isinstance(updated_at, (int, float))
    ):
        raise ParseError(
            f"Invalid {entity_type.singular}: updatedAt must be a number, "
            f"got {updated_at!r}"
        )

    return data


def commit_message(
    entity_type: EntityType, record: dict[str, Any], created: bool
) -> str:
    """Build the commit message for writing a record.

    Titled records are described by their title, the others by their
    natural key.
    """
    verb = "Create" if created else "Update"
    label = record.get("title") or record.get(entity_type.natural_key, "")
    return f"{verb} {entity_type.singular}: {label}"
