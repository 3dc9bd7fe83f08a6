"""Memory-related validation utilities."""

from typing import Any, Dict, Optional

from ...core.exceptions import ValidationError
from ...models.memory import MemoryRole
from .common import validate_identifier, validate_json_mapping


def validate_session_id(session_id: Any) -> None:
    """Validate a session identifier."""
    validate_identifier(session_id, "session_id")


def validate_role(role: Any) -> MemoryRole:
    """Validate and normalize an entry role."""
    if isinstance(role, MemoryRole):
        return role

    try:
        return MemoryRole(role)
    except ValueError:
        allowed = ", ".join(r.value for r in MemoryRole)
        raise ValidationError(f"Invalid role '{role}' (expected one of: {allowed})", "role")


def validate_entry_content(content: Any) -> None:
    """Validate entry content."""
    if not isinstance(content, str):
        raise ValidationError("Entry content must be a string", "content")

    if not content.strip():
        raise ValidationError("Entry content cannot be empty", "content")

    if len(content) > 1024 * 1024:  # 1MB limit
        raise ValidationError("Entry content too large (max 1MB)", "content")


def validate_entry_metadata(metadata: Optional[Dict[str, Any]]) -> None:
    """Validate entry metadata."""
    validate_json_mapping(metadata, "metadata", 64 * 1024)


def validate_memory_entry(
    session_id: Any,
    role: Any,
    content: Any,
    user_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> MemoryRole:
    """Validate all fields of a new entry; returns the normalized role."""
    validate_session_id(session_id)
    normalized = validate_role(role)
    validate_entry_content(content)
    if user_id is not None:
        validate_identifier(user_id, "user_id")
    validate_entry_metadata(metadata)
    return normalized
