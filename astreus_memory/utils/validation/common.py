"""Common validation utilities."""

import json
import re
from typing import Any, Optional

from ...core.exceptions import ConfigurationError, ValidationError


def validate_identifier(value: Any, field: str, max_length: int = 255) -> None:
    """Validate an opaque string identifier (session, user, document)."""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field)

    if not value.strip():
        raise ValidationError(f"{field} cannot be empty", field)

    if len(value) > max_length:
        raise ValidationError(f"{field} too long (max {max_length} characters)", field)


def validate_json_mapping(value: Optional[Any], field: str, max_bytes: int) -> None:
    """Validate an optional JSON-serializable dictionary with a size cap."""
    if value is None:
        return

    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be a dictionary", field)

    try:
        encoded = json.dumps(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} not JSON serializable: {e}", field)

    if len(encoded) > max_bytes:
        raise ValidationError(f"{field} too large (max {max_bytes // 1024}KB)", field)


_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def validate_table_name(name: str) -> str:
    """Validate a configurable table name; it is interpolated into SQL."""
    if not isinstance(name, str) or not _TABLE_NAME.match(name):
        raise ConfigurationError(f"Invalid table name: {name!r}", "table_name")
    return name
