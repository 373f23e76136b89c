"""cycleguard JSON Schema definitions and validation utilities.

Schemas:
    - status.schema.json: Agent status record kept on shared storage
    - dependency_patterns.schema.json: Layer -> artifact location overrides

Usage:
    from cycleguard.schemas import validate_status

    validate_status(record)  # Raises jsonschema.ValidationError if invalid
"""

from __future__ import annotations

import json
from functools import cache
from importlib.resources import files
from typing import Any

import jsonschema


@cache
def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'status.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("cycleguard.schemas").joinpath(name).read_text()
    result: dict[str, Any] = json.loads(schema_text)
    return result


def get_status_schema() -> dict[str, Any]:
    """Get the status record schema."""
    return _load_schema("status.schema.json")


def get_dependency_patterns_schema() -> dict[str, Any]:
    """Get the dependency patterns schema."""
    return _load_schema("dependency_patterns.schema.json")


def validate_status(data: dict[str, Any]) -> None:
    """Validate a status record against the schema.

    Args:
        data: Status record in wire format

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_status_schema())


def validate_dependency_patterns(data: dict[str, Any]) -> None:
    """Validate a dependency pattern map against the schema.

    Args:
        data: Layer base name -> {root, test_glob[, test_marker]}

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_dependency_patterns_schema())


__all__ = [
    "get_status_schema",
    "get_dependency_patterns_schema",
    "validate_status",
    "validate_dependency_patterns",
]
