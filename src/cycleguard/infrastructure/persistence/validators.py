"""
Structural validators for candidate records.

A validator receives the exact text about to become a record and raises
RecordValidationError if a reader must never see it.
"""

import json
from collections.abc import Callable, Mapping

import jsonschema

from cycleguard.domain.exceptions import RecordValidationError
from cycleguard.domain.models import RecordKind
from cycleguard.schemas import validate_status

RecordValidator = Callable[[str], None]


def validate_json_object(text: str) -> None:
    """Candidate must be a JSON object."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RecordValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise RecordValidationError(
            f"Expected JSON object, got {type(data).__name__}"
        )


def validate_status_record(text: str) -> None:
    """Candidate must be a JSON object satisfying the status schema."""
    validate_json_object(text)
    try:
        validate_status(json.loads(text))
    except jsonschema.ValidationError as e:
        raise RecordValidationError(f"Status record rejected: {e.message}") from e


def validate_counter(text: str) -> None:
    """Candidate must be a single non-negative integer."""
    try:
        value = int(text.strip())
    except ValueError as e:
        raise RecordValidationError(f"Counter is not an integer: {text!r}") from e
    if value < 0:
        raise RecordValidationError(f"Counter cannot be negative: {value}")


DEFAULT_VALIDATORS: Mapping[RecordKind, RecordValidator] = {
    RecordKind.STATUS: validate_status_record,
    RecordKind.COUNTER: validate_counter,
}
