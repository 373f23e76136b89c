"""
In-memory implementation of the Record Store.

Useful for testing and ephemeral runs. Applies the same validators as the
filesystem store so rejected writes behave identically.
"""

import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from cycleguard.domain.exceptions import RecordValidationError
from cycleguard.domain.interfaces import RecordStoreInterface
from cycleguard.domain.models import RecordKind
from cycleguard.infrastructure.persistence.validators import (
    DEFAULT_VALIDATORS,
    RecordValidator,
)

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStoreInterface):
    """Simple in-memory record store for testing."""

    def __init__(
        self,
        validators: Mapping[RecordKind, RecordValidator] = DEFAULT_VALIDATORS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._records: dict[tuple[RecordKind, str], tuple[str, float]] = {}
        self._validators = dict(validators)
        self._clock = clock

    def _put(self, kind: RecordKind, key: str, text: str) -> bool:
        validator = self._validators.get(kind)
        if validator is not None:
            try:
                validator(text)
            except RecordValidationError as e:
                logger.warning(
                    "Discarded invalid %s record for %s: %s", kind.value, key, e
                )
                return False
        self._records[(kind, key)] = (text, self._clock())
        return True

    def read_json(self, kind: RecordKind, key: str) -> dict[str, Any] | None:
        text = self.read_text(kind, key)
        if text is None:
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None

    def write_json(self, kind: RecordKind, key: str, record: dict[str, Any]) -> bool:
        return self._put(kind, key, json.dumps(record, indent=2) + "\n")

    def read_text(self, kind: RecordKind, key: str) -> str | None:
        entry = self._records.get((kind, key))
        return entry[0] if entry else None

    def write_text(self, kind: RecordKind, key: str, text: str) -> bool:
        return self._put(kind, key, text)

    def append_text(self, kind: RecordKind, key: str, text: str) -> None:
        current = self.read_text(kind, key) or ""
        self._records[(kind, key)] = (current + text, self._clock())

    def exists(self, kind: RecordKind, key: str) -> bool:
        return (kind, key) in self._records

    def modified_at(self, kind: RecordKind, key: str) -> float | None:
        entry = self._records.get((kind, key))
        return entry[1] if entry else None

    def touch(self, kind: RecordKind, key: str) -> None:
        current = self.read_text(kind, key) or ""
        self._records[(kind, key)] = (current, self._clock())

    def delete(self, kind: RecordKind, key: str) -> None:
        self._records.pop((kind, key), None)

    def list_keys(self, kind: RecordKind) -> list[str]:
        return sorted(k for (rk, k) in self._records if rk is kind)
