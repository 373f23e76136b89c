"""
Filesystem implementation of the Record Store.

Provides crash-safe storage for per-agent records on a shared mount.
Whole-record writes go through write-to-temp + validate + rename.
"""

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from cycleguard.domain.exceptions import RecordValidationError
from cycleguard.domain.interfaces import RecordStoreInterface
from cycleguard.domain.models import RecordKind
from cycleguard.infrastructure.persistence.validators import (
    DEFAULT_VALIDATORS,
    RecordValidator,
)

logger = logging.getLogger(__name__)

# RecordKind -> (directory, file name suffix appended to the agent key)
RECORD_LAYOUT: dict[RecordKind, tuple[str, str]] = {
    RecordKind.STATUS: ("status", ".json"),
    RecordKind.MARKER: ("status", "-start-marker"),
    RecordKind.COUNTER: ("restart_counters", "_count"),
    RecordKind.PROGRESS: ("progress", ".md"),
    RecordKind.HANDOFF: ("handoffs", "-complete.md"),
    RecordKind.BLOCKER: ("blockers", "-incomplete.md"),
    RecordKind.FEEDBACK: ("feedback", "-improvements.md"),
    RecordKind.TEST_RESULTS: ("test-results", "-latest.txt"),
}


class FilesystemRecordStore(RecordStoreInterface):
    """
    Persistent record store rooted at a shared directory.

    Directory structure:
    {base_dir}/
        status/{key}.json, status/{key}-start-marker
        restart_counters/{key}_count
        progress/{key}.md
        handoffs/{key}-complete.md
        blockers/{key}-incomplete.md
        feedback/{key}-improvements.md
        test-results/{key}-latest.txt
        logs/{key}.log            # written by the logging setup, not the store
    """

    def __init__(
        self,
        base_dir: str | Path,
        validators: Mapping[RecordKind, RecordValidator] = DEFAULT_VALIDATORS,
        create_layout: bool = True,
    ):
        """
        Args:
            base_dir: Root of the shared record directory
            validators: Per-kind structural checks applied before commit
            create_layout: Create the record directories up front
        """
        self._base_dir = Path(base_dir)
        self._validators = dict(validators)
        if create_layout:
            self._create_layout()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _create_layout(self) -> None:
        """Create every record directory (plus logs/) if missing."""
        for directory in {d for d, _ in RECORD_LAYOUT.values()} | {"logs"}:
            (self._base_dir / directory).mkdir(parents=True, exist_ok=True)

    def path_for(self, kind: RecordKind, key: str) -> Path:
        """Filesystem path of a record."""
        directory, suffix = RECORD_LAYOUT[kind]
        return self._base_dir / directory / f"{key}{suffix}"

    def _write_atomic(self, kind: RecordKind, key: str, text: str) -> bool:
        """Materialize at a temp path, validate, then atomically replace."""
        path = self.path_for(kind, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "w") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            validator = self._validators.get(kind)
            if validator is not None:
                validator(temp_path.read_text())
        except RecordValidationError as e:
            temp_path.unlink(missing_ok=True)
            logger.warning("Discarded invalid %s record for %s: %s", kind.value, key, e)
            return False
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise
        os.replace(temp_path, path)  # Atomic on POSIX
        return True

    def read_json(self, kind: RecordKind, key: str) -> dict[str, Any] | None:
        text = self.read_text(kind, key)
        if text is None:
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Unreadable %s record for %s: %s", kind.value, key, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring non-object %s record for %s", kind.value, key)
            return None
        return data

    def write_json(self, kind: RecordKind, key: str, record: dict[str, Any]) -> bool:
        return self._write_atomic(kind, key, json.dumps(record, indent=2) + "\n")

    def read_text(self, kind: RecordKind, key: str) -> str | None:
        try:
            return self.path_for(kind, key).read_text()
        except FileNotFoundError:
            return None

    def write_text(self, kind: RecordKind, key: str, text: str) -> bool:
        return self._write_atomic(kind, key, text)

    def append_text(self, kind: RecordKind, key: str, text: str) -> None:
        path = self.path_for(kind, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a") as f:
            f.write(text)

    def exists(self, kind: RecordKind, key: str) -> bool:
        return self.path_for(kind, key).exists()

    def modified_at(self, kind: RecordKind, key: str) -> float | None:
        try:
            return self.path_for(kind, key).stat().st_mtime
        except FileNotFoundError:
            return None

    def touch(self, kind: RecordKind, key: str) -> None:
        path = self.path_for(kind, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()

    def delete(self, kind: RecordKind, key: str) -> None:
        self.path_for(kind, key).unlink(missing_ok=True)

    def list_keys(self, kind: RecordKind) -> list[str]:
        directory, suffix = RECORD_LAYOUT[kind]
        root = self._base_dir / directory
        if not root.is_dir():
            return []
        return sorted(
            entry.name[: -len(suffix)]
            for entry in root.iterdir()
            if entry.is_file()
            and not entry.name.startswith(".")
            and entry.name.endswith(suffix)
            and len(entry.name) > len(suffix)
        )
