"""
Persistence adapters for the Record Store.
"""

from cycleguard.infrastructure.persistence.filesystem import (
    RECORD_LAYOUT,
    FilesystemRecordStore,
)
from cycleguard.infrastructure.persistence.memory import InMemoryRecordStore
from cycleguard.infrastructure.persistence.validators import DEFAULT_VALIDATORS

__all__ = [
    "InMemoryRecordStore",
    "FilesystemRecordStore",
    "RECORD_LAYOUT",
    "DEFAULT_VALIDATORS",
]
