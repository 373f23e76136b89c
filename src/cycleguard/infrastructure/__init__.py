"""
Infrastructure layer for the convergence orchestrator.

Contains adapters for external concerns (record storage, test command,
worker process, environment configuration).
"""

from cycleguard.infrastructure.config import AgentConfig, load_agent_config
from cycleguard.infrastructure.persistence import (
    FilesystemRecordStore,
    InMemoryRecordStore,
)
from cycleguard.infrastructure.runners import (
    MockCommandRunner,
    MockWorker,
    SubprocessCommandRunner,
    SubprocessWorker,
)

__all__ = [
    # Persistence
    "InMemoryRecordStore",
    "FilesystemRecordStore",
    # Runners
    "SubprocessCommandRunner",
    "SubprocessWorker",
    "MockCommandRunner",
    "MockWorker",
    # Configuration
    "AgentConfig",
    "load_agent_config",
]
