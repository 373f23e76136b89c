"""
Adapters for the external test command and worker.
"""

from cycleguard.infrastructure.runners.mock import MockCommandRunner, MockWorker
from cycleguard.infrastructure.runners.subprocess_runner import (
    SubprocessCommandRunner,
    SubprocessWorker,
)

__all__ = [
    "SubprocessCommandRunner",
    "SubprocessWorker",
    "MockCommandRunner",
    "MockWorker",
]
