"""
Domain interfaces (Ports) for the convergence orchestrator.

These abstract base classes define the contracts that adapters must satisfy.
They have no external dependencies and represent the core domain boundaries.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cycleguard.domain.models import RecordKind, SuiteMetrics, WorkerResult


class RecordStoreInterface(ABC):
    """
    Port for the shared, crash-tolerant record store.

    Records are addressed by (kind, agent key). Whole-record writes are
    atomic: a reader observes either the previous record or the new one,
    never a partial or structurally invalid one. Each key is owned by a
    single writer; the store itself does no locking.
    """

    @abstractmethod
    def read_json(self, kind: "RecordKind", key: str) -> dict[str, Any] | None:
        """
        Read a structured record.

        Returns:
            The record, or None if absent (or unreadable)
        """
        pass

    @abstractmethod
    def write_json(self, kind: "RecordKind", key: str, record: dict[str, Any]) -> bool:
        """
        Atomically replace a structured record.

        Returns:
            True if written, False if the candidate failed validation
            (the previous record is left untouched)
        """
        pass

    @abstractmethod
    def read_text(self, kind: "RecordKind", key: str) -> str | None:
        """Read a text record, or None if absent."""
        pass

    @abstractmethod
    def write_text(self, kind: "RecordKind", key: str, text: str) -> bool:
        """Atomically replace a text record. Same contract as write_json."""
        pass

    @abstractmethod
    def append_text(self, kind: "RecordKind", key: str, text: str) -> None:
        """Append to an append-only record (the progress log)."""
        pass

    @abstractmethod
    def exists(self, kind: "RecordKind", key: str) -> bool:
        pass

    @abstractmethod
    def modified_at(self, kind: "RecordKind", key: str) -> float | None:
        """Modification time (epoch seconds) of a record, or None if absent."""
        pass

    @abstractmethod
    def touch(self, kind: "RecordKind", key: str) -> None:
        """Create the record if absent and set its modification time to now."""
        pass

    @abstractmethod
    def delete(self, kind: "RecordKind", key: str) -> None:
        """Remove a record. Removing an absent record is not an error."""
        pass

    @abstractmethod
    def list_keys(self, kind: "RecordKind") -> list[str]:
        """Keys that currently have a record of this kind, sorted."""
        pass


class MetricsParserInterface(ABC):
    """
    Port for scraping pass/fail counts from test output.

    Parsing is best-effort: implementations return None on a miss and
    must never raise for unrecognized output.
    """

    @abstractmethod
    def parse(self, output: str) -> "SuiteMetrics | None":
        """
        Extract metrics from combined test output.

        Args:
            output: Raw stdout+stderr of the test command

        Returns:
            SuiteMetrics, or None if no recognized summary was found
        """
        pass


class CommandRunnerInterface(ABC):
    """Port for executing the external test command."""

    @abstractmethod
    def run(self, command: str, cwd: Path) -> str:
        """
        Run a command and return its combined stdout/stderr.

        A non-zero exit status is not an error: failing tests are expected.

        Args:
            command: Shell command line
            cwd: Working directory (the agent workspace)

        Returns:
            Combined output text
        """
        pass


class WorkerInterface(ABC):
    """
    Port for the external reasoning/code-generation worker.

    The worker is opaque: it may mutate the workspace and is not assumed
    to be idempotent. The controller sends a text context bundle and
    receives a text transcript, streamed line by line.
    """

    @abstractmethod
    def invoke(
        self,
        context: str,
        on_line: Callable[[str], None] | None = None,
    ) -> "WorkerResult":
        """
        Run the worker to completion.

        Args:
            context: Rendered context bundle for this cycle
            on_line: Called with each transcript line as it is produced

        Returns:
            WorkerResult with exit code and full transcript

        Raises:
            WorkerLaunchError: If the worker cannot be started; a worker that
                started is always waited for, even when on_line raises
        """
        pass
