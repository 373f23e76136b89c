"""
Domain exceptions for the convergence orchestrator.

Fatal conditions (configuration, dependency timeout) end the process with a
non-zero exit. Freshness restarts are control flow, not failures.
"""

from cycleguard.domain.models import Checkpoint


class ConfigurationError(Exception):
    """Raised when required agent identity or parameters are missing or invalid."""

    pass


class DependencyTimeout(Exception):
    """
    Raised when dependencies are not all ready within the wait budget.

    Operator intervention is required; the controller must not retry.
    """

    def __init__(self, pending: list[str], waited: float):
        """
        Args:
            pending: Dependency names still not ready at the last poll
            waited: Seconds spent waiting
        """
        super().__init__(
            f"Timeout waiting for dependencies after {waited:.0f}s: "
            f"{', '.join(pending)}"
        )
        self.pending = pending
        self.waited = waited


class DependenciesUpdated(Exception):
    """
    Raised at a freshness checkpoint when upstream work changed mid-cycle.

    The controller converts this into a clean restart that does not count
    as a cycle attempt.
    """

    def __init__(self, checkpoint: Checkpoint, updated: tuple[str, ...]):
        """
        Args:
            checkpoint: Where in the cycle staleness was detected
            updated: Dependency names whose handoff is newer than the marker
        """
        super().__init__(
            f"Dependencies updated at {checkpoint.value}: {', '.join(updated)}"
        )
        self.checkpoint = checkpoint
        self.updated = updated


class RecordValidationError(Exception):
    """Raised when a candidate record is not structurally valid."""

    pass


class WorkerLaunchError(Exception):
    """Raised when the external worker process cannot be started."""

    def __init__(self, command: str, cause: OSError):
        """
        Args:
            command: Executable that failed to start
            cause: Underlying operating system error
        """
        super().__init__(f"Cannot start worker {command!r}: {cause}")
        self.command = command
