"""
DependencyResolver: readiness (first run) and freshness (every checkpoint).

Readiness is decided per DependencyKind, which was fixed at config load;
nothing here re-derives a kind from a name. The records and files of
upstream agents are only ever read.
"""

import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from cycleguard.domain.exceptions import DependencyTimeout
from cycleguard.domain.interfaces import RecordStoreInterface
from cycleguard.domain.models import (
    AgentSpec,
    AgentState,
    ArtifactPattern,
    Dependency,
    DependencyKind,
    Freshness,
    RecordKind,
)

logger = logging.getLogger(__name__)

_DONE_STATES = {state.value for state in AgentState if state.done}


class DependencyResolver:
    """
    Decides when an agent's upstream work is available and still current.

    The only synchronization primitive between agents: handoff records,
    status records and workspace files, polled.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        spec: AgentSpec,
        workspace: Path,
        poll_interval: float = 30.0,
        timeout: float = 3600.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            store: Shared record store
            spec: Agent whose dependencies are resolved
            workspace: Directory searched for artifact files
            poll_interval: Seconds between readiness polls
            timeout: Seconds before waiting is abandoned
            sleep: Injected for tests
            clock: Monotonic time source, injected for tests
        """
        self._store = store
        self._spec = spec
        self._workspace = Path(workspace)
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._sleep = sleep
        self._clock = clock

    # =========================================================================
    # READINESS
    # =========================================================================

    def is_ready(self, dependency: Dependency) -> bool:
        """Evaluate the readiness predicate of one dependency, once."""
        kind = dependency.kind
        if kind is DependencyKind.TEST_ARTIFACT and dependency.pattern:
            return self._has_test_files(dependency.pattern)
        if kind is DependencyKind.IMPL_ARTIFACT and dependency.pattern:
            return self._has_impl_files(dependency.pattern)
        if kind is DependencyKind.PROCESS_OUTCOME:
            return self._has_handoff(dependency) or self._reports_done(dependency)
        # Generic names, and artifact kinds with no known file location
        return self._has_handoff(dependency)

    def _has_test_files(self, pattern: ArtifactPattern) -> bool:
        root = self._workspace / pattern.root
        return any(path.is_file() for path in root.glob(pattern.test_glob))

    def _has_impl_files(self, pattern: ArtifactPattern) -> bool:
        root = self._workspace / pattern.root
        return any(
            path.is_file() and pattern.test_marker not in path.name
            for path in root.rglob("*")
        )

    def _has_handoff(self, dependency: Dependency) -> bool:
        return self._store.exists(
            RecordKind.HANDOFF, self._spec.dependency_key(dependency)
        )

    def _reports_done(self, dependency: Dependency) -> bool:
        record = self._store.read_json(
            RecordKind.STATUS, self._spec.dependency_key(dependency)
        )
        return record is not None and record.get("status") in _DONE_STATES

    def pending(self, dependencies: Sequence[Dependency]) -> list[str]:
        """Names of dependencies not ready right now (each evaluated once)."""
        return [dep.name for dep in dependencies if not self.is_ready(dep)]

    def wait_for_readiness(self, dependencies: Sequence[Dependency]) -> None:
        """
        Block until every dependency is ready at the same poll.

        Raises:
            DependencyTimeout: If not all ready within the timeout
        """
        if not dependencies:
            return
        started = self._clock()
        while True:
            pending = self.pending(dependencies)
            if not pending:
                logger.info(
                    "All dependencies ready: %s",
                    ", ".join(dep.name for dep in dependencies),
                )
                return
            waited = self._clock() - started
            if waited >= self._timeout:
                raise DependencyTimeout(pending, waited)
            logger.info(
                "Waiting for dependencies (%.0fs elapsed): %s", waited, ", ".join(pending)
            )
            self._sleep(self._poll_interval)

    # =========================================================================
    # FRESHNESS
    # =========================================================================

    def check_freshness(self, dependencies: Sequence[Dependency]) -> Freshness:
        """
        Compare each dependency's handoff time against this agent's marker.

        The first check creates the marker when it is absent and reports
        fresh. Agents without dependencies are always fresh.
        """
        if not dependencies:
            return Freshness()
        marker_time = self._store.modified_at(RecordKind.MARKER, self._spec.key)
        if marker_time is None:
            self._store.touch(RecordKind.MARKER, self._spec.key)
            logger.debug("Created start marker for %s", self._spec.key)
            return Freshness()

        updated = []
        for dependency in dependencies:
            handoff_time = self._store.modified_at(
                RecordKind.HANDOFF, self._spec.dependency_key(dependency)
            )
            if handoff_time is not None and handoff_time > marker_time:
                updated.append(dependency.name)
        return Freshness(updated=tuple(updated))
