"""
AgentRecords: the per-agent view of the shared record store.

Every record an agent owns (status, counter, marker, progress, handoff,
blocker, test results) is read and written through this facade, so the
controller never holds load-bearing state only in memory.
"""

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from cycleguard.domain.interfaces import RecordStoreInterface
from cycleguard.domain.models import (
    AgentSpec,
    AgentState,
    AgentStatus,
    CycleCounter,
    RecordKind,
)

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Current time as an ISO 8601 UTC string."""
    return datetime.now(UTC).isoformat()


class AgentRecords:
    """
    Read/write access to one agent's records.

    Status amendments are read-modify-write under a process-local lock, so
    the heartbeat thread and the controller thread never lose each
    other's fields.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        spec: AgentSpec,
        now: Callable[[], str] = utc_timestamp,
    ):
        """
        Args:
            store: Shared record store
            spec: Agent owning the records
            now: Timestamp source for status and progress entries
        """
        self._store = store
        self._spec = spec
        self._now = now
        self._lock = threading.Lock()

    @property
    def key(self) -> str:
        return self._spec.key

    @property
    def store(self) -> RecordStoreInterface:
        return self._store

    # =========================================================================
    # CYCLE COUNTER
    # =========================================================================

    def load_counter(self) -> CycleCounter:
        """Persisted cycle counter; absent or unreadable counts as zero."""
        text = self._store.read_text(RecordKind.COUNTER, self.key)
        if text is None:
            return CycleCounter()
        try:
            return CycleCounter(int(text.strip()))
        except ValueError:
            logger.warning("Ignoring unreadable cycle counter for %s: %r", self.key, text)
            return CycleCounter()

    def save_counter(self, counter: CycleCounter) -> bool:
        return self._store.write_text(RecordKind.COUNTER, self.key, f"{counter.value}\n")

    # =========================================================================
    # STATUS
    # =========================================================================

    def load_status(self) -> AgentStatus | None:
        record = self._store.read_json(RecordKind.STATUS, self.key)
        if record is None:
            return None
        try:
            return AgentStatus.from_record(record)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring malformed status record for %s: %s", self.key, e)
            return None

    def _default_status(self) -> AgentStatus:
        return AgentStatus(
            agent=self._spec.name,
            project=self._spec.project,
            description=self._spec.description,
            max_restarts=self._spec.max_cycles,
            target_pass_rate=self._spec.target_pass_rate,
        )

    def update_status(self, **changes: Any) -> AgentStatus:
        """
        Amend the status record (created if absent).

        ``lastUpdate`` is always refreshed. A candidate rejected by the
        store leaves the previous record in place.
        """
        with self._lock:
            current = self.load_status() or self._default_status()
            updated = current.amend(last_update=self._now(), **changes)
            self._store.write_json(RecordKind.STATUS, self.key, updated.to_record())
            return updated

    def init_status(self, counter: CycleCounter) -> AgentStatus:
        """Create or load-and-amend the status at process start."""
        now = self._now()
        return self.update_status(
            agent=self._spec.name,
            project=self._spec.project,
            description=self._spec.description,
            status=AgentState.INITIALIZING,
            restart_cycle=counter.value,
            max_restarts=self._spec.max_cycles,
            target_pass_rate=self._spec.target_pass_rate,
            start_time=now,
            heartbeat=now,
            files_modified=(),
            errors=(),
            reason=None,
            outcome=None,
            experiment_complete=False,
        )

    def touch_heartbeat(self) -> None:
        self.update_status(heartbeat=self._now())

    def add_error(self, message: str) -> AgentStatus:
        with self._lock:
            current = self.load_status() or self._default_status()
            updated = current.amend(
                last_update=self._now(), errors=current.errors + (message,)
            )
            self._store.write_json(RecordKind.STATUS, self.key, updated.to_record())
            return updated

    # =========================================================================
    # PROGRESS / TEST RESULTS / FEEDBACK
    # =========================================================================

    def append_progress(self, message: str) -> None:
        """Append a timestamped line to the progress log (never rewritten)."""
        self._store.append_text(
            RecordKind.PROGRESS, self.key, f"[{self._now()}] {message}\n"
        )

    def start_progress_section(self, counter: CycleCounter) -> None:
        self._store.append_text(
            RecordKind.PROGRESS,
            self.key,
            f"\n## {self._spec.name} - process start {self._now()} "
            f"(cycles used {counter.value}/{self._spec.max_cycles})\n\n",
        )

    def save_test_results(self, output: str) -> None:
        self._store.write_text(RecordKind.TEST_RESULTS, self.key, output)

    def read_feedback(self) -> str | None:
        """Operator feedback for this agent, if any (never written here)."""
        feedback = self._store.read_text(RecordKind.FEEDBACK, self.key)
        if feedback is None or not feedback.strip():
            return None
        return feedback

    # =========================================================================
    # OUTCOME SIGNALS
    # =========================================================================

    def write_handoff(self, text: str) -> None:
        """Publish the success signal and withdraw any earlier failure signal."""
        self._store.write_text(RecordKind.HANDOFF, self.key, text)
        self._store.delete(RecordKind.BLOCKER, self.key)

    def write_blocker(self, text: str) -> None:
        """Publish the failure signal and withdraw any earlier success signal."""
        self._store.write_text(RecordKind.BLOCKER, self.key, text)
        self._store.delete(RecordKind.HANDOFF, self.key)

    def has_handoff(self) -> bool:
        return self._store.exists(RecordKind.HANDOFF, self.key)

    def has_blocker(self) -> bool:
        return self._store.exists(RecordKind.BLOCKER, self.key)

    # =========================================================================
    # FRESHNESS MARKER
    # =========================================================================

    def touch_marker(self) -> None:
        self._store.touch(RecordKind.MARKER, self.key)

    def marker_exists(self) -> bool:
        return self._store.exists(RecordKind.MARKER, self.key)

    def fresh_start(self) -> None:
        """
        Zero the cycle counter, drop the marker and clear a terminal outcome.

        Handoff and blocker stay published until the next terminal outcome
        replaces them.
        """
        self.save_counter(CycleCounter(0))
        self._store.delete(RecordKind.MARKER, self.key)
        status = self.load_status()
        if status is not None and status.outcome is not None:
            self.update_status(
                status=AgentState.STOPPED,
                reason="fresh_start",
                outcome=None,
                experiment_complete=False,
            )
        self.append_progress("Fresh start: cycle counter reset to 0, start marker removed")
        logger.info("Fresh start for %s", self.key)
