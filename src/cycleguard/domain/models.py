"""
Domain models for the convergence orchestrator.

Pure data structures describing agents, their dependencies, the persisted
records they exchange, and the outcomes of a lifecycle cycle.
Value objects are frozen dataclasses; amendments go through dataclasses.replace.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

# =============================================================================
# AGENT CONFIGURATION
# =============================================================================


class WorkspaceStrategy(Enum):
    """Which agents share mutable workspace storage with this one."""

    ISOLATED = "isolated"  # Private workspace per agent
    LAYER = "layer"  # Shared by <base>-tests and <base>-impl
    UNIFIED = "unified"  # Shared by every agent of the project


class DependencyKind(Enum):
    """How readiness of a dependency is decided (computed once at load)."""

    TEST_ARTIFACT = "test_artifact"  # *-tests: test files exist
    IMPL_ARTIFACT = "impl_artifact"  # *-impl: implementation files exist
    PROCESS_OUTCOME = "process_outcome"  # *-refactor/*-audit/*-integration-final
    GENERIC = "generic"  # anything else: handoff record only


@dataclass(frozen=True)
class ArtifactPattern:
    """Where a layer's files live inside a workspace."""

    root: str  # Directory relative to the workspace
    test_glob: str  # Glob (relative to root) matching test files
    test_marker: str = ".test."  # Substring identifying test files


@dataclass(frozen=True)
class Dependency:
    """A declared upstream agent, already classified."""

    name: str
    kind: DependencyKind
    pattern: ArtifactPattern | None = None  # Only for *_ARTIFACT kinds


def agent_key(project: str, name: str) -> str:
    """Record key for an agent: ``{project}-{name}`` or bare ``{name}``."""
    return f"{project}-{name}" if project else name


@dataclass(frozen=True)
class AgentSpec:
    """Externally supplied, immutable description of one agent."""

    name: str
    depends_on: tuple[Dependency, ...]
    test_command: str
    max_cycles: int
    target_pass_rate: int
    workspace_strategy: WorkspaceStrategy
    min_total_tests: int = 0
    project: str = ""
    description: str = "No description"
    debug: bool = False

    @property
    def key(self) -> str:
        return agent_key(self.project, self.name)

    def dependency_key(self, dependency: Dependency) -> str:
        """Record key of a dependency (same project namespace)."""
        return agent_key(self.project, dependency.name)


@dataclass(frozen=True)
class ControllerSettings:
    """Timing and location knobs for a controller process."""

    poll_interval: float = 30.0
    dependency_timeout: float = 3600.0
    heartbeat_interval: float = 60.0
    maintenance_interval: float = 60.0
    output_tail_lines: int = 100
    debug_output_tail_lines: int = 50


# =============================================================================
# PERSISTED VALUE OBJECTS
# =============================================================================


@dataclass(frozen=True)
class CycleCounter:
    """Number of cycles started for an agent. Survives process restarts."""

    value: int = 0

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"Cycle counter cannot be negative: {self.value}")

    def incremented(self) -> "CycleCounter":
        return CycleCounter(self.value + 1)

    def exhausted(self, max_cycles: int) -> bool:
        return self.value >= max_cycles


class AgentState(Enum):
    """Value of the ``status`` field of the status record."""

    INITIALIZING = "initializing"
    WORKING = "working"
    COMPLETED = "completed"
    STOPPED = "stopped"
    SUCCESS = "success"  # Accepted on read; written by some external agents

    @property
    def done(self) -> bool:
        return self in (AgentState.COMPLETED, AgentState.SUCCESS)


class Outcome(Enum):
    """Terminal result of a convergence attempt."""

    SUCCESS = "success"
    FAILURE = "failure"


# Wire names of the status record (camelCase, consumed by external monitors)
_STATUS_FIELDS: dict[str, str] = {
    "agent": "agent",
    "project": "project",
    "description": "description",
    "status": "status",
    "restart_cycle": "restartCycle",
    "max_restarts": "maxRestarts",
    "start_time": "startTime",
    "heartbeat": "heartbeat",
    "last_update": "lastUpdate",
    "tests_pass": "testsPass",
    "tests_fail": "testsFail",
    "test_pass_rate": "testPassRate",
    "target_pass_rate": "targetPassRate",
    "files_modified": "filesModified",
    "errors": "errors",
    "work_summary": "workSummary",
    "reason": "reason",
    "outcome": "outcome",
    "experiment_complete": "experimentComplete",
}


@dataclass(frozen=True)
class AgentStatus:
    """
    Structured status record of one agent.

    Created at process start (or loaded and amended), refreshed by the
    heartbeat, and read by dependents and monitors.
    """

    agent: str
    status: AgentState = AgentState.INITIALIZING
    project: str = ""
    description: str = ""
    restart_cycle: int = 0
    max_restarts: int = 0
    start_time: str | None = None
    heartbeat: str | None = None
    last_update: str | None = None
    tests_pass: int = 0
    tests_fail: int = 0
    test_pass_rate: int = 0
    target_pass_rate: int = 0
    files_modified: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    work_summary: str | None = None
    reason: str | None = None
    outcome: Outcome | None = None
    experiment_complete: bool = False
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    def amend(self, **changes: Any) -> "AgentStatus":
        return replace(self, **changes)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the JSON wire format (unknown keys preserved)."""
        record: dict[str, Any] = dict(self.extra)
        for attr, key in _STATUS_FIELDS.items():
            value = getattr(self, attr)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, tuple):
                value = list(value)
            record[key] = value
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "AgentStatus":
        """Deserialize from the JSON wire format."""
        known = set(_STATUS_FIELDS.values())
        values: dict[str, Any] = {}
        for attr, key in _STATUS_FIELDS.items():
            if key in record and record[key] is not None:
                values[attr] = record[key]
        if "status" in values:
            values["status"] = AgentState(values["status"])
        if "outcome" in values:
            values["outcome"] = Outcome(values["outcome"])
        for attr in ("files_modified", "errors"):
            if attr in values:
                values[attr] = tuple(values[attr])
        values.setdefault("agent", "")
        extra = {k: v for k, v in record.items() if k not in known}
        return cls(extra=extra, **values)


# =============================================================================
# TEST METRICS
# =============================================================================


@dataclass(frozen=True)
class SuiteMetrics:
    """Pass/fail counts scraped from one test-suite run."""

    passed: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed

    @property
    def pass_rate(self) -> int:
        """Integer percentage, floored; 0 when nothing ran."""
        if self.total <= 0:
            return 0
        return math.floor(self.passed * 100 / self.total)

    def meets(self, target_pass_rate: int, min_total_tests: int = 0) -> bool:
        """Whether this run satisfies the convergence criterion."""
        return self.pass_rate >= target_pass_rate and self.total > min_total_tests

    def summary(self) -> str:
        return f"{self.passed}/{self.total} tests passing ({self.pass_rate}%)"


@dataclass(frozen=True)
class SuiteRun:
    """A test-suite execution: parsed metrics plus the raw combined output."""

    metrics: SuiteMetrics
    output: str


# =============================================================================
# LIFECYCLE
# =============================================================================


class LifecycleState(Enum):
    """States of the per-agent controller."""

    CYCLE_START = "cycle_start"
    FINAL_TEST_RUN = "final_test_run"
    DEPENDENCY_WAIT = "dependency_wait"
    FRESHNESS_CHECKPOINT = "freshness_checkpoint"
    BASELINE_TEST = "baseline_test"
    WORKER_INVOCATION = "worker_invocation"
    POST_TEST = "post_test"
    CYCLE_END = "cycle_end"
    MAINTENANCE = "maintenance"


class Checkpoint(Enum):
    """Points in a cycle where dependency freshness is re-evaluated."""

    CYCLE_START = "cycle_start"
    PRE_WORKER = "pre_worker"
    POST_WORKER = "post_worker"
    POST_TEST = "post_test"

    @property
    def reason(self) -> str:
        """Status ``reason`` recorded when this checkpoint triggers a restart."""
        return _CHECKPOINT_REASONS[self]


_CHECKPOINT_REASONS = {
    Checkpoint.CYCLE_START: "dependency_updated",
    Checkpoint.PRE_WORKER: "dependency_updated_pre_execution",
    Checkpoint.POST_WORKER: "dependency_updated_during_execution",
    Checkpoint.POST_TEST: "dependency_updated_post_tests",
}


class CycleOutcome(Enum):
    """How a single cycle ended."""

    CONTINUE = "continue"  # Cycle done; restart for the next one
    RESTART = "restart"  # Upstream changed; restart without penalty
    CONVERGED = "converged"  # Target reached; Maintenance
    EXHAUSTED = "exhausted"  # Max cycles spent below target; Maintenance

    @property
    def terminal(self) -> bool:
        return self in (CycleOutcome.CONVERGED, CycleOutcome.EXHAUSTED)


@dataclass(frozen=True)
class Freshness:
    """Result of a freshness check against the start marker."""

    updated: tuple[str, ...] = ()

    @property
    def stale(self) -> bool:
        return bool(self.updated)


# =============================================================================
# WORKER BOUNDARY
# =============================================================================


@dataclass(frozen=True)
class WorkerContext:
    """Everything the external worker is told about the current cycle."""

    agent: str
    description: str
    cycle: int
    max_cycles: int
    target_pass_rate: int
    metrics: SuiteMetrics
    test_output: str
    feedback: str | None = None
    instructions: str = ""
    debug: bool = False


@dataclass(frozen=True)
class WorkerResult:
    """Outcome of one worker invocation."""

    exit_code: int
    transcript: str

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


# =============================================================================
# RECORDS
# =============================================================================


class RecordKind(Enum):
    """Kinds of per-agent record kept on shared storage."""

    STATUS = "status"  # Structured status (JSON)
    MARKER = "marker"  # Freshness anchor; only its mtime matters
    COUNTER = "counter"  # Cycle counter (single integer)
    PROGRESS = "progress"  # Append-only human-readable narrative
    HANDOFF = "handoff"  # Presence = success signal
    BLOCKER = "blocker"  # Presence = failure signal
    FEEDBACK = "feedback"  # Externally authored, read-only
    TEST_RESULTS = "test_results"  # Raw output of the latest test run
