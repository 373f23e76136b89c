"""
StatusMonitor: read-only health snapshot of every agent on a shared store.

Health is derived from the status record alone (heartbeat age, error
count, status) plus handoff/blocker presence; agents are never contacted.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from cycleguard.domain.interfaces import RecordStoreInterface
from cycleguard.domain.models import AgentState, AgentStatus, Outcome, RecordKind

STALE_AFTER_SECONDS = 300
SLOW_AFTER_SECONDS = 180
UNHEALTHY_ERROR_COUNT = 10
DEGRADED_ERROR_COUNT = 5


class Health(Enum):
    """Per-agent health, most severe first."""

    FAILED = "failed"  # Completed below target
    STALE = "stale"  # Heartbeat older than 5 minutes
    SLOW = "slow"  # Heartbeat older than 3 minutes
    UNHEALTHY = "unhealthy"  # More than 10 errors
    DEGRADED = "degraded"  # More than 5 errors
    COMPLETED = "completed"
    HEALTHY = "healthy"
    UNKNOWN = "unknown"  # No readable status or heartbeat


class OverallHealth(Enum):
    CRITICAL = "critical"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"
    COMPLETED = "completed"
    UNCERTAIN = "uncertain"
    HEALTHY = "healthy"


@dataclass(frozen=True)
class AgentHealth:
    """Snapshot of one agent."""

    key: str
    status: AgentStatus | None
    health: Health
    heartbeat_age: float | None
    has_handoff: bool
    has_blocker: bool

    def to_dict(self) -> dict[str, Any]:
        status = self.status
        return {
            "key": self.key,
            "status": status.status.value if status else None,
            "health": self.health.value,
            "heartbeatAge": self.heartbeat_age,
            "restartCycle": status.restart_cycle if status else None,
            "maxRestarts": status.max_restarts if status else None,
            "testPassRate": status.test_pass_rate if status else None,
            "targetPassRate": status.target_pass_rate if status else None,
            "errors": len(status.errors) if status else 0,
            "reason": status.reason if status else None,
            "handoff": self.has_handoff,
            "blocker": self.has_blocker,
        }


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def assess(status: AgentStatus | None, now: datetime) -> tuple[Health, float | None]:
    """
    Health of one agent and its heartbeat age in seconds.

    Heartbeat age is checked first, then error count, then status.
    """
    if status is None:
        return Health.UNKNOWN, None
    heartbeat = parse_timestamp(status.heartbeat)
    age = (now - heartbeat).total_seconds() if heartbeat else None
    if age is None:
        if status.status in (AgentState.INITIALIZING, AgentState.WORKING):
            return Health.UNKNOWN, None
    elif age > STALE_AFTER_SECONDS:
        return Health.STALE, age
    elif age > SLOW_AFTER_SECONDS:
        return Health.SLOW, age

    if len(status.errors) > UNHEALTHY_ERROR_COUNT:
        return Health.UNHEALTHY, age
    if len(status.errors) > DEGRADED_ERROR_COUNT:
        return Health.DEGRADED, age
    if status.status.done:
        if status.outcome is Outcome.FAILURE:
            return Health.FAILED, age
        return Health.COMPLETED, age
    return Health.HEALTHY, age


def overall_health(healths: list[Health]) -> OverallHealth:
    """Roll per-agent health up into one value."""
    if Health.FAILED in healths:
        return OverallHealth.CRITICAL
    if Health.UNHEALTHY in healths:
        return OverallHealth.UNHEALTHY
    if Health.STALE in healths or Health.DEGRADED in healths:
        return OverallHealth.DEGRADED
    if healths and all(h is Health.COMPLETED for h in healths):
        return OverallHealth.COMPLETED
    if Health.UNKNOWN in healths:
        return OverallHealth.UNCERTAIN
    return OverallHealth.HEALTHY


class StatusMonitor:
    """Discovers agents from their status records and assesses each."""

    def __init__(
        self,
        store: RecordStoreInterface,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self._store = store
        self._now = now

    def agent_keys(self) -> list[str]:
        keys = set(self._store.list_keys(RecordKind.STATUS))
        keys.update(self._store.list_keys(RecordKind.HANDOFF))
        keys.update(self._store.list_keys(RecordKind.BLOCKER))
        return sorted(keys)

    def snapshot_agent(self, key: str) -> AgentHealth:
        record = self._store.read_json(RecordKind.STATUS, key)
        status = None
        if record is not None:
            try:
                status = AgentStatus.from_record(record)
            except (TypeError, ValueError):
                status = None
        health, age = assess(status, self._now())
        return AgentHealth(
            key=key,
            status=status,
            health=health,
            heartbeat_age=age,
            has_handoff=self._store.exists(RecordKind.HANDOFF, key),
            has_blocker=self._store.exists(RecordKind.BLOCKER, key),
        )

    def snapshot(self) -> list[AgentHealth]:
        return [self.snapshot_agent(key) for key in self.agent_keys()]

    def report(self) -> dict[str, Any]:
        """Machine-readable snapshot (``cycleguard status --json``)."""
        agents = self.snapshot()
        return {
            "timestamp": self._now().isoformat(),
            "overallHealth": overall_health([a.health for a in agents]).value,
            "summary": {
                "total": len(agents),
                "completed": sum(1 for a in agents if a.status and a.status.status.done),
                "handoffs": sum(1 for a in agents if a.has_handoff),
                "blockers": sum(1 for a in agents if a.has_blocker),
                "stale": sum(1 for a in agents if a.health is Health.STALE),
            },
            "agents": [a.to_dict() for a in agents],
        }
