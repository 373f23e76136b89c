"""Shared pytest fixtures for cycleguard tests."""

import itertools
from collections.abc import Callable

import pytest

from cycleguard.application.records import AgentRecords
from cycleguard.domain.dependencies import parse_dependencies
from cycleguard.domain.models import AgentSpec, WorkspaceStrategy
from cycleguard.infrastructure.persistence.filesystem import FilesystemRecordStore
from cycleguard.infrastructure.persistence.memory import InMemoryRecordStore


def jest_output(passed: int, failed: int = 0) -> str:
    """Combined output of a Jest run with the given counts."""
    total = passed + failed
    parts = []
    if failed:
        parts.append(f"{failed} failed")
    parts.append(f"{passed} passed")
    return (
        "PASS src/schemas/cart.test.ts\n"
        f"Tests:       {', '.join(parts)}, {total} total\n"
        "Time:        1.234 s\n"
    )


def output_for_rate(rate: int) -> str:
    """Jest output over 100 tests with the given pass rate."""
    return jest_output(passed=rate, failed=100 - rate)


class TickingClock:
    """Strictly increasing clock: every call is one second later."""

    def __init__(self, start: float = 1_000_000.0):
        self._counter = itertools.count()
        self._start = start

    def __call__(self) -> float:
        return self._start + next(self._counter)


@pytest.fixture
def jest() -> Callable[..., str]:
    """Builder for Jest summary output: jest(passed, failed)."""
    return jest_output


@pytest.fixture
def rate_output() -> Callable[[int], str]:
    """Builder for Jest output over 100 tests at a given pass rate."""
    return output_for_rate


@pytest.fixture
def make_spec() -> Callable[..., AgentSpec]:
    """Factory for AgentSpec with test-friendly defaults."""

    def _make(
        name: str = "schema-impl",
        depends_on: str = "",
        max_cycles: int = 5,
        target_pass_rate: int = 85,
        **kwargs,
    ) -> AgentSpec:
        return AgentSpec(
            name=name,
            depends_on=parse_dependencies(depends_on),
            test_command="npm test",
            max_cycles=max_cycles,
            target_pass_rate=target_pass_rate,
            workspace_strategy=kwargs.pop(
                "workspace_strategy", WorkspaceStrategy.LAYER
            ),
            project=kwargs.pop("project", "shop"),
            description=kwargs.pop("description", "Mobile commerce app"),
            **kwargs,
        )

    return _make


@pytest.fixture
def spec(make_spec) -> AgentSpec:
    """A default agent without dependencies."""
    return make_spec()


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    """In-memory record store whose modification times strictly increase."""
    return InMemoryRecordStore(clock=TickingClock())


@pytest.fixture
def fs_store(tmp_path) -> FilesystemRecordStore:
    """Filesystem record store rooted in a temp directory."""
    return FilesystemRecordStore(tmp_path / "shared")


@pytest.fixture
def records(memory_store, spec) -> AgentRecords:
    """Records facade for the default agent on the in-memory store."""
    return AgentRecords(memory_store, spec, now=lambda: "2025-01-01T00:00:00+00:00")
