"""Tests for domain models."""

from dataclasses import FrozenInstanceError

import pytest

from cycleguard.domain.models import (
    AgentSpec,
    AgentState,
    AgentStatus,
    Checkpoint,
    CycleCounter,
    CycleOutcome,
    Freshness,
    Outcome,
    SuiteMetrics,
    WorkerResult,
    WorkspaceStrategy,
    agent_key,
)


class TestCycleCounter:
    """Tests for the persisted cycle counter value object."""

    def test_defaults_to_zero(self) -> None:
        assert CycleCounter().value == 0

    def test_incremented_returns_new_counter(self) -> None:
        counter = CycleCounter(2)

        assert counter.incremented() == CycleCounter(3)
        assert counter.value == 2

    def test_negative_value_rejected(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            CycleCounter(-1)

    def test_exhausted_at_max(self) -> None:
        assert not CycleCounter(2).exhausted(3)
        assert CycleCounter(3).exhausted(3)
        assert CycleCounter(4).exhausted(3)

    def test_is_frozen(self) -> None:
        counter = CycleCounter(1)

        with pytest.raises(FrozenInstanceError):
            counter.value = 5  # type: ignore[misc]


class TestSuiteMetrics:
    """Tests for pass-rate arithmetic and the convergence check."""

    def test_pass_rate_is_floored(self) -> None:
        assert SuiteMetrics(passed=2, failed=1).pass_rate == 66

    def test_pass_rate_zero_when_nothing_ran(self) -> None:
        assert SuiteMetrics().pass_rate == 0

    def test_full_pass(self) -> None:
        assert SuiteMetrics(passed=12, failed=0).pass_rate == 100

    def test_meets_target(self) -> None:
        assert SuiteMetrics(passed=90, failed=10).meets(85)
        assert not SuiteMetrics(passed=84, failed=16).meets(85)

    def test_meets_requires_total_above_floor(self) -> None:
        metrics = SuiteMetrics(passed=10, failed=0)

        assert metrics.meets(85, min_total_tests=9)
        assert not metrics.meets(85, min_total_tests=10)

    def test_empty_suite_never_meets_positive_target(self) -> None:
        assert not SuiteMetrics().meets(85)

    def test_summary(self) -> None:
        assert SuiteMetrics(passed=3, failed=1).summary() == "3/4 tests passing (75%)"


class TestAgentSpec:
    """Tests for agent identity and record keys."""

    def test_key_with_project(self) -> None:
        spec = AgentSpec(
            name="schema-tests",
            depends_on=(),
            test_command="npm test",
            max_cycles=5,
            target_pass_rate=85,
            workspace_strategy=WorkspaceStrategy.LAYER,
            project="shop",
        )

        assert spec.key == "shop-schema-tests"

    def test_key_without_project(self) -> None:
        assert agent_key("", "schema-tests") == "schema-tests"


class TestAgentStatus:
    """Tests for the status record wire format."""

    def test_to_record_uses_camel_case(self) -> None:
        status = AgentStatus(
            agent="schema-impl",
            status=AgentState.WORKING,
            restart_cycle=2,
            tests_pass=5,
            tests_fail=1,
            test_pass_rate=83,
            files_modified=("src/a.ts",),
        )

        record = status.to_record()

        assert record["status"] == "working"
        assert record["restartCycle"] == 2
        assert record["testsPass"] == 5
        assert record["testPassRate"] == 83
        assert record["filesModified"] == ["src/a.ts"]
        assert record["outcome"] is None
        assert record["experimentComplete"] is False

    def test_from_record_round_trips_known_fields(self) -> None:
        status = AgentStatus(
            agent="a",
            status=AgentState.COMPLETED,
            outcome=Outcome.SUCCESS,
            errors=("boom",),
            reason="tests_passing",
        )

        assert AgentStatus.from_record(status.to_record()) == status

    def test_unknown_keys_preserved(self) -> None:
        record = {"agent": "a", "status": "working", "dashboardColour": "blue"}

        status = AgentStatus.from_record(record)

        assert status.extra == {"dashboardColour": "blue"}
        assert status.to_record()["dashboardColour"] == "blue"

    def test_reads_success_status_written_by_other_agents(self) -> None:
        status = AgentStatus.from_record({"agent": "a", "status": "success"})

        assert status.status is AgentState.SUCCESS
        assert status.status.done

    def test_unknown_status_value_rejected(self) -> None:
        with pytest.raises(ValueError):
            AgentStatus.from_record({"agent": "a", "status": "exploded"})

    def test_amend_returns_new_instance(self) -> None:
        status = AgentStatus(agent="a")

        amended = status.amend(status=AgentState.STOPPED)

        assert amended.status is AgentState.STOPPED
        assert status.status is AgentState.INITIALIZING


class TestLifecycleValues:
    """Tests for checkpoint reasons and cycle outcomes."""

    def test_checkpoint_reasons(self) -> None:
        assert Checkpoint.CYCLE_START.reason == "dependency_updated"
        assert Checkpoint.PRE_WORKER.reason == "dependency_updated_pre_execution"
        assert Checkpoint.POST_WORKER.reason == "dependency_updated_during_execution"
        assert Checkpoint.POST_TEST.reason == "dependency_updated_post_tests"

    def test_terminal_outcomes(self) -> None:
        assert CycleOutcome.CONVERGED.terminal
        assert CycleOutcome.EXHAUSTED.terminal
        assert not CycleOutcome.CONTINUE.terminal
        assert not CycleOutcome.RESTART.terminal

    def test_freshness_stale_when_any_updated(self) -> None:
        assert not Freshness().stale
        assert Freshness(updated=("schema-tests",)).stale

    def test_worker_result_success(self) -> None:
        assert WorkerResult(exit_code=0, transcript="").succeeded
        assert not WorkerResult(exit_code=2, transcript="").succeeded
