"""
LifecycleController: the per-agent convergence state machine.

One process lifetime runs one cycle (or, with ``loop``, cycles until a
terminal outcome). Every decision is reconstructible from persisted
records: the counter is saved before any other side effect of a cycle,
and status, test results, handoff and blocker are written at fixed points.

States:
    CycleStart -> (FinalTestRun -> Maintenance)
               -> DependencyWait -> BaselineTest -> (Maintenance)
               -> WorkerInvocation -> PostTest -> CycleEnd
    FreshnessCheckpoint is entered four times; a stale result ends the
    cycle as RESTART without spending a cycle.
"""

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from cycleguard.application.extractor import MetricsExtractor
from cycleguard.application.heartbeat import Heartbeat
from cycleguard.application.records import AgentRecords
from cycleguard.application.resolver import DependencyResolver
from cycleguard.application.transcript import TranscriptScraper
from cycleguard.domain.exceptions import (
    DependenciesUpdated,
    DependencyTimeout,
    WorkerLaunchError,
)
from cycleguard.domain.interfaces import WorkerInterface
from cycleguard.domain.models import (
    AgentSpec,
    AgentState,
    Checkpoint,
    ControllerSettings,
    CycleCounter,
    CycleOutcome,
    LifecycleState,
    Outcome,
    SuiteRun,
    WorkerContext,
)
from cycleguard.domain.prompts import ContextTemplate, tail_lines

logger = logging.getLogger(__name__)

REASON_TESTS_PASSING = "tests_passing"
REASON_MAX_CYCLES = "max_cycles_reached"


class LifecycleController:
    """
    Drives one agent toward its target pass rate.

    Collaborators are injected: the records facade, the dependency
    resolver, the metrics extractor and the external worker.
    """

    def __init__(
        self,
        spec: AgentSpec,
        records: AgentRecords,
        resolver: DependencyResolver,
        extractor: MetricsExtractor,
        worker: WorkerInterface,
        workspace: Path,
        settings: ControllerSettings | None = None,
        instructions: str = "",
        on_state: Callable[[LifecycleState], None] | None = None,
    ):
        """
        Args:
            spec: Immutable agent description
            records: Access to this agent's persisted records
            resolver: Dependency readiness and freshness
            extractor: Test command runner and summary parser
            worker: External reasoning/code-generation collaborator
            workspace: Directory the tests run in and the worker edits
            settings: Timing knobs (defaults if None)
            instructions: Task instructions appended to the worker context
            on_state: Called on every state transition
        """
        self._spec = spec
        self._records = records
        self._resolver = resolver
        self._extractor = extractor
        self._worker = worker
        self._workspace = Path(workspace)
        self._settings = settings or ControllerSettings()
        self._instructions = instructions
        self._on_state = on_state
        self._template = ContextTemplate(
            output_tail_lines=self._settings.output_tail_lines,
            debug_output_tail_lines=self._settings.debug_output_tail_lines,
        )
        self._heartbeat = Heartbeat(records, self._settings.heartbeat_interval)
        self._started = False
        self._stopped = False
        self._completed: Outcome | None = None
        self.state = LifecycleState.CYCLE_START

    def _enter(self, state: LifecycleState) -> None:
        logger.debug("%s: %s -> %s", self._spec.key, self.state.value, state.value)
        self.state = state
        if self._on_state is not None:
            self._on_state(state)

    # =========================================================================
    # PROCESS LIFETIME
    # =========================================================================

    def start(self) -> None:
        """
        Load-and-amend the status record and start the heartbeat.

        A status that already carries an outcome is left as it is; the
        first cycle then goes straight back to Maintenance.
        """
        if self._started:
            return
        counter = self._records.load_counter()
        status = self._records.load_status()
        if status is not None and status.status.done and status.outcome is not None:
            self._completed = status.outcome
            self._records.touch_heartbeat()
        else:
            self._records.init_status(counter)
        self._records.start_progress_section(counter)
        self._heartbeat.start()
        self._started = True
        logger.info(
            "Controller started for %s (cycles used %d/%d, target %d%%)",
            self._spec.key,
            counter.value,
            self._spec.max_cycles,
            self._spec.target_pass_rate,
        )

    def run(
        self, loop: bool = False, stop: threading.Event | None = None
    ) -> CycleOutcome:
        """
        Run one cycle, or with ``loop`` cycles until a terminal outcome.

        Terminal outcomes continue into Maintenance, which only returns
        once ``stop`` is set.

        Raises:
            DependencyTimeout: Fatal; operator intervention required
        """
        try:
            self.start()
            while True:
                outcome = self.run_cycle()
                if outcome.terminal:
                    self.maintain(stop)
                    return outcome
                if not loop:
                    return outcome
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Stop the heartbeat; mark ``stopped`` unless already completed."""
        if self._stopped:
            return
        self._stopped = True
        self._heartbeat.stop()
        status = self._records.load_status()
        if status is None or not status.status.done:
            self._records.update_status(status=AgentState.STOPPED)
        self._records.append_progress("Controller stopped")
        logger.info("Controller stopped for %s", self._spec.key)

    # =========================================================================
    # CYCLE
    # =========================================================================

    def run_cycle(self) -> CycleOutcome:
        """Run a single pass through the state machine."""
        self._enter(LifecycleState.CYCLE_START)
        if self._completed is not None:
            return self._resume_completed(self._completed)
        previous = self._records.load_counter()
        if previous.exhausted(self._spec.max_cycles):
            return self._final_test_run()

        counter = previous.incremented()
        self._records.save_counter(counter)
        self._records.update_status(
            status=AgentState.INITIALIZING, restart_cycle=counter.value, reason=None
        )
        self._records.append_progress(
            f"Cycle {counter.value}/{self._spec.max_cycles} started"
        )

        try:
            self._checkpoint(Checkpoint.CYCLE_START)
            self._wait_for_dependencies()

            self._enter(LifecycleState.BASELINE_TEST)
            baseline = self._run_tests("Baseline")
            if baseline.metrics.meets(
                self._spec.target_pass_rate, self._spec.min_total_tests
            ):
                return self._finish(Outcome.SUCCESS, REASON_TESTS_PASSING, baseline)

            self._checkpoint(Checkpoint.PRE_WORKER)
            self._enter(LifecycleState.WORKER_INVOCATION)
            self._invoke_worker(counter, baseline)
            self._checkpoint(Checkpoint.POST_WORKER)

            self._enter(LifecycleState.POST_TEST)
            post = self._run_tests("Post-work")
            self._records.update_status(
                work_summary=f"Cycle {counter.value}: {post.metrics.summary()}"
            )
            self._checkpoint(Checkpoint.POST_TEST)
        except DependenciesUpdated as e:
            return self._restart(e, previous)

        self._enter(LifecycleState.CYCLE_END)
        self._records.append_progress(
            f"Cycle {counter.value} complete: {post.metrics.summary()}"
        )
        return CycleOutcome.CONTINUE

    def _wait_for_dependencies(self) -> None:
        self._enter(LifecycleState.DEPENDENCY_WAIT)
        if not self._spec.depends_on:
            return
        self._records.append_progress(
            "Waiting for dependencies: "
            + ", ".join(dep.name for dep in self._spec.depends_on)
        )
        try:
            self._resolver.wait_for_readiness(self._spec.depends_on)
        except DependencyTimeout as e:
            logger.error("%s", e)
            self._records.add_error(str(e))
            self._records.append_progress(f"FATAL: {e}")
            raise
        self._records.append_progress("All dependencies ready")

    def _checkpoint(self, checkpoint: Checkpoint) -> None:
        """
        Raises:
            DependenciesUpdated: If any dependency's handoff is newer than
                the start marker
        """
        self._enter(LifecycleState.FRESHNESS_CHECKPOINT)
        freshness = self._resolver.check_freshness(self._spec.depends_on)
        if freshness.stale:
            raise DependenciesUpdated(checkpoint, freshness.updated)

    def _restart(
        self, update: DependenciesUpdated, previous: CycleCounter
    ) -> CycleOutcome:
        """Re-anchor the marker and give back the cycle just started."""
        logger.info("%s; restarting without spending a cycle", update)
        self._records.touch_marker()
        self._records.save_counter(previous)
        self._records.update_status(
            reason=update.checkpoint.reason, restart_cycle=previous.value
        )
        self._records.append_progress(
            f"Restarting: dependencies updated ({', '.join(update.updated)}) "
            f"at {update.checkpoint.value}"
        )
        return CycleOutcome.RESTART

    # =========================================================================
    # TESTS / WORKER
    # =========================================================================

    def _run_tests(self, label: str) -> SuiteRun:
        run = self._extractor.run(self._spec.test_command, self._workspace)
        metrics = run.metrics
        self._records.save_test_results(run.output)
        self._records.update_status(
            tests_pass=metrics.passed,
            tests_fail=metrics.failed,
            test_pass_rate=metrics.pass_rate,
        )
        self._records.append_progress(f"{label} tests: {metrics.summary()}")
        return run

    def _invoke_worker(self, counter: CycleCounter, baseline: SuiteRun) -> None:
        feedback = self._records.read_feedback()
        if feedback:
            self._records.append_progress("Incorporating operator feedback")
        context = WorkerContext(
            agent=self._spec.name,
            description=self._spec.description,
            cycle=counter.value,
            max_cycles=self._spec.max_cycles,
            target_pass_rate=self._spec.target_pass_rate,
            metrics=baseline.metrics,
            test_output=baseline.output,
            feedback=feedback,
            instructions=self._instructions,
            debug=self._spec.debug,
        )
        self._records.update_status(status=AgentState.WORKING)
        self._records.append_progress(
            "Invoking worker" + (" (debug mode, read-only)" if self._spec.debug else "")
        )

        scraper = TranscriptScraper(self._records)
        try:
            result = self._worker.invoke(self._template.render(context), on_line=scraper)
        except WorkerLaunchError as e:
            logger.error("%s", e)
            scraper.record_error(f"Worker launch failed: {e}")
            return

        if not result.succeeded:
            logger.warning("Worker exited with code %d", result.exit_code)
            scraper.record_error(f"Worker exited with code {result.exit_code}")
        self._records.append_progress(
            f"Worker finished (exit {result.exit_code}, "
            f"{len(scraper.files)} files touched, {len(scraper.errors)} errors)"
        )

    # =========================================================================
    # TERMINAL
    # =========================================================================

    def _final_test_run(self) -> CycleOutcome:
        self._enter(LifecycleState.FINAL_TEST_RUN)
        self._records.append_progress(
            f"Maximum cycles ({self._spec.max_cycles}) reached; final test run"
        )
        run = self._run_tests("Final")
        if run.metrics.meets(self._spec.target_pass_rate, self._spec.min_total_tests):
            return self._finish(Outcome.SUCCESS, REASON_TESTS_PASSING, run)
        return self._finish(Outcome.FAILURE, REASON_MAX_CYCLES, run)

    def _finish(self, outcome: Outcome, reason: str, run: SuiteRun) -> CycleOutcome:
        """Persist the terminal status, then the handoff or blocker."""
        self._completed = outcome
        metrics = run.metrics
        status = self._records.update_status(
            status=AgentState.COMPLETED,
            reason=reason,
            outcome=outcome,
            work_summary=metrics.summary(),
            experiment_complete=True,
        )
        if outcome is Outcome.SUCCESS:
            self._records.write_handoff(self._handoff_text(status.restart_cycle, run))
            self._records.append_progress(
                f"Target reached ({metrics.pass_rate}% >= "
                f"{self._spec.target_pass_rate}%); handoff written"
            )
            logger.info("%s converged: %s", self._spec.key, metrics.summary())
            return CycleOutcome.CONVERGED

        self._records.write_blocker(self._blocker_text(status.restart_cycle, run))
        self._records.append_progress(
            f"Target not reached ({metrics.pass_rate}% < "
            f"{self._spec.target_pass_rate}%); blocker written"
        )
        logger.warning("%s exhausted its cycles: %s", self._spec.key, metrics.summary())
        return CycleOutcome.EXHAUSTED

    def _resume_completed(self, outcome: Outcome) -> CycleOutcome:
        """Re-enter Maintenance without touching counter, handoff or blocker."""
        self._records.append_progress(
            f"Already completed ({outcome.value}); resuming maintenance"
        )
        logger.info("%s already completed (%s)", self._spec.key, outcome.value)
        if outcome is Outcome.SUCCESS:
            return CycleOutcome.CONVERGED
        return CycleOutcome.EXHAUSTED

    def _handoff_text(self, cycle: int, run: SuiteRun) -> str:
        status = self._records.load_status()
        files = status.files_modified if status else ()
        lines = [
            f"# {self._spec.name} - Complete",
            "",
            f"- Project: {self._spec.description}",
            f"- Completed at cycle: {cycle}",
            f"- Final results: {run.metrics.summary()}",
            f"- Target pass rate: {self._spec.target_pass_rate}%",
            "",
            "## Files modified",
        ]
        if files:
            lines.extend(f"- {path}" for path in files)
        else:
            lines.append("- (none recorded)")
        return "\n".join(lines) + "\n"

    def _blocker_text(self, cycle: int, run: SuiteRun) -> str:
        return (
            f"# {self._spec.name} - Incomplete\n\n"
            f"- Project: {self._spec.description}\n"
            f"- Cycles used: {cycle}/{self._spec.max_cycles}\n"
            f"- Final results: {run.metrics.summary()}\n"
            f"- Target pass rate: {self._spec.target_pass_rate}%\n\n"
            "## Last test output\n\n"
            "```\n"
            f"{tail_lines(run.output, self._settings.debug_output_tail_lines)}\n"
            "```\n"
        )

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def maintain(self, stop: threading.Event | None = None) -> None:
        """
        Absorbing terminal state: refresh the heartbeat and nothing else.

        Returns only when ``stop`` is set (normally never).
        """
        self._enter(LifecycleState.MAINTENANCE)
        self._records.append_progress("Entering maintenance")
        stop = stop or threading.Event()
        while not stop.wait(timeout=self._settings.maintenance_interval):
            self._records.touch_heartbeat()
