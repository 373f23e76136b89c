"""
cycleguard command line.

    cycleguard run [--loop] [--fresh-start]   one controller process lifetime
    cycleguard reset --agent NAME             fresh-start signal
    cycleguard status [--json]                health snapshot of all agents
    cycleguard deps                           dependency classification/readiness

Exit codes: 0 = cycle complete (restart expected), 1 = fatal (configuration
error or dependency timeout; do not restart without operator action).
"""

from __future__ import annotations

import json
import logging
import signal
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType

import click

from cycleguard.application import (
    AgentRecords,
    DependencyResolver,
    LifecycleController,
    MetricsExtractor,
    StatusMonitor,
)
from cycleguard.cli.console import (
    console,
    print_agent_info,
    print_dependencies,
    print_error,
    print_failure,
    print_header,
    print_status_report,
    print_success,
)
from cycleguard.cli.logging_setup import setup_logging
from cycleguard.domain.exceptions import ConfigurationError, DependencyTimeout
from cycleguard.domain.metrics import RegexSummaryParser
from cycleguard.domain.models import AgentSpec, CycleOutcome, WorkspaceStrategy
from cycleguard.infrastructure.config import (
    DEFAULT_SHARED_DIR,
    AgentConfig,
    load_agent_config,
)
from cycleguard.infrastructure.persistence import FilesystemRecordStore
from cycleguard.infrastructure.runners import SubprocessCommandRunner, SubprocessWorker

logger = logging.getLogger("cycleguard.cli")

EXIT_OK = 0
EXIT_FATAL = 1


def _load_config_or_exit() -> AgentConfig:
    try:
        return load_agent_config()
    except ConfigurationError as e:
        print_error(str(e), "Check the agent environment variables.")
        sys.exit(EXIT_FATAL)


def _open_store(config: AgentConfig) -> FilesystemRecordStore:
    try:
        return FilesystemRecordStore(config.shared_dir)
    except OSError as e:
        print_error(f"Cannot use shared directory {config.shared_dir}: {e}")
        sys.exit(EXIT_FATAL)


def build_controller(
    config: AgentConfig, store: FilesystemRecordStore
) -> tuple[LifecycleController, AgentRecords]:
    """Wire the controller for an agent from its configuration."""
    spec = config.spec
    records = AgentRecords(store, spec)
    resolver = DependencyResolver(
        store,
        spec,
        config.workspace,
        poll_interval=config.settings.poll_interval,
        timeout=config.settings.dependency_timeout,
    )
    extractor = MetricsExtractor(
        SubprocessCommandRunner(), RegexSummaryParser.preset(config.parser_name)
    )
    worker = SubprocessWorker(config.worker_command, config.workspace)
    controller = LifecycleController(
        spec,
        records,
        resolver,
        extractor,
        worker,
        config.workspace,
        settings=config.settings,
        instructions=config.instructions,
    )
    return controller, records


def _terminate(signum: int, _frame: FrameType | None) -> None:
    logger.warning("Received signal %d, shutting down", signum)
    raise SystemExit(128 + signum)


@contextmanager
def _termination_handlers() -> Iterator[None]:
    """SIGTERM unwinds like SIGINT so the controller's exit hook runs."""
    previous = signal.signal(signal.SIGTERM, _terminate)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


@click.group()
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose (DEBUG) logging to console",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """cycleguard - drive agents to a test-pass threshold over shared storage."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


# =========================================================================
# run
# =========================================================================


@cli.command()
@click.option(
    "--loop",
    is_flag=True,
    help="Repeat cycles in this process instead of exiting after each one",
)
@click.option(
    "--fresh-start",
    is_flag=True,
    help="Reset the cycle counter and start marker first (same as FRESH_START=true)",
)
@click.pass_context
def run(ctx: click.Context, loop: bool, fresh_start: bool) -> None:
    """Run one controller lifetime for the agent described by the environment."""
    config = _load_config_or_exit()
    store = _open_store(config)
    setup_logging("cycleguard", str(config.log_file), ctx.obj["verbose"])

    print_header(f"Agent: {config.spec.key}", config.spec.description)
    print_agent_info(config)

    controller, records = build_controller(config, store)
    if fresh_start or config.fresh_start:
        records.fresh_start()
        console.print("[yellow]Fresh start: cycle counter reset[/yellow]")

    try:
        with _termination_handlers():
            outcome = controller.run(loop=loop)
    except DependencyTimeout as e:
        logger.error("Fatal: %s", e)
        print_error(str(e), "Check the upstream agents; restart only after they complete.")
        sys.exit(EXIT_FATAL)

    if outcome is CycleOutcome.CONVERGED:
        print_success(f"{config.spec.key} reached its target")
    elif outcome is CycleOutcome.EXHAUSTED:
        print_failure(f"{config.spec.key} exhausted its cycles", "Blocker record written")
    else:
        console.print(f"Cycle finished: [bold]{outcome.value}[/bold]")
    sys.exit(EXIT_OK)


# =========================================================================
# reset
# =========================================================================


@cli.command()
@click.option("--agent", required=True, envvar="AGENT_NAME", help="Agent name")
@click.option("--project", default="", envvar="PROJECT_NAME", help="Project name prefix")
@click.option(
    "--shared-dir",
    default=DEFAULT_SHARED_DIR,
    envvar="SHARED_DIR",
    type=click.Path(file_okay=False),
    help="Shared record directory",
)
def reset(agent: str, project: str, shared_dir: str) -> None:
    """Fresh start: zero the cycle counter and remove the start marker."""
    spec = AgentSpec(
        name=agent,
        depends_on=(),
        test_command="",
        max_cycles=1,
        target_pass_rate=0,
        workspace_strategy=WorkspaceStrategy.ISOLATED,
        project=project,
    )
    records = AgentRecords(FilesystemRecordStore(shared_dir), spec)
    records.fresh_start()
    console.print(f"[green]Reset {spec.key}[/green]: counter 0, start marker removed")


# =========================================================================
# status
# =========================================================================


@cli.command()
@click.option(
    "--shared-dir",
    default=DEFAULT_SHARED_DIR,
    envvar="SHARED_DIR",
    type=click.Path(file_okay=False),
    help="Shared record directory",
)
@click.option("--json", "as_json", is_flag=True, help="Print the snapshot as JSON")
def status(shared_dir: str, as_json: bool) -> None:
    """Health snapshot of every agent found on the shared directory."""
    monitor = StatusMonitor(FilesystemRecordStore(shared_dir, create_layout=False))
    report = monitor.report()
    if as_json:
        click.echo(json.dumps(report, indent=2))
        return
    if not report["agents"]:
        console.print(f"[dim]No agents found under {shared_dir}[/dim]")
        return
    print_status_report(report)


# =========================================================================
# deps
# =========================================================================


@cli.command()
def deps() -> None:
    """Show how each declared dependency is classified and whether it is ready."""
    config = _load_config_or_exit()
    store = FilesystemRecordStore(config.shared_dir, create_layout=False)
    resolver = DependencyResolver(store, config.spec, config.workspace)
    print_header(f"Dependencies of {config.spec.key}")
    print_dependencies([(dep, resolver.is_ready(dep)) for dep in config.spec.depends_on])


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
