"""Rich console utilities for the cycleguard CLI."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from cycleguard.domain.models import Dependency
    from cycleguard.infrastructure.config import AgentConfig

# Shared console instances
console = Console()
error_console = Console(stderr=True)

_HEALTH_STYLES = {
    "healthy": "green",
    "completed": "green",
    "slow": "yellow",
    "degraded": "yellow",
    "stale": "red",
    "unhealthy": "red",
    "failed": "bold red",
    "unknown": "dim",
}


def print_header(title: str, subtitle: str | None = None) -> None:
    """Print a styled header panel."""
    content = Text(title, style="bold blue")
    if subtitle:
        content.append(f"\n{subtitle}", style="dim")
    console.print(Panel(content, expand=False))


def print_error(message: str, hint: str | None = None) -> None:
    """Print formatted error message to stderr."""
    content = Text(f"ERROR: {message}", style="bold red")
    if hint:
        content.append(f"\n\nHint: {hint}", style="yellow")
    error_console.print(Panel(content, title="Error", border_style="red"))


def print_success(message: str) -> None:
    console.print(Panel(message, title="Success", border_style="green"))


def print_failure(message: str, details: str | None = None) -> None:
    content = Text(message, style="bold red")
    if details:
        content.append(f"\n{details}", style="dim")
    console.print(Panel(content, title="Failed", border_style="red"))


def print_agent_info(config: AgentConfig) -> None:
    """Print agent configuration info table."""
    spec = config.spec
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Agent", spec.key)
    table.add_row("Depends on", ", ".join(d.name for d in spec.depends_on) or "-")
    table.add_row("Test command", spec.test_command)
    table.add_row("Target pass rate", f"{spec.target_pass_rate}%")
    table.add_row("Max cycles", str(spec.max_cycles))
    table.add_row("Workspace", f"{config.workspace} ({spec.workspace_strategy.value})")
    table.add_row("Shared dir", str(config.shared_dir))
    table.add_row("Log file", str(config.log_file))
    if spec.debug:
        table.add_row("Mode", "DEBUG (read-only analysis)")

    console.print(table)


def print_dependencies(rows: Sequence[tuple[Dependency, bool]]) -> None:
    """Print dependency classification and current readiness."""
    if not rows:
        console.print("[dim]No dependencies declared[/dim]")
        return
    table = Table(show_header=True)
    table.add_column("Dependency", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Artifact root")
    table.add_column("Ready")
    for dependency, ready in rows:
        table.add_row(
            dependency.name,
            dependency.kind.value,
            dependency.pattern.root if dependency.pattern else "-",
            "[green]yes[/green]" if ready else "[yellow]no[/yellow]",
        )
    console.print(table)


def print_status_report(report: dict[str, Any]) -> None:
    """Print a monitor snapshot as a table plus the overall health."""
    table = Table(show_header=True)
    table.add_column("Agent", style="cyan")
    table.add_column("Status")
    table.add_column("Health")
    table.add_column("Cycle", justify="right")
    table.add_column("Pass rate", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Signal")

    for agent in report["agents"]:
        style = _HEALTH_STYLES.get(agent["health"], "")
        cycle = (
            f"{agent['restartCycle']}/{agent['maxRestarts']}"
            if agent["restartCycle"] is not None
            else "-"
        )
        rate = (
            f"{agent['testPassRate']}%/{agent['targetPassRate']}%"
            if agent["testPassRate"] is not None
            else "-"
        )
        signal = "handoff" if agent["handoff"] else "blocker" if agent["blocker"] else "-"
        table.add_row(
            agent["key"],
            agent["status"] or "-",
            f"[{style}]{agent['health']}[/{style}]" if style else agent["health"],
            cycle,
            rate,
            str(agent["errors"]),
            signal,
        )

    console.print(table)
    summary = report["summary"]
    console.print(
        f"\nOverall health: [bold]{report['overallHealth']}[/bold]  "
        f"({summary['completed']}/{summary['total']} completed, "
        f"{summary['handoffs']} handoffs, {summary['blockers']} blockers)"
    )
