"""Terminal rendering of orderings, run reports and workspace status."""

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from de.cli.output import user_output
from de.core.compose import find_compose_file
from de.core.dependency_graph import Ordering
from de.core.git_sync import EventCallback, SyncReport, SyncState, SyncStatus
from de.core.orchestrator import ActionStatus, OrchestrationReport
from de.core.status import ProjectStatus, StatusSummary
from de.core.user_feedback import UserFeedback
from de.core.workspace import Workspace

_ACTION_STYLES = {
    ActionStatus.SUCCESS: ("ok", "green"),
    ActionStatus.FAILED: ("failed", "red"),
    ActionStatus.SKIPPED: ("skipped", "yellow"),
}

_SYNC_STYLES = {
    SyncStatus.SUCCESS: "green",
    SyncStatus.SKIPPED: "yellow",
    SyncStatus.ABORTED: "magenta",
    SyncStatus.FAILED: "red",
}


def _print_table(table: Table) -> None:
    console = Console(stderr=True, width=200)
    console.print(table)


def render_ordering(
    workspace: Workspace, ordering: Ordering, waves: list[list[str]], *, reverse: bool = False
) -> None:
    """Table of projects in start (or, with ``reverse``, stop) order."""
    wave_of = {project_id: index for index, wave in enumerate(waves) for project_id in wave}

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", no_wrap=True)
    table.add_column("project", style="cyan", no_wrap=True)
    table.add_column("wave", justify="right", no_wrap=True)
    table.add_column("depends on", no_wrap=True)
    table.add_column("git", no_wrap=True)
    table.add_column("compose", no_wrap=True)

    sequence = ordering.stop if reverse else ordering.start
    for position, project_id in enumerate(sequence, start=1):
        project = workspace.get_project(project_id)
        if project is None:
            continue
        depends = ", ".join(sorted(ordering.dependencies.get(project_id, ()))) or "-"
        git = "[green]yes[/green]" if project.git_enabled else "[dim]no[/dim]"
        compose_file = find_compose_file(project)
        compose = compose_file.name if compose_file is not None else "[dim]-[/dim]"
        table.add_row(
            str(position), project_id, str(wave_of[project_id]), escape(depends), git, compose
        )

    _print_table(table)


def render_orchestration_report(report: OrchestrationReport) -> None:
    """One line per project, in traversal order."""
    width = max((len(o.project_id) for o in report.outcomes), default=0)
    for outcome in report.outcomes:
        label, color = _ACTION_STYLES[outcome.status]
        line = f"  {outcome.project_id:<{width}}  {click.style(label, fg=color)}"
        if outcome.message:
            line += click.style(f"  ({outcome.message})", dim=True)
        user_output(line)


def render_sync_report(report: SyncReport) -> None:
    """Table of per-project outcomes of a switch or base-reset."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("project", style="cyan", no_wrap=True)
    table.add_column("status", no_wrap=True)
    table.add_column("branch", no_wrap=True)
    table.add_column("details")

    for outcome in report.outcomes:
        color = _SYNC_STYLES[outcome.status]
        table.add_row(
            outcome.project_id,
            f"[{color}]{outcome.status.value}[/{color}]",
            escape(outcome.branch or "-"),
            escape(outcome.reason or ""),
        )

    _print_table(table)


def sync_event_printer(feedback: UserFeedback) -> EventCallback:
    """Progress callback for the git sync engine: one line per project step."""

    def on_event(project_id: str | None, state: SyncState, message: str) -> None:
        if project_id is None:
            return
        feedback.info(f"  {click.style(project_id, fg='cyan')} {state.value}: {message}")

    return on_event


def _git_cell(status: ProjectStatus) -> str:
    if not status.git_enabled:
        return "[dim]disabled[/dim]"
    if status.git_error is not None:
        return f"[red]{escape(status.git_error)}[/red]"
    if status.dirty is None:
        return "[dim]-[/dim]"
    if status.dirty.is_clean:
        return "[green]clean[/green]"
    return f"[yellow]{escape(status.dirty.describe())}[/yellow]"


def _services_cell(status: ProjectStatus) -> str:
    if status.compose_error is not None:
        return f"[red]{escape(status.compose_error)}[/red]"
    if status.compose_file is None:
        return "[dim]-[/dim]"
    if not status.services:
        return "[dim]none[/dim]"
    cells = []
    for service in status.services:
        color = "green" if service.is_up else "red"
        cells.append(f"{escape(service.name)}: [{color}]{escape(service.state)}[/{color}]")
    return ", ".join(cells)


def render_status(statuses: list[ProjectStatus], summary: StatusSummary) -> None:
    """Per-project table followed by what still needs doing."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("project", style="cyan", no_wrap=True)
    table.add_column("dir", no_wrap=True)
    table.add_column("branch", no_wrap=True)
    table.add_column("git", no_wrap=True)
    table.add_column("services")

    for status in statuses:
        if not status.present:
            table.add_row(
                status.project_id,
                f"[red]{escape(str(status.dir))} (missing)[/red]",
                "-",
                "[dim]-[/dim]",
                "[dim]-[/dim]",
            )
            continue
        table.add_row(
            status.project_id,
            escape(str(status.dir)),
            escape(status.branch or "-"),
            _git_cell(status),
            _services_cell(status),
        )

    _print_table(table)
    user_output()

    if summary.all_clear:
        user_output(click.style("All projects and services are up to date.", fg="green"))
        return
    if summary.missing:
        user_output(f"Missing directories: {summary.missing}")
    if summary.uncommitted:
        user_output(f"Uncommitted changes: {summary.uncommitted} (run: git commit)")
    if summary.unpushed:
        user_output(f"To push: {summary.unpushed} (run: git push)")
    if summary.downed_services:
        user_output(f"Downed services: {summary.downed_services} (run: de start)")
