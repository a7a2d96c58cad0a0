"""Stop a workspace's services in reverse dependency order."""

from dataclasses import replace

import click

from de.cli.core import collect_git_status, resolve_ordering, resolve_workspace, workspace_label
from de.cli.ensure import Ensure
from de.cli.output import user_output
from de.cli.rendering import render_orchestration_report
from de.core import orchestrator
from de.core.compose import ComposeAction
from de.core.context import DeContext
from de.core.errors import OrchestrationError
from de.core.orchestrator import Direction, OrchestrationReport
from de.core.workspace import Workspace


def _confirm_unsaved_work(ctx: DeContext, workspace: Workspace) -> bool:
    """Warn about projects with local git work; True if it is fine to continue."""
    dirty = []
    for entry in collect_git_status(ctx, workspace):
        if entry.error is not None:
            ctx.feedback.warning(f"  {entry.project_id}: could not read git status ({entry.error})")
        elif entry.status is not None and not entry.status.is_clean:
            dirty.append(entry)
            ctx.feedback.warning(f"  {entry.project_id}: {entry.status.describe()}")

    if not dirty:
        return True
    return ctx.interaction.confirm(
        "Uncommitted or unpushed changes detected. Stop anyway?", default=False
    )


def stop_workspace(
    ctx: DeContext, workspace: Workspace, *, yes: bool, jobs: int | None = None
) -> OrchestrationReport | None:
    """Stop every project of ``workspace``, dependents first.

    Returns:
        The run's report, or None if the user declined to stop
    """
    ordering = resolve_ordering(workspace)

    if not yes and not _confirm_unsaved_work(ctx, workspace):
        user_output("Aborting stop operation.")
        return None

    ctx.feedback.info(f"Stopping workspace {workspace_label(workspace)}")
    action = ComposeAction(ctx.runner, workspace, Direction.STOP)
    try:
        report = orchestrator.run(ordering, Direction.STOP, action, max_workers=jobs)
    except OrchestrationError as e:
        Ensure.fail(str(e))
    render_orchestration_report(report)

    if not ctx.dry_run and ctx.global_config.active_workspace == workspace.name:
        ctx.config_store.save(replace(ctx.global_config, active_workspace=None))
    return report


@click.command("stop")
@click.argument("workspace_name", metavar="WORKSPACE", required=False)
@click.option("-y", "--yes", is_flag=True, help="Do not ask about uncommitted or unpushed work")
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of projects stopped at the same time",
)
@click.pass_obj
def stop_cmd(ctx: DeContext, workspace_name: str | None, yes: bool, jobs: int | None) -> None:
    """Stop a workspace (the active one by default)."""
    workspace = resolve_workspace(ctx, workspace_name)
    report = stop_workspace(ctx, workspace, yes=yes, jobs=jobs)
    if report is None:
        return
    if report.has_failures:
        raise SystemExit(1)
    ctx.feedback.success(f"Workspace {workspace.name} stopped")
