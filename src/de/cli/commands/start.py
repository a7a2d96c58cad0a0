"""Start a workspace's services in dependency order."""

from dataclasses import replace
from enum import Enum

import click

from de.cli.commands.stop import stop_workspace
from de.cli.core import resolve_ordering, resolve_workspace, workspace_label
from de.cli.ensure import Ensure
from de.cli.rendering import render_orchestration_report
from de.core import orchestrator
from de.core.compose import ComposeAction
from de.core.context import DeContext
from de.core.dependency_graph import dependency_closure
from de.core.errors import OrchestrationError
from de.core.orchestrator import Direction
from de.core.workspace import Workspace


class ActiveWorkspaceChoice(Enum):
    ABORT = "Abort starting the new workspace"
    REPLACE = "Stop the active workspace and start the new one"
    ALONGSIDE = "Start the new workspace alongside the active one"


def _handle_active_workspace(ctx: DeContext, workspace: Workspace) -> None:
    active = ctx.global_config.active_workspace
    if active is None or active == workspace.name or not ctx.workspace_store.exists(active):
        return

    choice = ctx.interaction.choose(
        f"Workspace '{active}' is already active. How do you wish to proceed?",
        list(ActiveWorkspaceChoice),
        label=lambda c: c.value,
    )
    if choice == ActiveWorkspaceChoice.ABORT:
        Ensure.fail("Start aborted by user")
    if choice == ActiveWorkspaceChoice.REPLACE:
        report = stop_workspace(ctx, resolve_workspace(ctx, active), yes=False)
        Ensure.invariant(report is not None, f"Stopping workspace '{active}' was aborted")


@click.command("start")
@click.argument("workspace_name", metavar="WORKSPACE", required=False)
@click.option(
    "-p",
    "--project",
    "project_id",
    help="Start only this project and the projects it depends on",
)
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of projects started at the same time",
)
@click.pass_obj
def start_cmd(
    ctx: DeContext, workspace_name: str | None, project_id: str | None, jobs: int | None
) -> None:
    """Start a workspace and make it the active one.

    Projects are started in dependency order; projects that do not depend on
    each other start concurrently. When a project fails, everything that
    depends on it is skipped.
    """
    workspace = resolve_workspace(ctx, workspace_name)
    ordering = resolve_ordering(workspace)

    only = None
    if project_id is not None:
        Ensure.invariant(
            workspace.get_project(project_id) is not None,
            f"Project '{project_id}' is not part of workspace '{workspace.name}'",
        )
        only = dependency_closure(ordering, project_id)

    _handle_active_workspace(ctx, workspace)

    ctx.feedback.info(f"Starting workspace {workspace_label(workspace)}")
    action = ComposeAction(ctx.runner, workspace, Direction.START)
    try:
        report = orchestrator.run(ordering, Direction.START, action, only=only, max_workers=jobs)
    except OrchestrationError as e:
        Ensure.fail(str(e))
    render_orchestration_report(report)

    if not ctx.dry_run:
        ctx.config_store.save(replace(ctx.global_config, active_workspace=workspace.name))

    if report.has_failures:
        raise SystemExit(1)
    ctx.feedback.success(f"Workspace {workspace.name} started")
