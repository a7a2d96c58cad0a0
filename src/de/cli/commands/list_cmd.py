"""Show a workspace's projects in start order."""

import click

from de.cli.core import resolve_ordering, resolve_workspace, workspace_label
from de.cli.output import machine_output, user_output
from de.cli.rendering import render_ordering
from de.core.context import DeContext
from de.core.orchestrator import Direction, compute_waves


@click.command("list")
@click.argument("workspace_name", metavar="WORKSPACE", required=False)
@click.option("--stop-order", is_flag=True, help="Show the order projects are stopped in")
@click.option("--ids", "ids_only", is_flag=True, help="Print only project ids, one per line")
@click.pass_obj
def list_cmd(ctx: DeContext, workspace_name: str | None, stop_order: bool, ids_only: bool) -> None:
    """List a workspace's projects in the order they start."""
    workspace = resolve_workspace(ctx, workspace_name)
    ordering = resolve_ordering(workspace)

    if ids_only:
        for project_id in ordering.stop if stop_order else ordering.start:
            machine_output(project_id)
        return

    if not ordering.start:
        user_output(f"Workspace {workspace_label(workspace)} has no projects.")
        return

    direction = Direction.STOP if stop_order else Direction.START
    user_output(f"Workspace {workspace_label(workspace)} ({direction.value} order)")
    render_ordering(workspace, ordering, compute_waves(ordering, direction), reverse=stop_order)
