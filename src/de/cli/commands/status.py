"""Show the state of every project in a workspace."""

import click

from de.cli.core import resolve_workspace, workspace_label
from de.cli.output import user_output
from de.cli.rendering import render_status
from de.core.context import DeContext
from de.core.status import summarize, workspace_status


@click.command("status")
@click.argument("workspace_name", metavar="WORKSPACE", required=False)
@click.pass_obj
def status_cmd(ctx: DeContext, workspace_name: str | None) -> None:
    """Show branches, local changes and service states of a workspace.

    Nothing is changed. Uses the active workspace when WORKSPACE is omitted.
    """
    workspace = resolve_workspace(ctx, workspace_name)
    user_output(f"Workspace: {workspace_label(workspace)}")

    if not workspace.projects:
        user_output("No projects registered.")
        return

    statuses = workspace_status(ctx.runner, workspace)
    render_status(statuses, summarize(statuses))
