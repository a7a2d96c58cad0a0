import click

from de.cli.output import machine_output
from de.core.context import DeContext


@click.command("list")
@click.pass_obj
def list_workspaces(ctx: DeContext) -> None:
    """List registered workspaces; the active one is marked with *."""
    active = ctx.global_config.active_workspace
    for name in ctx.workspace_store.list_names():
        marker = "*" if name == active else " "
        machine_output(f"{marker} {name}")
