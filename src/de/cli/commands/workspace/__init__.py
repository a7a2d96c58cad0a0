"""Workspace inspection and settings commands."""

import click

from de.cli.commands.workspace.config_cmd import config_cmd
from de.cli.commands.workspace.info_cmd import info_cmd
from de.cli.commands.workspace.list_cmd import list_workspaces


@click.group("workspace")
def workspace_group() -> None:
    """Inspect and configure workspaces."""
    pass


# Register subcommands
workspace_group.add_command(config_cmd)
workspace_group.add_command(info_cmd)
workspace_group.add_command(list_workspaces)
