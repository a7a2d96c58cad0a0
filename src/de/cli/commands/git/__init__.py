"""Workspace-wide git commands."""

import click

from de.cli.commands.git.base_reset_cmd import base_reset_cmd
from de.cli.commands.git.switch_cmd import switch_cmd


@click.group("git")
def git_group() -> None:
    """Run git operations across every project of a workspace."""
    pass


# Register subcommands
git_group.add_command(base_reset_cmd)
git_group.add_command(switch_cmd)
