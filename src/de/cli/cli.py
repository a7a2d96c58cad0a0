import logging
import os

import click

from de.cli.commands.git import git_group
from de.cli.commands.list_cmd import list_cmd
from de.cli.commands.start import start_cmd
from de.cli.commands.status import status_cmd
from de.cli.commands.stop import stop_cmd
from de.cli.commands.workspace import workspace_group
from de.cli.help_formatter import GroupedCommandGroup
from de.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


def _configure_logging(verbose: bool) -> None:
    if verbose or os.environ.get("DE_DEBUG"):
        logging.basicConfig(
            level=logging.DEBUG,
            format="[DEBUG %(name)s:%(lineno)d] %(message)s",
        )


@click.group(cls=GroupedCommandGroup, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="de-cli")
@click.option("--dry-run", is_flag=True, help="Print mutating commands instead of running them")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors")
@click.pass_context
def cli(ctx: click.Context, dry_run: bool, verbose: bool, quiet: bool) -> None:
    """Run a workspace of related projects as one."""
    _configure_logging(verbose)
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(dry_run=dry_run, quiet=quiet)


# Register all commands
cli.add_command(git_group)
cli.add_command(list_cmd)
cli.add_command(start_cmd)
cli.add_command(status_cmd)
cli.add_command(stop_cmd)
cli.add_command(workspace_group)


def main() -> None:
    """CLI entry point used by the `de` console script."""
    cli()
