"""Dry-run CommandRunner wrapper.

Read-only git queries and ``docker compose ps`` are delegated so that decisions
(dirty checks, branch lookups) and status are still made against real state;
every other command is printed and reported as successful without being executed.
"""

import shlex
from collections.abc import Sequence
from pathlib import Path

import click

from de.cli.output import user_output
from de.core.runner.abc import CommandResult, CommandRunner

READ_ONLY_GIT_SUBCOMMANDS = frozenset(
    {"status", "rev-parse", "rev-list", "for-each-ref", "show-ref", "log", "diff"}
)


def is_read_only(command: Sequence[str]) -> bool:
    """Whether a command only inspects state."""
    if len(command) >= 2 and command[0] == "git":
        return command[1] in READ_ONLY_GIT_SUBCOMMANDS
    if len(command) >= 2 and command[0] == "docker" and command[1] == "compose":
        return "ps" in command
    return False


class DryRunCommandRunner(CommandRunner):
    """Wrapper that prints mutating commands instead of running them.

    Usage:
        runner = DryRunCommandRunner(RealCommandRunner())
        runner.execute("api", ["git", "checkout", "main"], path)  # prints only
    """

    def __init__(self, wrapped: CommandRunner) -> None:
        self._wrapped = wrapped

    def execute(self, project_id: str, command: Sequence[str], cwd: Path) -> CommandResult:
        if is_read_only(command):
            return self._wrapped.execute(project_id, command, cwd)

        user_output(
            click.style("[DRY RUN] ", fg="bright_black")
            + f"Would run in {project_id}: {shlex.join(command)}"
        )
        return CommandResult(exit_code=0)
