"""Command runner subpackage.

This subpackage provides the abstraction every git and compose invocation goes
through, with a subprocess implementation and a dry-run wrapper.
"""

from de.core.runner.abc import CommandResult, CommandRunner
from de.core.runner.dry_run import DryRunCommandRunner
from de.core.runner.real import RealCommandRunner

__all__ = [
    "CommandResult",
    "CommandRunner",
    "DryRunCommandRunner",
    "RealCommandRunner",
]
