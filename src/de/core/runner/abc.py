"""Command runner interface.

Every git and compose invocation made by the core goes through a
CommandRunner. The core decides what to run; the runner runs it.

Architecture:
- CommandRunner: Abstract base class defining the interface
- RealCommandRunner: Production implementation using subprocess
- DryRunCommandRunner: Prints mutating commands instead of running them
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of one command."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class CommandRunner(ABC):
    """Abstract interface for running external commands on behalf of a project.

    Implementations must be safe to call from several threads at once: the
    orchestrator dispatches the projects of one wave concurrently.
    """

    @abstractmethod
    def execute(self, project_id: str, command: Sequence[str], cwd: Path) -> CommandResult:
        """Run a command in a project's directory and capture its output.

        A non-zero exit is a normal result, not an exception.

        Args:
            project_id: Project the command runs for (used for reporting)
            command: Program and arguments
            cwd: Working directory

        Returns:
            CommandResult with exit code and captured output

        Raises:
            RunnerUnavailableError: If the program cannot be launched at all
        """
        ...
