"""Exception types raised by the orchestration core.

Structural errors (graph, branch matching) are detected before any side effect
and abort the whole operation. Per-project runtime failures are not exceptions
at this level; they are recorded in the operation's report.
"""

from collections.abc import Sequence


class GraphError(Exception):
    """Base class for dependency graph validation failures."""


class MissingDependencyError(GraphError):
    """Raised when a project depends on an id that is not in the workspace.

    Every missing (project, dependency) pair is kept in ``missing``; the first
    pair in registration order is exposed as ``project_id``/``missing_id``.
    """

    def __init__(self, missing: Sequence[tuple[str, str]]) -> None:
        self.missing = tuple(missing)
        self.project_id, self.missing_id = self.missing[0]
        pairs = ", ".join(f"{project} -> {dep}" for project, dep in self.missing)
        super().__init__(f"Missing dependencies: {pairs}")


class CycleDetectedError(GraphError):
    """Raised when the dependency graph contains a cycle."""

    def __init__(self, involved: Sequence[str]) -> None:
        self.involved = tuple(involved)
        super().__init__(
            "Circular dependency detected among projects: " + ", ".join(self.involved)
        )


class DuplicateProjectError(GraphError):
    """Raised when two projects share the same id."""

    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        super().__init__(f"Project id '{project_id}' is registered more than once")


class MatchError(Exception):
    """Base class for branch resolution failures."""


class NoBranchFoundError(MatchError):
    """Raised when no repository has a branch matching the fragment."""

    def __init__(self, fragment: str) -> None:
        self.fragment = fragment
        super().__init__(f"No branch matching '{fragment}' found in any project")


class AmbiguousBranchError(MatchError):
    """Raised when several branches match and nobody can pick one."""

    def __init__(self, fragment: str, branch_names: Sequence[str]) -> None:
        self.fragment = fragment
        self.branch_names = tuple(branch_names)
        super().__init__(
            f"Branch fragment '{fragment}' is ambiguous: " + ", ".join(self.branch_names)
        )


class OrchestrationError(Exception):
    """Hard failure that makes a whole start/stop run meaningless."""


class RunnerUnavailableError(OrchestrationError):
    """Raised when the command runner cannot launch a program at all."""

    def __init__(self, program: str, reason: str) -> None:
        self.program = program
        self.reason = reason
        super().__init__(f"Cannot run '{program}': {reason}")


class GitCommandError(RuntimeError):
    """A git invocation exited non-zero.

    The message mirrors the subprocess helper's format: operation, command,
    exit code, then captured output.
    """

    def __init__(
        self,
        operation_context: str,
        command: Sequence[str],
        exit_code: int,
        stdout: str,
        stderr: str,
    ) -> None:
        self.operation_context = operation_context
        self.command = tuple(command)
        self.exit_code = exit_code
        self.stderr = stderr

        error_msg = f"Failed to {operation_context}"
        error_msg += f"\nCommand: {' '.join(command)}"
        error_msg += f"\nExit code: {exit_code}"
        if stdout.strip():
            error_msg += f"\nstdout: {stdout.strip()}"
        if stderr.strip():
            error_msg += f"\nstderr: {stderr.strip()}"
        super().__init__(error_msg)

    @property
    def summary(self) -> str:
        """First line of stderr, or the operation when git printed nothing."""
        for line in self.stderr.splitlines():
            if line.strip():
                return line.strip()
        return f"failed to {self.operation_context} (exit code {self.exit_code})"


class ComposeQueryError(RuntimeError):
    """``docker compose ps`` failed or printed something unreadable."""

    def __init__(self, project_id: str, reason: str) -> None:
        self.project_id = project_id
        self.reason = reason
        super().__init__(f"Cannot read compose services of '{project_id}': {reason}")
