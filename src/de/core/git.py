"""Git operations for one project, executed through the CommandRunner.

This module is the only place that knows git's command-line syntax. Queries
return parsed values; mutating operations raise GitCommandError when git
exits non-zero so callers can record the failure for that project.
"""

from dataclasses import dataclass

from de.core.errors import GitCommandError
from de.core.runner.abc import CommandResult, CommandRunner
from de.core.workspace import Project


@dataclass(frozen=True)
class BranchInventory:
    """Branches known to one repository.

    Remote branch names are stored without the remote prefix, so ``origin/dev``
    is ``dev``.
    """

    local: frozenset[str]
    remote: frozenset[str]

    @property
    def names(self) -> frozenset[str]:
        return self.local | self.remote


def parse_branch_refs(output: str, remote: str) -> BranchInventory:
    """Parse ``git for-each-ref --format=%(refname)`` output."""
    local: set[str] = set()
    remote_branches: set[str] = set()
    remote_prefix = f"refs/remotes/{remote}/"
    for line in output.splitlines():
        ref = line.strip()
        if ref.startswith("refs/heads/"):
            local.add(ref.removeprefix("refs/heads/"))
        elif ref.startswith(remote_prefix):
            name = ref.removeprefix(remote_prefix)
            if name != "HEAD":
                remote_branches.add(name)
    return BranchInventory(local=frozenset(local), remote=frozenset(remote_branches))


class ProjectGit:
    """Git commands bound to one project's working tree."""

    def __init__(self, runner: CommandRunner, project: Project) -> None:
        self._runner = runner
        self._project = project

    @property
    def remote(self) -> str:
        return self._project.default_remote

    def _query(self, *args: str) -> CommandResult:
        return self._runner.execute(self._project.id, ["git", *args], self._project.dir)

    def _run(self, operation_context: str, *args: str) -> CommandResult:
        command = ["git", *args]
        result = self._runner.execute(self._project.id, command, self._project.dir)
        if not result.success:
            raise GitCommandError(
                operation_context, command, result.exit_code, result.stdout, result.stderr
            )
        return result

    # Queries

    def current_branch(self) -> str | None:
        """Currently checked-out branch, or None for a detached HEAD."""
        result = self._query("rev-parse", "--abbrev-ref", "HEAD")
        if not result.success:
            return None
        branch = result.stdout.strip()
        if branch == "HEAD":
            return None
        return branch

    def has_uncommitted_changes(self) -> bool:
        """Staged, modified or untracked files present.

        Raises:
            GitCommandError: If the status cannot be read
        """
        result = self._run("read working tree status", "status", "--porcelain")
        return bool(result.stdout.strip())

    def unpushed_commit_count(self) -> int:
        """Commits on HEAD that its upstream does not have.

        A branch without an upstream counts as having nothing to push.
        """
        result = self._query("rev-list", "--count", "@{upstream}..HEAD")
        if not result.success:
            return 0
        count = result.stdout.strip()
        return int(count) if count.isdigit() else 0

    def list_branches(self) -> BranchInventory:
        """Local heads plus remote-tracking branches of the project's remote."""
        result = self._run(
            "list branches",
            "for-each-ref",
            "--format=%(refname)",
            "refs/heads",
            f"refs/remotes/{self.remote}",
        )
        return parse_branch_refs(result.stdout, self.remote)

    def remote_default_branch(self) -> str | None:
        """Branch the remote's HEAD points at (``origin/HEAD`` → ``main``)."""
        result = self._query("rev-parse", "--abbrev-ref", f"{self.remote}/HEAD")
        if not result.success:
            return None
        ref = result.stdout.strip()
        prefix = f"{self.remote}/"
        if not ref.startswith(prefix):
            return None
        return ref.removeprefix(prefix)

    # Mutations

    def fetch(self) -> None:
        self._run("fetch remotes", "fetch", "--all", "--prune")

    def checkout(self, branch: str) -> None:
        self._run(f"checkout branch '{branch}'", "checkout", branch)

    def checkout_tracking(self, branch: str) -> None:
        """Create a local branch tracking the remote branch of the same name."""
        self._run(
            f"create tracking branch '{branch}'",
            "checkout",
            "-b",
            branch,
            "--track",
            f"{self.remote}/{branch}",
        )

    def checkout_from_remote(self, branch: str) -> None:
        """Create or reset the local branch to the remote branch and check it out."""
        self._run(
            f"checkout '{branch}' from {self.remote}",
            "checkout",
            "-B",
            branch,
            f"{self.remote}/{branch}",
        )

    def reset_hard(self, ref: str | None = None) -> None:
        args = ["reset", "--hard"]
        if ref is not None:
            args.append(ref)
        self._run(f"reset to {ref or 'HEAD'}", *args)

    def reset_to_remote(self, branch: str) -> None:
        self.reset_hard(f"{self.remote}/{branch}")

    def clean_untracked(self) -> None:
        self._run("clean untracked files", "clean", "-fd")

    def stash_push(self) -> None:
        self._run("stash changes", "stash", "push", "-u")

    def stash_pop(self) -> None:
        self._run("restore stashed changes", "stash", "pop")

    def push(self) -> None:
        self._run("push local commits", "push")
