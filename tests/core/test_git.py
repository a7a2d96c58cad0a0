"""Tests for the per-project git command helper."""

import pytest

from de.core.errors import GitCommandError
from de.core.git import ProjectGit, parse_branch_refs
from tests.fakes.runner import FakeCommandRunner, FakeRepo
from tests.test_utils.workspaces import make_project


def test_parse_branch_refs_splits_local_and_remote() -> None:
    output = "\n".join(
        [
            "refs/heads/main",
            "refs/heads/feature/login",
            "refs/remotes/origin/HEAD",
            "refs/remotes/origin/main",
            "refs/remotes/origin/release/1.2",
            "refs/remotes/upstream/other",
        ]
    )

    inventory = parse_branch_refs(output, "origin")

    assert inventory.local == frozenset({"main", "feature/login"})
    assert inventory.remote == frozenset({"main", "release/1.2"})
    assert inventory.names == frozenset({"main", "feature/login", "release/1.2"})


def test_current_branch_and_remote_default() -> None:
    runner = FakeCommandRunner(repos={"api": FakeRepo(current="dev", remote_head="trunk")})
    git = ProjectGit(runner, make_project("api"))

    assert git.current_branch() == "dev"
    assert git.remote_default_branch() == "trunk"


def test_queries_tolerate_missing_repository() -> None:
    git = ProjectGit(FakeCommandRunner(), make_project("api"))

    assert git.current_branch() is None
    assert git.remote_default_branch() is None
    assert git.unpushed_commit_count() == 0


def test_dirty_state_queries() -> None:
    runner = FakeCommandRunner(repos={"api": FakeRepo(uncommitted=True, unpushed=3)})
    git = ProjectGit(runner, make_project("api"))

    assert git.has_uncommitted_changes()
    assert git.unpushed_commit_count() == 3


def test_failed_mutation_raises_with_context() -> None:
    runner = FakeCommandRunner(repos={"api": FakeRepo()})
    git = ProjectGit(runner, make_project("api"))

    with pytest.raises(GitCommandError) as exc_info:
        git.checkout("nope")

    error = exc_info.value
    assert error.command == ("git", "checkout", "nope")
    assert "Failed to checkout branch 'nope'" in str(error)
    assert error.summary.startswith("error: pathspec 'nope'")


def test_summary_without_stderr() -> None:
    error = GitCommandError("fetch remotes", ["git", "fetch"], 128, "", "")

    assert error.summary == "failed to fetch remotes (exit code 128)"


def test_commands_run_in_project_directory() -> None:
    runner = FakeCommandRunner(repos={"api": FakeRepo()})
    project = make_project("api")

    ProjectGit(runner, project).fetch()

    assert runner.calls == [("api", ("git", "fetch", "--all", "--prune"), project.dir)]
