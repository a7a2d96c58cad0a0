"""Tests for `de git switch` and `de git base-reset` using FakeCommandRunner."""

from click.testing import CliRunner

from de.cli.cli import cli
from de.core.context import DeContext
from de.core.global_config import GlobalConfig
from de.core.workspace import InMemoryWorkspaceStore, Workspace
from tests.fakes.interaction import FakeInteraction
from tests.fakes.runner import FakeCommandRunner, FakeRepo
from tests.test_utils.workspaces import make_project, make_workspace


def _shop(default_branch: str | None = None) -> Workspace:
    return make_workspace(
        "shop",
        make_project("api"),
        make_project("web", "api"),
        make_project("docs", git_enabled=False),
        default_branch=default_branch,
    )


def _context(
    repos: dict[str, FakeRepo],
    workspace: Workspace | None = None,
    interaction: FakeInteraction | None = None,
) -> tuple[DeContext, FakeCommandRunner]:
    runner = FakeCommandRunner(repos=repos)
    ctx = DeContext.for_test(
        runner=runner,
        interaction=interaction,
        global_config=GlobalConfig(active_workspace="shop"),
        workspace_store=InMemoryWorkspaceStore([workspace or _shop()]),
    )
    return ctx, runner


def test_switch_fragment_with_fallback_for_projects_without_the_branch() -> None:
    repos = {
        "api": FakeRepo(remote={"main", "feature/login"}),
        "web": FakeRepo(),
    }
    ctx, runner = _context(repos)

    result = CliRunner().invoke(cli, ["git", "switch", "login"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert repos["api"].current == "feature/login"
    assert ("git", "checkout", "-b", "feature/login", "--track", "origin/feature/login") in (
        runner.commands_for("api")
    )
    assert repos["web"].current == "main"
    assert "docs" not in runner.projects_called()
    assert "git disabled" in result.output
    assert "Switched to feature/login" in ctx.feedback.texts("success")


def test_switch_uses_workspace_default_branch_as_fallback() -> None:
    repos = {
        "api": FakeRepo(local={"main", "dev", "feature/cart"}),
        "web": FakeRepo(local={"main", "dev"}),
    }
    ctx, _ = _context(repos, workspace=_shop(default_branch="dev"))

    result = CliRunner().invoke(cli, ["git", "switch", "feature/cart"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert repos["api"].current == "feature/cart"
    assert repos["web"].current == "dev"


def test_switch_explicit_fallback_wins() -> None:
    repos = {
        "api": FakeRepo(local={"main", "feature/cart"}),
        "web": FakeRepo(local={"main", "staging"}),
    }
    ctx, _ = _context(repos, workspace=_shop(default_branch="dev"))

    result = CliRunner().invoke(
        cli, ["git", "switch", "feature/cart", "--fallback", "staging"], obj=ctx
    )

    assert result.exit_code == 0, result.output
    assert repos["web"].current == "staging"


def test_switch_no_matching_branch_is_an_error() -> None:
    ctx, runner = _context({"api": FakeRepo(), "web": FakeRepo()})

    result = CliRunner().invoke(cli, ["git", "switch", "zzz"], obj=ctx)

    assert result.exit_code == 1
    assert "Error: No branch matching 'zzz' found in any project" in result.output
    assert all(command[1] == "for-each-ref" for command in runner.commands_for("api"))


def test_switch_ambiguous_fragment_asks_which_branch() -> None:
    repos = {
        "api": FakeRepo(remote={"main", "feature/login", "feature/logout"}),
        "web": FakeRepo(),
    }
    interaction = FakeInteraction(choices=[1])
    ctx, _ = _context(repos, interaction=interaction)

    result = CliRunner().invoke(cli, ["git", "switch", "log"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert interaction.prompts == ["Several branches match 'log':"]
    assert repos["api"].current == "feature/logout"


def test_switch_on_dirty_stash_restores_changes() -> None:
    repos = {
        "api": FakeRepo(local={"main", "dev"}),
        "web": FakeRepo(local={"main", "dev"}, uncommitted=True),
    }
    ctx, runner = _context(repos)

    result = CliRunner().invoke(cli, ["git", "switch", "dev", "--on-dirty", "stash"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert repos["web"].current == "dev"
    assert repos["web"].uncommitted
    assert repos["web"].stash_depth == 0
    web_commands = runner.commands_for("web")
    assert web_commands.index(("git", "stash", "push", "-u")) < web_commands.index(
        ("git", "checkout", "dev")
    )
    assert web_commands[-1] == ("git", "stash", "pop")


def test_switch_on_dirty_abort_stops_remaining_projects() -> None:
    repos = {
        "api": FakeRepo(local={"main", "dev"}, uncommitted=True),
        "web": FakeRepo(local={"main", "dev"}),
    }
    ctx, runner = _context(repos)

    result = CliRunner().invoke(cli, ["git", "switch", "dev", "--on-dirty", "abort"], obj=ctx)

    assert result.exit_code == 1
    assert repos["api"].current == "main"
    assert repos["web"].current == "main"
    assert [command[1] for command in runner.commands_for("web")] == ["for-each-ref"]
    assert "Aborted: remaining projects were not switched" in ctx.feedback.texts("warning")


def test_switch_prompts_for_dirty_project() -> None:
    repos = {
        "api": FakeRepo(local={"main", "dev"}, uncommitted=True),
        "web": FakeRepo(local={"main", "dev"}),
    }
    interaction = FakeInteraction(choices=["skip"])
    ctx, _ = _context(repos, interaction=interaction)

    result = CliRunner().invoke(cli, ["git", "switch", "dev"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert interaction.prompts == ["api has uncommitted changes. What should happen?"]
    assert repos["api"].current == "main"
    assert repos["web"].current == "dev"
    assert "skipped (uncommitted changes)" in result.output


def test_switch_failed_project_sets_exit_code() -> None:
    repos = {
        "api": FakeRepo(local={"main", "dev"}, failures={"fetch": "fatal: could not read"}),
        "web": FakeRepo(local={"main", "dev"}),
    }
    ctx, _ = _context(repos)

    result = CliRunner().invoke(cli, ["git", "switch", "dev"], obj=ctx)

    assert result.exit_code == 1
    assert repos["web"].current == "dev"
    assert "fatal: could not read" in result.output


def test_switch_rejects_unknown_on_dirty_policy() -> None:
    ctx, runner = _context({"api": FakeRepo(), "web": FakeRepo()})

    result = CliRunner().invoke(cli, ["git", "switch", "main", "--on-dirty", "yolo"], obj=ctx)

    assert result.exit_code == 2
    assert runner.calls == []


def test_base_reset_to_remote_head_branch() -> None:
    repos = {
        "api": FakeRepo(local={"main", "feature/cart"}, current="feature/cart"),
        "web": FakeRepo(),
    }
    ctx, runner = _context(repos)

    result = CliRunner().invoke(cli, ["git", "base-reset"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert repos["api"].current == "main"
    assert repos["api"].cleaned == 1
    assert repos["web"].cleaned == 1
    assert runner.commands_for("api")[-2:] == [
        ("git", "reset", "--hard", "origin/main"),
        ("git", "clean", "-fd"),
    ]
    assert "Base reset complete" in ctx.feedback.texts("success")


def test_base_reset_explicit_branch_missing_everywhere_fails() -> None:
    ctx, _ = _context({"api": FakeRepo(), "web": FakeRepo()})

    result = CliRunner().invoke(cli, ["git", "base-reset", "release"], obj=ctx)

    assert result.exit_code == 1
    assert "branch 'release' not found locally or on origin" in result.output


def test_base_reset_force_discards_local_changes() -> None:
    repos = {
        "api": FakeRepo(uncommitted=True, unpushed=2),
        "web": FakeRepo(),
    }
    ctx, _ = _context(repos)

    result = CliRunner().invoke(cli, ["git", "base-reset", "--on-dirty", "force"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert not repos["api"].uncommitted
    assert repos["api"].unpushed == 0
    assert repos["api"].stash_depth == 0


def test_base_reset_named_workspace() -> None:
    blog = make_workspace("blog", make_project("site"))
    repos = {"site": FakeRepo()}
    runner = FakeCommandRunner(repos=repos)
    ctx = DeContext.for_test(runner=runner, workspace_store=InMemoryWorkspaceStore([blog]))

    result = CliRunner().invoke(cli, ["git", "base-reset", "-w", "blog"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert repos["site"].cleaned == 1
