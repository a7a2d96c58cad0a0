"""Tests for the start and stop commands using fakes.

Projects get real compose files under tmp_path so that the compose file lookup
works; docker itself is replaced by FakeCommandRunner.
"""

from pathlib import Path

from click.testing import CliRunner

from de.cli.cli import cli
from de.core.context import DeContext
from de.core.global_config import GlobalConfig, InMemoryConfigStore
from de.core.workspace import InMemoryWorkspaceStore
from tests.fakes.interaction import FakeInteraction
from tests.fakes.runner import FakeCommandRunner, FakeRepo
from tests.test_utils.workspaces import compose_workspace, make_project, make_workspace

SHOP = {"db": (), "cache": (), "api": ("db", "cache"), "web": ("api",)}


def _clean_repos(*project_ids: str) -> dict[str, FakeRepo]:
    return {project_id: FakeRepo() for project_id in project_ids}


def test_start_brings_projects_up_in_dependency_order(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", SHOP)
    fake = FakeCommandRunner()
    config_store = InMemoryConfigStore()
    ctx = DeContext.for_test(
        runner=fake,
        config_store=config_store,
        workspace_store=InMemoryWorkspaceStore([workspace]),
    )

    result = CliRunner().invoke(cli, ["start", "shop"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert set(fake.compose_up[:2]) == {"db", "cache"}
    assert fake.compose_up[2:] == ["api", "web"]
    assert config_store.load().active_workspace == "shop"
    assert "Workspace shop started" in ctx.feedback.texts("success")


def test_start_skips_dependents_of_a_failed_project(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", SHOP)
    fake = FakeCommandRunner(compose_failures={"db": "Error response from daemon: port busy"})
    ctx = DeContext.for_test(runner=fake, workspace_store=InMemoryWorkspaceStore([workspace]))

    result = CliRunner().invoke(cli, ["start", "shop"], obj=ctx)

    assert result.exit_code == 1
    assert fake.compose_up == ["cache"]
    assert "port busy" in result.output
    assert "upstream failure" in result.output
    assert ctx.feedback.texts("success") == []


def test_start_only_project_and_its_dependencies(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", SHOP)
    fake = FakeCommandRunner()
    ctx = DeContext.for_test(runner=fake, workspace_store=InMemoryWorkspaceStore([workspace]))

    result = CliRunner().invoke(cli, ["start", "shop", "--project", "api", "-j", "1"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert set(fake.compose_up) == {"db", "cache", "api"}
    assert fake.compose_up[-1] == "api"


def test_start_unknown_project_is_an_error(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", SHOP)
    fake = FakeCommandRunner()
    ctx = DeContext.for_test(runner=fake, workspace_store=InMemoryWorkspaceStore([workspace]))

    result = CliRunner().invoke(cli, ["start", "shop", "--project", "queue"], obj=ctx)

    assert result.exit_code == 1
    assert "Error: Project 'queue' is not part of workspace 'shop'" in result.output
    assert fake.calls == []


def test_start_project_without_compose_file_still_unblocks_dependents(tmp_path: Path) -> None:
    workspace = make_workspace(
        "shop",
        make_project("db", root=tmp_path),
        make_project("api", "db", root=tmp_path),
    )
    fake = FakeCommandRunner()
    ctx = DeContext.for_test(runner=fake, workspace_store=InMemoryWorkspaceStore([workspace]))

    result = CliRunner().invoke(cli, ["start", "shop"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert fake.calls == []
    assert "no compose file" in result.output


def test_start_without_docker_fails_with_error(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", {"db": ()})
    fake = FakeCommandRunner(unavailable={"docker"})
    config_store = InMemoryConfigStore()
    ctx = DeContext.for_test(
        runner=fake, config_store=config_store, workspace_store=InMemoryWorkspaceStore([workspace])
    )

    result = CliRunner().invoke(cli, ["start", "shop"], obj=ctx)

    assert result.exit_code == 1
    assert "Error: Cannot run 'docker'" in result.output
    assert config_store.load().active_workspace is None


def test_start_cycle_is_reported_before_anything_runs(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "loop", {"a": ("b",), "b": ("a",)})
    fake = FakeCommandRunner()
    ctx = DeContext.for_test(runner=fake, workspace_store=InMemoryWorkspaceStore([workspace]))

    result = CliRunner().invoke(cli, ["start", "loop"], obj=ctx)

    assert result.exit_code == 1
    assert "Circular dependency detected among projects: a, b" in result.output
    assert fake.calls == []


def test_start_without_name_and_no_active_workspace() -> None:
    ctx = DeContext.for_test()

    result = CliRunner().invoke(cli, ["start"], obj=ctx)

    assert result.exit_code == 1
    assert "No workspace given and none is active" in result.output


def test_start_invalid_name_suggests_a_valid_one() -> None:
    ctx = DeContext.for_test()

    result = CliRunner().invoke(cli, ["start", "My Shop"], obj=ctx)

    assert result.exit_code == 1
    assert "Suggested valid name: 'my-shop'" in result.output


def test_start_unknown_workspace_lists_available(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", {"db": ()})
    ctx = DeContext.for_test(workspace_store=InMemoryWorkspaceStore([workspace]))

    result = CliRunner().invoke(cli, ["start", "blog"], obj=ctx)

    assert result.exit_code == 1
    assert "Workspace 'blog' not found - Available: shop" in result.output


def test_start_with_other_active_workspace_can_abort(tmp_path: Path) -> None:
    shop = compose_workspace(tmp_path / "shop", "shop", {"db": ()})
    blog = compose_workspace(tmp_path / "blog", "blog", {"site": ()})
    fake = FakeCommandRunner()
    interaction = FakeInteraction(choices=[0])
    ctx = DeContext.for_test(
        runner=fake,
        interaction=interaction,
        global_config=GlobalConfig(active_workspace="shop"),
        workspace_store=InMemoryWorkspaceStore([shop, blog]),
    )

    result = CliRunner().invoke(cli, ["start", "blog"], obj=ctx)

    assert result.exit_code == 1
    assert "Start aborted by user" in result.output
    assert interaction.prompts == [
        "Workspace 'shop' is already active. How do you wish to proceed?"
    ]
    assert fake.calls == []


def test_start_with_other_active_workspace_replaces_it(tmp_path: Path) -> None:
    shop = compose_workspace(tmp_path / "shop", "shop", {"db": ()})
    blog = compose_workspace(tmp_path / "blog", "blog", {"site": ()})
    fake = FakeCommandRunner(repos=_clean_repos("db", "site"))
    config_store = InMemoryConfigStore(config=GlobalConfig(active_workspace="shop"))
    ctx = DeContext.for_test(
        runner=fake,
        interaction=FakeInteraction(choices=[1]),
        config_store=config_store,
        workspace_store=InMemoryWorkspaceStore([shop, blog]),
    )

    result = CliRunner().invoke(cli, ["start", "blog"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert fake.compose_down == ["db"]
    assert fake.compose_up == ["site"]
    assert config_store.load().active_workspace == "blog"


def test_start_alongside_active_workspace_leaves_it_running(tmp_path: Path) -> None:
    shop = compose_workspace(tmp_path / "shop", "shop", {"db": ()})
    blog = compose_workspace(tmp_path / "blog", "blog", {"site": ()})
    fake = FakeCommandRunner()
    ctx = DeContext.for_test(
        runner=fake,
        interaction=FakeInteraction(choices=[2]),
        global_config=GlobalConfig(active_workspace="shop"),
        workspace_store=InMemoryWorkspaceStore([shop, blog]),
    )

    result = CliRunner().invoke(cli, ["start", "blog"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert fake.compose_down == []
    assert fake.compose_up == ["site"]


def test_start_dry_run_runs_nothing_and_keeps_active_workspace(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", {"db": (), "api": ("db",)})
    fake = FakeCommandRunner()
    config_store = InMemoryConfigStore()
    ctx = DeContext.for_test(
        runner=fake,
        config_store=config_store,
        workspace_store=InMemoryWorkspaceStore([workspace]),
        dry_run=True,
    )

    result = CliRunner().invoke(cli, ["start", "shop"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert fake.calls == []
    assert "Would run in db: docker compose" in result.output
    assert config_store.load().active_workspace is None


def test_stop_reverses_start_order_and_clears_active(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", SHOP)
    fake = FakeCommandRunner(repos=_clean_repos(*SHOP))
    config_store = InMemoryConfigStore(config=GlobalConfig(active_workspace="shop"))
    ctx = DeContext.for_test(
        runner=fake,
        config_store=config_store,
        workspace_store=InMemoryWorkspaceStore([workspace]),
    )

    result = CliRunner().invoke(cli, ["stop"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert fake.compose_down[:2] == ["web", "api"]
    assert set(fake.compose_down[2:]) == {"db", "cache"}
    assert config_store.load().active_workspace is None
    assert "Workspace shop stopped" in ctx.feedback.texts("success")


def test_stop_with_dirty_project_asks_and_can_be_declined(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", {"db": (), "api": ("db",)})
    repos = _clean_repos("db", "api")
    repos["api"].uncommitted = True
    fake = FakeCommandRunner(repos=repos)
    interaction = FakeInteraction(confirms=[False])
    config_store = InMemoryConfigStore(config=GlobalConfig(active_workspace="shop"))
    ctx = DeContext.for_test(
        runner=fake,
        interaction=interaction,
        config_store=config_store,
        workspace_store=InMemoryWorkspaceStore([workspace]),
    )

    result = CliRunner().invoke(cli, ["stop", "shop"], obj=ctx)

    assert result.exit_code == 0
    assert "Aborting stop operation." in result.output
    assert interaction.prompts == ["Uncommitted or unpushed changes detected. Stop anyway?"]
    assert "  api: uncommitted changes" in ctx.feedback.texts("warning")
    assert fake.compose_down == []
    assert config_store.load().active_workspace == "shop"


def test_stop_with_dirty_project_confirmed(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", {"db": ()})
    fake = FakeCommandRunner(repos={"db": FakeRepo(unpushed=2)})
    ctx = DeContext.for_test(
        runner=fake,
        interaction=FakeInteraction(confirms=[True]),
        workspace_store=InMemoryWorkspaceStore([workspace]),
    )

    result = CliRunner().invoke(cli, ["stop", "shop"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert fake.compose_down == ["db"]


def test_stop_yes_skips_the_git_check(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", {"db": ()})
    fake = FakeCommandRunner(repos={"db": FakeRepo(uncommitted=True)})
    ctx = DeContext.for_test(runner=fake, workspace_store=InMemoryWorkspaceStore([workspace]))

    result = CliRunner().invoke(cli, ["stop", "shop", "--yes"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert fake.commands_for("db") == [
        ("docker", "compose", "-f", str(tmp_path / "db" / "docker-compose.yml"), "down")
    ]


def test_stop_failure_skips_what_it_depends_on(tmp_path: Path) -> None:
    workspace = compose_workspace(tmp_path, "shop", {"db": (), "api": ("db",)})
    fake = FakeCommandRunner(compose_failures={"api": "no such service"})
    ctx = DeContext.for_test(runner=fake, workspace_store=InMemoryWorkspaceStore([workspace]))

    result = CliRunner().invoke(cli, ["stop", "shop", "-y"], obj=ctx)

    assert result.exit_code == 1
    assert fake.compose_down == []
    assert "upstream failure" in result.output
