"""Tests for the top-level list command."""

from click.testing import CliRunner

from de.cli.cli import cli
from de.core.context import DeContext
from de.core.global_config import GlobalConfig
from de.core.workspace import InMemoryWorkspaceStore
from tests.test_utils.workspaces import make_project, make_workspace

SHOP = make_workspace(
    "shop",
    make_project("web", "api"),
    make_project("api", "db", "cache"),
    make_project("db"),
    make_project("cache"),
)


def _ctx() -> DeContext:
    return DeContext.for_test(
        global_config=GlobalConfig(active_workspace="shop"),
        workspace_store=InMemoryWorkspaceStore([SHOP]),
    )


def test_list_ids_in_start_order() -> None:
    result = CliRunner().invoke(cli, ["list", "--ids"], obj=_ctx())

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["db", "cache", "api", "web"]


def test_list_ids_in_stop_order() -> None:
    result = CliRunner().invoke(cli, ["list", "shop", "--ids", "--stop-order"], obj=_ctx())

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["web", "api", "cache", "db"]


def test_list_table_shows_dependencies() -> None:
    result = CliRunner().invoke(cli, ["list", "shop"], obj=_ctx())

    assert result.exit_code == 0, result.output
    assert "start order" in result.output
    assert "cache, db" in result.output
    for project_id in ("web", "api", "db", "cache"):
        assert project_id in result.output


def test_list_stop_order_heading() -> None:
    result = CliRunner().invoke(cli, ["list", "--stop-order"], obj=_ctx())

    assert result.exit_code == 0, result.output
    assert "stop order" in result.output


def test_list_empty_workspace() -> None:
    ctx = DeContext.for_test(workspace_store=InMemoryWorkspaceStore([make_workspace("empty")]))

    result = CliRunner().invoke(cli, ["list", "empty"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "has no projects" in result.output


def test_list_missing_dependency_is_an_error() -> None:
    broken = make_workspace("broken", make_project("api", "db"))
    ctx = DeContext.for_test(workspace_store=InMemoryWorkspaceStore([broken]))

    result = CliRunner().invoke(cli, ["list", "broken"], obj=ctx)

    assert result.exit_code == 1
    assert "Error: Missing dependencies: api -> db (workspace 'broken')" in result.output
