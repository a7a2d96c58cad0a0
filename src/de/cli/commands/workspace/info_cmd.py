import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from de.cli.core import resolve_ordering, resolve_workspace, workspace_label
from de.cli.output import user_output
from de.core.compose import compose_services, find_compose_file
from de.core.context import DeContext
from de.core.workspace import MANIFEST_FILENAME, Project


def _services_cell(project: Project) -> str:
    compose_file = find_compose_file(project)
    if compose_file is None:
        return "[dim]-[/dim]"
    try:
        services = compose_services(compose_file)
    except ValueError:
        return f"[red]invalid {escape(compose_file.name)}[/red]"
    return escape(", ".join(services)) if services else "[dim]none[/dim]"


def _dir_cell(project: Project) -> str:
    if not project.dir.is_dir():
        return f"[red]{escape(str(project.dir))} (missing)[/red]"
    if not (project.dir / MANIFEST_FILENAME).exists():
        return f"{escape(str(project.dir))} [dim](no {MANIFEST_FILENAME})[/dim]"
    return escape(str(project.dir))


@click.command("info")
@click.argument("workspace_name", metavar="WORKSPACE", required=False)
@click.pass_obj
def info_cmd(ctx: DeContext, workspace_name: str | None) -> None:
    """Show a workspace's settings and projects."""
    workspace = resolve_workspace(ctx, workspace_name)
    # Fails on cycles and unknown dependencies, same as start
    resolve_ordering(workspace)

    is_active = ctx.global_config.active_workspace == workspace.name
    user_output(f"Workspace: {workspace_label(workspace)}")
    user_output(f"  Default branch: {workspace.default_branch or '(not set)'}")
    user_output(f"  Active: {'yes' if is_active else 'no'}")
    user_output()
    user_output(click.style(f"Projects: {len(workspace.projects)}", bold=True))

    if not workspace.projects:
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("project", style="cyan", no_wrap=True)
    table.add_column("dir", no_wrap=True)
    table.add_column("depends on", no_wrap=True)
    table.add_column("git", no_wrap=True)
    table.add_column("services")

    for project in workspace.projects:
        if project.git_enabled:
            git = escape(project.default_remote)
        else:
            git = "[dim]disabled[/dim]"
        table.add_row(
            project.id,
            _dir_cell(project),
            escape(", ".join(project.depends_on)) or "-",
            git,
            _services_cell(project),
        )

    console = Console(stderr=True, width=200)
    console.print(table)
