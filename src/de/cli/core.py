"""Shared helpers for CLI commands: workspace lookup and ordering."""

from dataclasses import dataclass

import click

from de.cli.ensure import Ensure
from de.core import dependency_graph
from de.core.context import DeContext
from de.core.dependency_graph import Ordering
from de.core.dirty_state import DirtyStatus
from de.core.errors import GitCommandError, GraphError
from de.core.git import ProjectGit
from de.core.workspace import Workspace


def resolve_workspace(ctx: DeContext, workspace_name: str | None) -> Workspace:
    """Load the named workspace, or the active one when no name is given."""
    if workspace_name is None:
        workspace_name = Ensure.not_none(
            ctx.global_config.active_workspace,
            "No workspace given and none is active - "
            "Pass a workspace name or run 'de start <workspace>'",
        )

    name = Ensure.valid_name(workspace_name)
    if not ctx.workspace_store.exists(name):
        available = ctx.workspace_store.list_names()
        hint = f" - Available: {', '.join(available)}" if available else ""
        Ensure.fail(f"Workspace '{name}' not found{hint}")

    try:
        return ctx.workspace_store.load(name)
    except (FileNotFoundError, ValueError) as e:
        Ensure.fail(str(e))


def resolve_ordering(workspace: Workspace) -> Ordering:
    try:
        return dependency_graph.resolve(workspace.projects)
    except GraphError as e:
        Ensure.fail(f"{e} (workspace '{workspace.name}')")


@dataclass(frozen=True)
class ProjectGitStatus:
    project_id: str
    status: DirtyStatus | None
    error: str | None = None


def collect_git_status(ctx: DeContext, workspace: Workspace) -> list[ProjectGitStatus]:
    """Dirty state of every git-enabled project.

    Projects whose status cannot be read are reported with ``error`` set
    instead of failing the whole command.
    """
    statuses: list[ProjectGitStatus] = []
    for project in workspace.git_projects:
        git = ProjectGit(ctx.runner, project)
        try:
            status = DirtyStatus(
                uncommitted=git.has_uncommitted_changes(), unpushed=git.unpushed_commit_count()
            )
        except GitCommandError as e:
            statuses.append(ProjectGitStatus(project.id, None, e.summary))
            continue
        statuses.append(ProjectGitStatus(project.id, status))
    return statuses


def workspace_label(workspace: Workspace) -> str:
    return click.style(workspace.name, fg="cyan", bold=True)
