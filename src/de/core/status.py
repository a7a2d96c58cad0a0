"""Read-only overview of a workspace: directories, git state and services.

Nothing here changes a repository or a container. Per-project problems
(unreadable git state, a failing ``docker compose ps``) are recorded on that
project's status instead of being raised.
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path

from de.core.compose import ServiceState, find_compose_file, query_services
from de.core.dirty_state import DirtyStatus
from de.core.errors import ComposeQueryError, GitCommandError, RunnerUnavailableError
from de.core.git import ProjectGit
from de.core.runner.abc import CommandRunner
from de.core.workspace import Project, Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectStatus:
    """Everything ``status`` shows for one project.

    Git and compose fields stay empty when the project directory is missing.
    """

    project_id: str
    dir: Path
    present: bool
    git_enabled: bool
    branch: str | None = None
    dirty: DirtyStatus | None = None
    git_error: str | None = None
    compose_file: Path | None = None
    services: tuple[ServiceState, ...] = ()
    compose_error: str | None = None

    @property
    def downed_services(self) -> tuple[ServiceState, ...]:
        return tuple(s for s in self.services if not s.is_up)


@dataclass(frozen=True)
class StatusSummary:
    missing: int
    uncommitted: int
    unpushed: int
    downed_services: int

    @property
    def all_clear(self) -> bool:
        return not (self.missing or self.uncommitted or self.unpushed or self.downed_services)


def _with_git(runner: CommandRunner, project: Project, status: ProjectStatus) -> ProjectStatus:
    git = ProjectGit(runner, project)
    try:
        dirty = DirtyStatus(
            uncommitted=git.has_uncommitted_changes(), unpushed=git.unpushed_commit_count()
        )
    except GitCommandError as e:
        return replace(status, git_error=e.summary)
    return replace(status, branch=git.current_branch(), dirty=dirty)


def _with_compose(runner: CommandRunner, project: Project, status: ProjectStatus) -> ProjectStatus:
    compose_file = find_compose_file(project)
    if compose_file is None:
        return status
    status = replace(status, compose_file=compose_file)
    try:
        services = query_services(runner, project, compose_file)
    except ComposeQueryError as e:
        return replace(status, compose_error=e.reason)
    except RunnerUnavailableError as e:
        return replace(status, compose_error=str(e))
    return replace(status, services=tuple(services))


def project_status(runner: CommandRunner, project: Project) -> ProjectStatus:
    status = ProjectStatus(
        project_id=project.id,
        dir=project.dir,
        present=project.dir.is_dir(),
        git_enabled=project.git_enabled,
    )
    if not status.present:
        logger.debug("Project %s directory missing: %s", project.id, project.dir)
        return status

    if project.git_enabled:
        status = _with_git(runner, project, status)
    return _with_compose(runner, project, status)


def workspace_status(runner: CommandRunner, workspace: Workspace) -> list[ProjectStatus]:
    """Status of every project, in registration order."""
    return [project_status(runner, project) for project in workspace.projects]


def summarize(statuses: list[ProjectStatus]) -> StatusSummary:
    return StatusSummary(
        missing=sum(1 for s in statuses if not s.present),
        uncommitted=sum(1 for s in statuses if s.dirty is not None and s.dirty.uncommitted),
        unpushed=sum(1 for s in statuses if s.dirty is not None and s.dirty.unpushed),
        downed_services=sum(len(s.downed_services) for s in statuses),
    )
