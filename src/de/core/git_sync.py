"""Workspace-wide git operations: ``switch`` and ``base-reset``.

Both walk the workspace's git-enabled projects one at a time:

    Init -> BranchResolving (switch only)
         -> per project: Fetch -> DirtyCheck -> Stash | Reset | Skip | Push
                         -> Checkout -> (Reset -> Clean for base-reset)
         -> Aggregated

A failing project is recorded and the loop moves on. Aborting from the dirty
check ends the loop: every project not yet processed is skipped without a
single command being run for it.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from de.core import branch_matcher, dirty_state
from de.core.branch_matcher import ResolvedBranch
from de.core.dirty_state import DirtyDecision, DirtyPolicy, DirtyStatus
from de.core.errors import GitCommandError
from de.core.git import BranchInventory, ProjectGit
from de.core.interaction import Interaction
from de.core.runner.abc import CommandRunner
from de.core.workspace import Project, Workspace

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"
GIT_DISABLED = "git disabled"
ABORTED = "aborted"
UNPUSHED_COMMITS = "skipped (unpushed commits cannot be stashed; push or force-reset)"


class SyncOperation(Enum):
    SWITCH = "switch"
    BASE_RESET = "base-reset"


class SyncStatus(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    ABORTED = "aborted"
    FAILED = "failed"


class SyncState(Enum):
    """Progress points reported through the ``on_event`` callback."""

    INIT = "init"
    BRANCH_RESOLVING = "branch-resolving"
    FETCH = "fetch"
    DIRTY_CHECK = "dirty-check"
    STASH = "stash"
    RESET = "reset"
    SKIP = "skip"
    PUSH = "push"
    CHECKOUT = "checkout"
    CLEAN = "clean"
    AGGREGATED = "aggregated"


@dataclass(frozen=True)
class SyncOutcome:
    """Result for one project.

    Fields:
        project_id: Project the outcome belongs to
        status: What happened
        reason: Why it was skipped or failed, or a note on success
        branch: Branch checked out at the end (success only)
    """

    project_id: str
    status: SyncStatus
    reason: str | None = None
    branch: str | None = None


@dataclass(frozen=True)
class SyncReport:
    """Everything one switch/base-reset run did, in workspace order."""

    operation: SyncOperation
    target_branch: str | None
    outcomes: tuple[SyncOutcome, ...]
    aborted: bool = False

    def outcome_for(self, project_id: str) -> SyncOutcome:
        for outcome in self.outcomes:
            if outcome.project_id == project_id:
                return outcome
        raise KeyError(project_id)

    @property
    def failed(self) -> tuple[SyncOutcome, ...]:
        return tuple(o for o in self.outcomes if o.status == SyncStatus.FAILED)

    @property
    def exit_code(self) -> int:
        if self.aborted or self.failed:
            return 1
        return 0


# (project id or None for workspace-level events, state, message)
EventCallback = Callable[[str | None, SyncState, str], None]


class _ProjectFailed(Exception):
    """Ends processing of one project with a FAILED outcome."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class GitSyncEngine:
    """Drives ``switch`` and ``base-reset`` across a workspace.

    The engine never prints. Progress goes to ``on_event``; decisions that
    need a human go to ``interaction``.
    """

    def __init__(
        self,
        runner: CommandRunner,
        interaction: Interaction,
        *,
        on_dirty: DirtyPolicy = DirtyPolicy.PROMPT,
        on_event: EventCallback | None = None,
    ) -> None:
        self._runner = runner
        self._interaction = interaction
        self._on_dirty = on_dirty
        self._on_event = on_event

    def _emit(self, project_id: str | None, state: SyncState, message: str) -> None:
        logger.debug("[%s] %s: %s", project_id or "*", state.value, message)
        if self._on_event is not None:
            self._on_event(project_id, state, message)

    def _partition(self, workspace: Workspace) -> tuple[list[Project], dict[str, SyncOutcome]]:
        self._emit(None, SyncState.INIT, f"workspace {workspace.name}")
        enabled: list[Project] = []
        outcomes: dict[str, SyncOutcome] = {}
        for project in workspace.projects:
            if project.git_enabled:
                enabled.append(project)
            else:
                outcomes[project.id] = SyncOutcome(project.id, SyncStatus.SKIPPED, GIT_DISABLED)
        return enabled, outcomes

    def _report(
        self,
        operation: SyncOperation,
        workspace: Workspace,
        target_branch: str | None,
        outcomes: dict[str, SyncOutcome],
        aborted: bool,
    ) -> SyncReport:
        report = SyncReport(
            operation=operation,
            target_branch=target_branch,
            outcomes=tuple(outcomes[p.id] for p in workspace.projects if p.id in outcomes),
            aborted=aborted,
        )
        failed = len(report.failed)
        self._emit(None, SyncState.AGGREGATED, f"{len(report.outcomes)} projects, {failed} failed")
        return report

    # Steps shared by both operations

    def _fetch(self, project: Project, git: ProjectGit) -> None:
        self._emit(project.id, SyncState.FETCH, "fetching")
        try:
            git.fetch()
        except GitCommandError as e:
            raise _ProjectFailed(e.summary) from e

    def _dirty_decision(
        self, project: Project, git: ProjectGit
    ) -> tuple[DirtyDecision, DirtyStatus]:
        try:
            status = DirtyStatus(
                uncommitted=git.has_uncommitted_changes(), unpushed=git.unpushed_commit_count()
            )
        except GitCommandError as e:
            raise _ProjectFailed(e.summary) from e
        self._emit(project.id, SyncState.DIRTY_CHECK, status.describe())
        decision = dirty_state.resolve(project.id, status, self._on_dirty, self._interaction)
        return decision, status

    def _apply_decision(
        self, project: Project, git: ProjectGit, decision: DirtyDecision, status: DirtyStatus
    ) -> bool:
        """Carry out a non-terminal decision. Returns whether changes were stashed."""
        try:
            if decision == DirtyDecision.STASH and status.uncommitted:
                self._emit(project.id, SyncState.STASH, "stashing local changes")
                git.stash_push()
                return True
            if decision == DirtyDecision.FORCE_RESET:
                self._emit(project.id, SyncState.RESET, "discarding local changes")
                git.reset_hard()
            elif decision == DirtyDecision.PUSH:
                self._emit(project.id, SyncState.PUSH, "pushing local commits")
                git.push()
        except GitCommandError as e:
            raise _ProjectFailed(e.summary) from e
        return False

    def _fallback_branch(self, git: ProjectGit, workspace: Workspace, explicit: str | None) -> str:
        if explicit:
            return explicit
        if workspace.default_branch:
            return workspace.default_branch
        return git.remote_default_branch() or DEFAULT_BRANCH

    def _run_projects(
        self,
        projects: list[Project],
        outcomes: dict[str, SyncOutcome],
        process: Callable[[Project, ProjectGit], SyncOutcome | None],
    ) -> bool:
        """Run ``process`` per project until one aborts. Returns whether aborted.

        ``process`` returns None when the project chose to abort.
        """
        aborted = False
        for project in projects:
            if project.id in outcomes:
                continue
            if aborted:
                outcomes[project.id] = SyncOutcome(project.id, SyncStatus.SKIPPED, ABORTED)
                continue

            git = ProjectGit(self._runner, project)
            try:
                outcome = process(project, git)
            except _ProjectFailed as e:
                outcome = SyncOutcome(project.id, SyncStatus.FAILED, e.reason)

            if outcome is None:
                aborted = True
                outcome = SyncOutcome(project.id, SyncStatus.ABORTED, "aborted by user")
            outcomes[project.id] = outcome
        return aborted

    # switch

    def switch(
        self, workspace: Workspace, fragment: str, fallback: str | None = None
    ) -> SyncReport:
        """Check out the branch matching ``fragment`` in every git project.

        Projects that lack the resolved branch check out the fallback branch:
        ``fallback``, else the workspace default branch, else the remote's
        HEAD branch, else ``main``.

        Raises:
            NoBranchFoundError: If no project has a matching branch
            AmbiguousBranchError: If the interaction cannot pick a branch
            RunnerUnavailableError: If git cannot be launched
        """
        projects, outcomes = self._partition(workspace)

        self._emit(None, SyncState.BRANCH_RESOLVING, f"matching '{fragment}'")
        inventories: dict[str, BranchInventory] = {}
        for project in projects:
            try:
                inventories[project.id] = ProjectGit(self._runner, project).list_branches()
            except GitCommandError as e:
                outcomes[project.id] = SyncOutcome(project.id, SyncStatus.FAILED, e.summary)

        resolved = branch_matcher.resolve_interactive(
            fragment,
            {project_id: inventory.names for project_id, inventory in inventories.items()},
            self._interaction,
        )
        logger.debug("Resolved '%s' to '%s'", fragment, resolved.name)

        def process(project: Project, git: ProjectGit) -> SyncOutcome | None:
            return self._switch_project(
                project, git, workspace, resolved, inventories[project.id], fallback
            )

        aborted = self._run_projects(projects, outcomes, process)
        return self._report(SyncOperation.SWITCH, workspace, resolved.name, outcomes, aborted)

    def _switch_project(
        self,
        project: Project,
        git: ProjectGit,
        workspace: Workspace,
        resolved: ResolvedBranch,
        inventory: BranchInventory,
        fallback: str | None,
    ) -> SyncOutcome | None:
        self._fetch(project, git)

        decision, status = self._dirty_decision(project, git)
        if decision == DirtyDecision.ABORT:
            return None
        if decision == DirtyDecision.SKIP:
            self._emit(project.id, SyncState.SKIP, "skipped")
            return SyncOutcome(project.id, SyncStatus.SKIPPED, f"skipped ({status.describe()})")
        stashed = self._apply_decision(project, git, decision, status)

        note = None
        if project.id in resolved.projects_with_branch:
            target = resolved.name
        else:
            target = self._fallback_branch(git, workspace, fallback)
            note = f"'{resolved.name}' not found, using fallback"

        self._emit(project.id, SyncState.CHECKOUT, f"checking out {target}")
        try:
            if target in inventory.local:
                git.checkout(target)
            elif target in inventory.remote:
                git.checkout_tracking(target)
            else:
                message = f"branch '{target}' not found"
                if stashed:
                    message += "; local changes remain stashed"
                raise _ProjectFailed(message)
        except GitCommandError as e:
            message = e.summary
            if stashed:
                message += "; local changes remain stashed"
            raise _ProjectFailed(message) from e

        if stashed:
            self._emit(project.id, SyncState.STASH, "restoring stashed changes")
            try:
                git.stash_pop()
            except GitCommandError as e:
                raise _ProjectFailed(
                    f"checked out {target} but could not restore stash: {e.summary}"
                ) from e

        return SyncOutcome(project.id, SyncStatus.SUCCESS, note, branch=target)

    # base-reset

    def base_reset(self, workspace: Workspace, base_branch: str | None = None) -> SyncReport:
        """Put every git project on a pristine copy of its base branch.

        The base branch is ``base_branch``, else the workspace default branch,
        else the remote's HEAD branch, else ``main``. Each project ends up at
        ``<remote>/<branch>`` with untracked files removed. Projects with unpushed
        commits are never reset under the stash decision; they are skipped.

        Raises:
            RunnerUnavailableError: If git cannot be launched
        """
        projects, outcomes = self._partition(workspace)
        explicit = base_branch or workspace.default_branch

        aborted = self._run_projects(
            projects,
            outcomes,
            lambda project, git: self._reset_project(project, git, workspace, base_branch),
        )
        return self._report(SyncOperation.BASE_RESET, workspace, explicit, outcomes, aborted)

    def _reset_project(
        self, project: Project, git: ProjectGit, workspace: Workspace, base_branch: str | None
    ) -> SyncOutcome | None:
        self._fetch(project, git)

        decision, status = self._dirty_decision(project, git)
        if decision == DirtyDecision.ABORT:
            return None
        if decision == DirtyDecision.SKIP:
            self._emit(project.id, SyncState.SKIP, "skipped")
            return SyncOutcome(project.id, SyncStatus.SKIPPED, f"skipped ({status.describe()})")
        if decision == DirtyDecision.STASH and status.unpushed:
            # A stash cannot hold commits and the reset would drop them
            self._emit(project.id, SyncState.SKIP, "skipped, unpushed commits")
            return SyncOutcome(project.id, SyncStatus.SKIPPED, UNPUSHED_COMMITS)
        stashed = self._apply_decision(project, git, decision, status)

        branch = self._fallback_branch(git, workspace, base_branch)
        try:
            inventory = git.list_branches()
            self._emit(project.id, SyncState.CHECKOUT, f"checking out {branch}")
            if branch in inventory.local:
                git.checkout(branch)
            elif branch in inventory.remote:
                git.checkout_from_remote(branch)
            else:
                raise _ProjectFailed(f"branch '{branch}' not found locally or on {git.remote}")

            self._emit(project.id, SyncState.RESET, f"resetting to {git.remote}/{branch}")
            git.reset_to_remote(branch)
            self._emit(project.id, SyncState.CLEAN, "removing untracked files")
            git.clean_untracked()
        except GitCommandError as e:
            raise _ProjectFailed(e.summary) from e

        note = "local changes stashed" if stashed else None
        return SyncOutcome(project.id, SyncStatus.SUCCESS, note, branch=branch)
