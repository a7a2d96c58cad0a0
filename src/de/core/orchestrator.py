"""Wave-based execution of per-project start/stop actions.

The ordering is cut into waves: every project of a wave has all of its
constraints (dependencies when starting, dependents when stopping) satisfied
by earlier waves. Projects of one wave run concurrently; the next wave starts
only once the current one has fully resolved.
"""

import logging
from collections.abc import Callable, Collection
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum

from de.core.dependency_graph import Ordering
from de.core.errors import OrchestrationError

logger = logging.getLogger(__name__)

UPSTREAM_FAILURE = "upstream failure"


class Direction(Enum):
    """Which way an ordering is walked."""

    START = "start"
    STOP = "stop"


class ActionStatus(Enum):
    """Result of one project's action within a run."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ActionResult:
    """What a project action reports back.

    Fields:
        success: Whether the action did its job
        message: Failure reason, or a note such as "no compose file"
    """

    success: bool
    message: str | None = None


ProjectAction = Callable[[str], ActionResult]


@dataclass(frozen=True)
class ActionOutcome:
    """Final state of one project after a run."""

    project_id: str
    status: ActionStatus
    wave: int
    message: str | None = None


@dataclass(frozen=True)
class OrchestrationReport:
    """Everything a start/stop run did, in traversal order."""

    direction: Direction
    waves: tuple[tuple[str, ...], ...]
    outcomes: tuple[ActionOutcome, ...]

    def outcome_for(self, project_id: str) -> ActionOutcome:
        for outcome in self.outcomes:
            if outcome.project_id == project_id:
                return outcome
        raise KeyError(project_id)

    @property
    def failed(self) -> tuple[ActionOutcome, ...]:
        return tuple(o for o in self.outcomes if o.status == ActionStatus.FAILED)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)


def _constraints(
    ordering: Ordering, direction: Direction, included: Collection[str]
) -> dict[str, frozenset[str]]:
    """Projects that must finish before each project, restricted to ``included``."""
    constraints: dict[str, frozenset[str]] = {}
    for project_id in included:
        if direction == Direction.START:
            upstream = ordering.dependencies.get(project_id, frozenset())
        else:
            upstream = ordering.dependents_of(project_id)
        constraints[project_id] = frozenset(p for p in upstream if p in included)
    return constraints


def compute_waves(
    ordering: Ordering, direction: Direction, only: Collection[str] | None = None
) -> list[list[str]]:
    """Partition the ordering into waves.

    Args:
        ordering: Resolved ordering
        direction: START walks ``ordering.start``, STOP walks ``ordering.stop``
        only: Restrict the run to these project ids (None = all)

    Returns:
        Waves in execution order; each wave keeps the ordering's sequence
    """
    sequence = ordering.start if direction == Direction.START else ordering.stop
    included = [p for p in sequence if only is None or p in only]
    constraints = _constraints(ordering, direction, set(included))

    # The sequence is topological for this direction, so constraints are
    # always leveled before the projects that wait on them.
    level: dict[str, int] = {}
    for project_id in included:
        level[project_id] = max((level[c] + 1 for c in constraints[project_id]), default=0)

    waves: list[list[str]] = [[] for _ in range(max(level.values(), default=-1) + 1)]
    for project_id in included:
        waves[level[project_id]].append(project_id)
    return waves


def _invoke(action: ProjectAction, project_id: str) -> ActionResult:
    try:
        return action(project_id)
    except OrchestrationError:
        raise
    except RuntimeError as e:
        return ActionResult(success=False, message=str(e))


def run(
    ordering: Ordering,
    direction: Direction,
    action: ProjectAction,
    *,
    only: Collection[str] | None = None,
    max_workers: int | None = None,
) -> OrchestrationReport:
    """Execute ``action`` for every project, wave by wave.

    A failed project does not stop its siblings, but anything waiting on it
    (transitively) is skipped with reason ``UPSTREAM_FAILURE`` and never
    dispatched.

    Args:
        ordering: Resolved ordering
        direction: Start or stop
        action: Called with a project id; returns an ActionResult. Raising
            RuntimeError counts as a failure of that project.
        only: Restrict the run to these project ids (None = all)
        max_workers: Upper bound on concurrent actions within a wave

    Returns:
        OrchestrationReport listing every included project

    Raises:
        OrchestrationError: If an action signals that the run cannot continue
            (for example the command runner is unusable)
    """
    waves = compute_waves(ordering, direction, only)
    included = {p for wave in waves for p in wave}
    constraints = _constraints(ordering, direction, included)

    outcomes: dict[str, ActionOutcome] = {}
    for wave_index, wave in enumerate(waves):
        runnable: list[str] = []
        for project_id in wave:
            blocked_by = sorted(
                c for c in constraints[project_id] if outcomes[c].status != ActionStatus.SUCCESS
            )
            if blocked_by:
                logger.debug("Skipping %s, blocked by %s", project_id, blocked_by)
                outcomes[project_id] = ActionOutcome(
                    project_id=project_id,
                    status=ActionStatus.SKIPPED,
                    wave=wave_index,
                    message=UPSTREAM_FAILURE,
                )
            else:
                runnable.append(project_id)

        if not runnable:
            continue

        logger.debug("Dispatching wave %d: %s", wave_index, runnable)
        workers = len(runnable) if max_workers is None else max(1, min(max_workers, len(runnable)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures: dict[str, Future[ActionResult]] = {
                project_id: executor.submit(_invoke, action, project_id) for project_id in runnable
            }
            for project_id in runnable:
                # Re-raises OrchestrationError; the pool still drains the wave on exit
                result = futures[project_id].result()
                outcomes[project_id] = ActionOutcome(
                    project_id=project_id,
                    status=ActionStatus.SUCCESS if result.success else ActionStatus.FAILED,
                    wave=wave_index,
                    message=result.message,
                )

    sequence = ordering.start if direction == Direction.START else ordering.stop
    return OrchestrationReport(
        direction=direction,
        waves=tuple(tuple(wave) for wave in waves),
        outcomes=tuple(outcomes[p] for p in sequence if p in outcomes),
    )
