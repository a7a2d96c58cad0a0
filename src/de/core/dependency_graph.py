"""Dependency graph resolution for workspace projects.

Turns each project's ``depends_on`` list into a start order (dependencies
first) and its exact reverse, the stop order. Pure: no I/O, no config access.
"""

import heapq
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from de.core.errors import CycleDetectedError, DuplicateProjectError, MissingDependencyError
from de.core.workspace import Project

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ordering:
    """Resolved start and stop order of a set of projects.

    ``stop`` is computed once from ``start`` at resolution time, so stopping
    always exactly undoes starting.

    Fields:
        start: Project ids, every dependency before its dependents
        stop: ``start`` reversed
        dependencies: Project id to the ids it depends on
    """

    start: tuple[str, ...]
    stop: tuple[str, ...]
    dependencies: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def dependents_of(self, project_id: str) -> frozenset[str]:
        """Projects that directly depend on ``project_id``."""
        return frozenset(
            other for other, deps in self.dependencies.items() if project_id in deps
        )

    def __len__(self) -> int:
        return len(self.start)


def _check_references(projects: Sequence[Project]) -> None:
    seen: set[str] = set()
    for project in projects:
        if project.id in seen:
            raise DuplicateProjectError(project.id)
        seen.add(project.id)

    missing = [
        (project.id, dep) for project in projects for dep in project.depends_on if dep not in seen
    ]
    if missing:
        raise MissingDependencyError(missing)


def _cycle_members(
    remaining: set[str], dependencies: Mapping[str, frozenset[str]], index: Mapping[str, int]
) -> list[str]:
    """Narrow the never-extracted nodes down to those on or between cycles.

    Kahn's algorithm also leaves behind nodes that merely depend on a cycle.
    Peeling off nodes that nothing else in the residual graph depends on
    removes those, leaving only nodes that are part of a cycle.
    """
    residual = set(remaining)
    changed = True
    while changed:
        changed = False
        for node in sorted(residual, key=index.__getitem__):
            has_dependent = any(node in dependencies[other] for other in residual)
            if not has_dependent:
                residual.discard(node)
                changed = True
    # Every cycle keeps its members, so residual is never empty here
    return sorted(residual, key=index.__getitem__)


def resolve(projects: Sequence[Project]) -> Ordering:
    """Resolve the start and stop order of ``projects``.

    Uses Kahn's algorithm. Among projects whose dependencies are all placed,
    the one registered first goes next, so the result is deterministic.

    Args:
        projects: Projects in registration order

    Returns:
        Ordering with start and stop sequences

    Raises:
        DuplicateProjectError: If two projects share an id
        MissingDependencyError: If a project depends on an unknown id
        CycleDetectedError: If the dependencies contain a cycle (including a
            project that depends on itself)
    """
    _check_references(projects)

    index = {project.id: position for position, project in enumerate(projects)}
    dependencies = {project.id: frozenset(project.depends_on) for project in projects}

    in_degree = {project_id: len(deps) for project_id, deps in dependencies.items()}
    dependents: dict[str, list[str]] = {project_id: [] for project_id in dependencies}
    for project_id, deps in dependencies.items():
        for dep in deps:
            dependents[dep].append(project_id)

    ready = [index[project_id] for project_id, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)

    order: list[str] = []
    while ready:
        project_id = projects[heapq.heappop(ready)].id
        order.append(project_id)
        for dependent in dependents[project_id]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, index[dependent])

    if len(order) != len(projects):
        remaining = set(dependencies) - set(order)
        involved = _cycle_members(remaining, dependencies, index)
        logger.debug("Cycle detected, unresolved=%s involved=%s", sorted(remaining), involved)
        raise CycleDetectedError(involved)

    start = tuple(order)
    logger.debug("Resolved start order: %s", ", ".join(start))
    return Ordering(start=start, stop=tuple(reversed(start)), dependencies=dependencies)


def dependency_closure(ordering: Ordering, project_id: str) -> frozenset[str]:
    """The project plus everything it transitively depends on.

    Raises:
        KeyError: If ``project_id`` is not part of the ordering
    """
    if project_id not in ordering.dependencies:
        raise KeyError(project_id)

    collected: set[str] = set()
    pending = [project_id]
    while pending:
        current = pending.pop()
        if current in collected:
            continue
        collected.add(current)
        pending.extend(ordering.dependencies[current])
    return frozenset(collected)
