"""Fuzzy resolution of a branch fragment across a workspace's repositories.

Scores (higher is better):

    exact                        100
    case-insensitive exact        90
    prefix                        75
    prefix of a "/" segment       60
    substring                     50
    subsequence                10-25  (denser spans score higher)

Branches scoring below MIN_MATCH_SCORE are not candidates.
"""

import logging
from collections.abc import Callable, Collection, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from de.core.errors import AmbiguousBranchError, NoBranchFoundError
from de.core.interaction import Interaction

logger = logging.getLogger(__name__)

MIN_MATCH_SCORE = 15
MAX_CANDIDATES_PER_PROJECT = 5


class MatchKind(Enum):
    EXACT = 100
    CASE_INSENSITIVE = 90
    PREFIX = 75
    SEGMENT_PREFIX = 60
    SUBSTRING = 50
    SUBSEQUENCE = 10


@dataclass(frozen=True)
class BranchCandidate:
    """A branch of one project that matches the fragment."""

    project_id: str
    branch_name: str
    match_score: int
    kind: MatchKind


@dataclass(frozen=True)
class MergedCandidate:
    """A branch name matched in one or more projects.

    ``match_score`` is the best score over all projects; ``project_ids`` keeps
    the order in which projects were examined.
    """

    branch_name: str
    match_score: int
    project_ids: tuple[str, ...]


@dataclass(frozen=True)
class ResolvedBranch:
    """The branch a switch will target.

    Fields:
        name: Resolved branch name
        projects_with_branch: Projects where the branch exists (locally or on
            the remote)
        fallback_projects: Projects without it; they get the fallback branch
    """

    name: str
    projects_with_branch: tuple[str, ...]
    fallback_projects: tuple[str, ...]


Chooser = Callable[[Sequence[MergedCandidate]], MergedCandidate]


def _subsequence_span(fragment: str, branch: str) -> int | None:
    """Length of the branch slice covering a greedy in-order match of ``fragment``."""
    start = -1
    position = 0
    for ch in fragment:
        found = branch.find(ch, position)
        if found == -1:
            return None
        if start == -1:
            start = found
        position = found + 1
    return position - start


def score_branch(fragment: str, branch: str) -> tuple[int, MatchKind] | None:
    """Score how well ``branch`` matches ``fragment``.

    Returns:
        (score, kind), or None if the branch does not match at all
    """
    if not fragment:
        return None
    if branch == fragment:
        return MatchKind.EXACT.value, MatchKind.EXACT

    needle = fragment.lower()
    haystack = branch.lower()
    if haystack == needle:
        return MatchKind.CASE_INSENSITIVE.value, MatchKind.CASE_INSENSITIVE
    if haystack.startswith(needle):
        return MatchKind.PREFIX.value, MatchKind.PREFIX
    if any(segment.startswith(needle) for segment in haystack.split("/")[1:]):
        return MatchKind.SEGMENT_PREFIX.value, MatchKind.SEGMENT_PREFIX
    if needle in haystack:
        return MatchKind.SUBSTRING.value, MatchKind.SUBSTRING

    span = _subsequence_span(needle, haystack)
    if span is None:
        return None
    return MatchKind.SUBSEQUENCE.value + int(15 * len(needle) / span), MatchKind.SUBSEQUENCE


def candidates_for_project(
    project_id: str, fragment: str, branches: Collection[str]
) -> list[BranchCandidate]:
    """Best-scoring branches of one project, at most MAX_CANDIDATES_PER_PROJECT."""
    candidates: list[BranchCandidate] = []
    for branch in branches:
        scored = score_branch(fragment, branch)
        if scored is None:
            continue
        score, kind = scored
        if score < MIN_MATCH_SCORE:
            continue
        candidates.append(
            BranchCandidate(project_id=project_id, branch_name=branch, match_score=score, kind=kind)
        )

    candidates.sort(key=lambda c: (-c.match_score, c.branch_name))
    return candidates[:MAX_CANDIDATES_PER_PROJECT]


def merge_candidates(candidates: Sequence[BranchCandidate]) -> list[MergedCandidate]:
    """Deduplicate candidates by branch name, best first."""
    scores: dict[str, int] = {}
    projects: dict[str, list[str]] = {}
    for candidate in candidates:
        name = candidate.branch_name
        scores[name] = max(scores.get(name, 0), candidate.match_score)
        owners = projects.setdefault(name, [])
        if candidate.project_id not in owners:
            owners.append(candidate.project_id)

    merged = [
        MergedCandidate(
            branch_name=name, match_score=scores[name], project_ids=tuple(projects[name])
        )
        for name in scores
    ]
    merged.sort(key=lambda c: (-c.match_score, c.branch_name))
    return merged


def _resolved(name: str, per_project_branches: Mapping[str, Collection[str]]) -> ResolvedBranch:
    with_branch = tuple(p for p, branches in per_project_branches.items() if name in branches)
    fallback = tuple(p for p, branches in per_project_branches.items() if name not in branches)
    return ResolvedBranch(name=name, projects_with_branch=with_branch, fallback_projects=fallback)


def resolve(
    fragment: str,
    per_project_branches: Mapping[str, Collection[str]],
    choose: Chooser | None = None,
) -> ResolvedBranch:
    """Resolve ``fragment`` to a single branch name.

    A fragment that is exactly the name of a branch in any project is taken
    as-is. Otherwise the merged candidates decide: one candidate resolves
    automatically, several go to ``choose``.

    Args:
        fragment: What the user typed
        per_project_branches: Branch names available in each project
        choose: Picks one of several candidates (None = non-interactive)

    Returns:
        ResolvedBranch with the projects that have it and those that don't

    Raises:
        NoBranchFoundError: If nothing matches in any project
        AmbiguousBranchError: If several branches match and ``choose`` is None
    """
    if any(fragment in branches for branches in per_project_branches.values()):
        logger.debug("Fragment %r is an existing branch name", fragment)
        return _resolved(fragment, per_project_branches)

    candidates = [
        candidate
        for project_id, branches in per_project_branches.items()
        for candidate in candidates_for_project(project_id, fragment, branches)
    ]
    merged = merge_candidates(candidates)
    logger.debug(
        "Candidates for %r: %s", fragment, [(c.branch_name, c.match_score) for c in merged]
    )

    if not merged:
        raise NoBranchFoundError(fragment)
    if len(merged) == 1:
        return _resolved(merged[0].branch_name, per_project_branches)
    if choose is None:
        raise AmbiguousBranchError(fragment, [c.branch_name for c in merged])

    chosen = choose(merged)
    return _resolved(chosen.branch_name, per_project_branches)


def describe_candidate(candidate: MergedCandidate) -> str:
    """Menu label: branch name plus the projects that have it."""
    return f"{candidate.branch_name}  ({', '.join(candidate.project_ids)})"


def resolve_interactive(
    fragment: str,
    per_project_branches: Mapping[str, Collection[str]],
    interaction: Interaction,
) -> ResolvedBranch:
    """Resolve ``fragment``, asking the user when several branches match."""

    def choose(candidates: Sequence[MergedCandidate]) -> MergedCandidate:
        return interaction.choose(
            f"Several branches match '{fragment}':", candidates, label=describe_candidate
        )

    return resolve(fragment, per_project_branches, choose=choose)
