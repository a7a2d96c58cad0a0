"""Deciding what to do with a repository that has local work.

A repository is dirty when its working tree has uncommitted changes or its
branch has commits the remote does not. The resolver never touches git; it
only maps a status and a policy (or the user's answer) to a decision.
"""

from dataclasses import dataclass
from enum import Enum

from de.core.interaction import Interaction


class DirtyDecision(Enum):
    PROCEED = "proceed"
    STASH = "stash"
    FORCE_RESET = "force-reset"
    SKIP = "skip"
    ABORT = "abort"
    PUSH = "push"


DECISION_LABELS: dict[DirtyDecision, str] = {
    DirtyDecision.PROCEED: "Proceed",
    DirtyDecision.STASH: "Stash changes and restore them afterwards",
    DirtyDecision.FORCE_RESET: "Discard local changes (git reset --hard)",
    DirtyDecision.SKIP: "Skip this project",
    DirtyDecision.ABORT: "Abort for all remaining projects",
    DirtyDecision.PUSH: "Push local commits first",
}


class DirtyPolicy(Enum):
    """How dirty repositories are handled for a whole run."""

    PROMPT = "prompt"
    STASH = "stash"
    FORCE = "force"
    SKIP = "skip"
    ABORT = "abort"


_FIXED_DECISIONS: dict[DirtyPolicy, DirtyDecision] = {
    DirtyPolicy.STASH: DirtyDecision.STASH,
    DirtyPolicy.FORCE: DirtyDecision.FORCE_RESET,
    DirtyPolicy.SKIP: DirtyDecision.SKIP,
    DirtyPolicy.ABORT: DirtyDecision.ABORT,
}


@dataclass(frozen=True)
class DirtyStatus:
    uncommitted: bool
    unpushed: int = 0

    @property
    def is_clean(self) -> bool:
        return not self.uncommitted and self.unpushed == 0

    def describe(self) -> str:
        parts = []
        if self.uncommitted:
            parts.append("uncommitted changes")
        if self.unpushed:
            noun = "commit" if self.unpushed == 1 else "commits"
            parts.append(f"{self.unpushed} unpushed {noun}")
        return " and ".join(parts) if parts else "clean"


def available_decisions(status: DirtyStatus) -> list[DirtyDecision]:
    """Choices offered for a dirty repository, in menu order.

    Pushing is only offered when the working tree itself is clean, and
    stashing only when there is something a stash can hold.
    """
    if status.uncommitted:
        return [
            DirtyDecision.STASH,
            DirtyDecision.FORCE_RESET,
            DirtyDecision.SKIP,
            DirtyDecision.ABORT,
        ]
    return [DirtyDecision.PUSH, DirtyDecision.FORCE_RESET, DirtyDecision.SKIP, DirtyDecision.ABORT]


def resolve(
    project_id: str, status: DirtyStatus, policy: DirtyPolicy, interaction: Interaction
) -> DirtyDecision:
    """Decide how to treat ``project_id`` before it is switched or reset.

    A clean repository always proceeds; neither the policy nor the user is
    consulted.
    """
    if status.is_clean:
        return DirtyDecision.PROCEED

    if policy != DirtyPolicy.PROMPT:
        return _FIXED_DECISIONS[policy]

    return interaction.choose(
        f"{project_id} has {status.describe()}. What should happen?",
        available_decisions(status),
        label=DECISION_LABELS.__getitem__,
    )
