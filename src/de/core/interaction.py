"""Human decisions requested by the core.

The branch matcher and the dirty-state resolver never talk to the terminal
directly; they ask an Interaction. This keeps the sync state machine
deterministic under test, where a fake answers from a script.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TypeVar

import click

from de.cli.output import user_output

T = TypeVar("T")


class Interaction(ABC):
    """Blocking questions to the user."""

    @abstractmethod
    def choose(self, prompt: str, options: Sequence[T], label: Callable[[T], str] = str) -> T:
        """Ask the user to pick one of ``options``.

        Args:
            prompt: Question shown above the options
            options: Non-empty sequence of choices
            label: How to display one option

        Returns:
            The chosen option (one of ``options``)
        """

    @abstractmethod
    def confirm(self, prompt: str, *, default: bool = False) -> bool:
        """Ask a yes/no question."""


class ClickInteraction(Interaction):
    """Terminal prompts: a numbered menu and a yes/no confirmation."""

    def choose(self, prompt: str, options: Sequence[T], label: Callable[[T], str] = str) -> T:
        if not options:
            raise ValueError("choose() needs at least one option")

        user_output(prompt)
        for index, option in enumerate(options, start=1):
            user_output(f"  {click.style(str(index), fg='cyan')}) {label(option)}")

        selection = click.prompt(
            "Select",
            type=click.IntRange(1, len(options)),
            default=1,
            err=True,
        )
        return options[selection - 1]

    def confirm(self, prompt: str, *, default: bool = False) -> bool:
        return click.confirm(prompt, default=default, err=True)
