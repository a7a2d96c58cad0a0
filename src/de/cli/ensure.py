"""CLI error handling utilities with styled output.

This module provides the Ensure class for asserting invariants in CLI commands
with consistent, user-friendly error messages. All errors use red "Error:" prefix
for visual consistency.
"""

from typing import NoReturn, TypeVar

import click

from de.cli.output import user_output
from de.core.workspace import validate_slug

T = TypeVar("T")


class Ensure:
    """Helper class for asserting invariants with consistent error handling."""

    @staticmethod
    def fail(error_message: str) -> NoReturn:
        """Output styled error and exit with code 1.

        Used at command boundaries to turn a typed core exception into a
        user-facing message.

        Example:
            >>> try:
            ...     ordering = dependency_graph.resolve(workspace.projects)
            ... except GraphError as e:
            ...     Ensure.fail(str(e))
        """
        user_output(click.style("Error: ", fg="red") + error_message)
        raise SystemExit(1)

    @staticmethod
    def invariant(condition: bool, error_message: str) -> None:
        """Ensure condition is true, otherwise output styled error and exit.

        Args:
            condition: Boolean condition to check
            error_message: Error message to display if condition is false.
                          "Error: " prefix will be added automatically in red.

        Raises:
            SystemExit: If condition is false (with exit code 1)
        """
        if not condition:
            Ensure.fail(error_message)

    @staticmethod
    def not_none(value: T | None, error_message: str) -> T:
        """Ensure value is not None, otherwise output styled error and exit.

        This method provides type narrowing: it takes `T | None` and returns `T`.

        Raises:
            SystemExit: If value is None (with exit code 1)
        """
        if value is None:
            Ensure.fail(error_message)
        return value

    @staticmethod
    def valid_name(value: str) -> str:
        """Ensure a workspace or project name is a valid slug.

        The error message includes a suggested valid name.

        Returns:
            The stripped name
        """
        try:
            return validate_slug(value)
        except ValueError as e:
            Ensure.fail(str(e))
