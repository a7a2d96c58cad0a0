"""Output utilities for CLI commands with clear intent.

user_output() is for messages meant for the human at the terminal and goes to
stderr; machine_output() is for data another program may consume and goes to
stdout.
"""

import click


def user_output(message: str = "", *, nl: bool = True) -> None:
    """Write a user-facing message to stderr."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: str = "", *, nl: bool = True) -> None:
    """Write machine-readable output to stdout."""
    click.echo(message, nl=nl)
