"""Output helpers for CLI commands.

User-facing messages go to stderr.
"""

import click


def user_output(message: str = "", nl: bool = True) -> None:
    click.echo(message, err=True, nl=nl)


def warning_output(message: str) -> None:
    user_output(click.style("Warning: ", fg="yellow") + message)


def error_output(message: str) -> None:
    user_output(click.style("Error: ", fg="red") + message)
