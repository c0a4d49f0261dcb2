"""Output utilities for CLI commands with clear intent.

user_output is for messages meant for a human (progress, warnings, errors) and
goes to stderr. machine_output is for the command's actual result and goes to
stdout, so `branchtree tree > tree.txt` captures only the tree.
"""

from typing import Any

import click
from rich.console import Console
from rich.table import Table


def user_output(message: Any = "", nl: bool = True, color: bool | None = None) -> None:
    """Write a human-facing message to stderr."""
    click.echo(message, nl=nl, err=True, color=color)


def machine_output(message: Any = "", nl: bool = True, color: bool | None = None) -> None:
    """Write command results to stdout."""
    click.echo(message, nl=nl, color=color)


def warning(message: str) -> None:
    user_output(click.style("Warning: ", fg="yellow") + message)


def print_table(title: str, table: Table) -> None:
    """Print a bold heading and a rich table to stderr, followed by a blank line."""
    # width=200 keeps long branch names from wrapping
    console = Console(stderr=True, width=200)
    console.print(title, style="bold")
    console.print(table)
    console.print()
