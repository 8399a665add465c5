"""Subcommand modules for kvinput.

Provides register_commands(), which uses deferred imports to keep
``kvinput --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from kvinput.commands.check import check
    from kvinput.commands.edit import edit
    from kvinput.commands.show import show

    cli.add_command(show)
    cli.add_command(edit)
    cli.add_command(check)
