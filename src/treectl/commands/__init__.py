"""Subcommand modules for treectl.

register_commands() imports command modules lazily so ``treectl --help``
stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all commands on the root CLI group."""
    from treectl.commands.run import run
    from treectl.commands.samples import samples
    from treectl.commands.validate import validate

    cli.add_command(run)
    cli.add_command(validate)
    cli.add_command(samples)
