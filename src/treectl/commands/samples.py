"""Command: list or print the bundled sample trees."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from treectl.commands._base import TreeCommand

if TYPE_CHECKING:
    from treectl.commands._context import AppContext


@click.command(
    cls=TreeCommand,
    examples="""\
  treectl samples
  treectl samples condition > condition.json""",
)
@click.argument("name", required=False)
@click.pass_obj
def samples(app: AppContext, name: str | None) -> None:
    """List bundled samples, or print sample NAME as JSON."""
    if name is None:
        app.emit(app.service.list_samples())
    else:
        app.emit(app.service.show_sample(name))
