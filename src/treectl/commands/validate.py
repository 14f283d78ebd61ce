"""Command: check a tree document without running it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from treectl.commands._base import TreeCommand

if TYPE_CHECKING:
    from treectl.commands._context import AppContext


@click.command(
    cls=TreeCommand,
    examples="""\
  treectl validate tree.json
  treectl --json validate tree.yaml
  treectl validate sample:christmas""",
)
@click.argument("tree")
@click.pass_obj
def validate(app: AppContext, tree: str) -> None:
    """Reconstruct TREE and report its shape and canonical form."""
    app.emit(app.service.validate(tree))
