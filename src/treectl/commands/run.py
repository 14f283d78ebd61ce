"""Command: execute a decision tree."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from treectl.commands._base import TreeCommand

if TYPE_CHECKING:
    from treectl.commands._context import AppContext


def parse_variables(
    _ctx: click.Context | None,
    _param: click.Parameter | None,
    values: tuple[str, ...],
) -> dict[str, Any]:
    """Turn ``NAME=VALUE`` pairs into a context dict.

    Values are parsed as JSON when possible (``year=2024`` is an int,
    ``vip=true`` a bool) and kept as strings otherwise.
    """
    variables: dict[str, Any] = {}
    for item in values:
        name, sep, raw = item.partition("=")
        name = name.strip()
        if not sep or not name:
            raise click.BadParameter(f"Expected NAME=VALUE, got {item!r}")
        try:
            variables[name] = json.loads(raw)
        except json.JSONDecodeError:
            variables[name] = raw
    return variables


@click.command(
    cls=TreeCommand,
    examples="""\
  treectl run tree.json
  treectl run tree.yaml --var year=2024 --var segment='"vip"'
  treectl run sample:ten-optional-mails --dry-run
  treectl --json run sample:condition --var year=2024""",
)
@click.argument("tree")
@click.option(
    "--var",
    "variables",
    multiple=True,
    metavar="NAME=VALUE",
    callback=parse_variables,
    help="Context variable for predicates (repeatable).",
)
@click.option(
    "--continue-on-predicate-error",
    is_flag=True,
    help="Keep looping after a predicate fails instead of aborting the loop.",
)
@click.option("--dry-run", is_flag=True, help="Record notifications instead of sending them.")
@click.pass_obj
def run(
    app: AppContext,
    tree: str,
    variables: dict[str, Any],
    continue_on_predicate_error: bool,
    dry_run: bool,
) -> None:
    """Run TREE (a .json/.yaml file or sample:<name>)."""
    app.emit(
        app.service.run(
            tree,
            variables,
            continue_on_predicate_error=True if continue_on_predicate_error else None,
            dry_run=dry_run,
        )
    )
