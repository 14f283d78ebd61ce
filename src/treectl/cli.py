"""Root ``treectl`` command group.

Global flags are collected into :class:`TreeSettings` once per invocation
and handed to every subcommand through an :class:`AppContext`.
"""

from __future__ import annotations

import click

from treectl import __version__
from treectl.commands import register_commands
from treectl.commands._context import AppContext
from treectl.config.settings import TreeSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="treectl")
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON envelopes.")
@click.option("-q", "--quiet", is_flag=True, help="One line per result.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and per-node timing spans.")
@click.option("--log-json", is_flag=True, help="Write stderr log lines as JSON.")
@click.option("--no-plugins", is_flag=True, help="Skip treectl.plugins entry points.")
@click.option(
    "-c",
    "--config",
    "config_path",
    default=None,
    metavar="PATH",
    help="Use this TOML file instead of discovering treectl.toml.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, **flags: bool) -> None:
    """treectl — run notification decision trees."""
    ctx.obj = AppContext(TreeSettings.from_cli(config_path=config_path, **flags))
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
