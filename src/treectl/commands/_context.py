"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Builds the TreeService lazily and owns result
emission (stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from treectl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from treectl.config.settings import TreeSettings
    from treectl.services.result import ServiceResult
    from treectl.services.tree import TreeService


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The service (and plugin discovery) is created on first use so
    ``--help`` and ``--version`` stay cheap.
    """

    def __init__(self, settings: TreeSettings) -> None:
        self.settings = settings
        self._service: TreeService | None = None

        from treectl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from treectl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def service(self) -> TreeService:
        """The TreeService for this invocation (created lazily)."""
        if self._service is None:
            from treectl.plugins.manager import PluginManager
            from treectl.services.tree import TreeService

            plugins = None
            if self.settings.plugins.enabled:
                plugins = PluginManager()
                plugins.discover_and_load()
            self._service = TreeService(self.settings.tree_config(), plugins=plugins)
        return self._service

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: stdout, normal return. Warnings go to stderr so piped
          output stays clean (JSON mode already carries them).
        * Failure: stderr, exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output and not settings.quiet:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
