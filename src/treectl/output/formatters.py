"""Output mode dispatch.

The CLI renders a ServiceResult for humans (Rich), for scripts (--json),
or minimally (--quiet). Rich rendering lives in :mod:`renderers`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from treectl.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from treectl.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    """Resolved output mode flags."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(
    result: ServiceResult,
    *,
    settings: OutputSettings | None = None,
    json_output: bool = False,
) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        settings: Output mode; takes precedence over *json_output*.
        json_output: Shortcut for ``OutputSettings(json_output=True)``.
    """
    if settings is None:
        settings = OutputSettings(json_output=json_output)
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
