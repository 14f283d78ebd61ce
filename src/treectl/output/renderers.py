"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from treectl.output.console import create_console, get_output, style_for_severity

if TYPE_CHECKING:
    from rich.console import Console

    from treectl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    if result.op == "samples":
        return "\n".join(result.data.get("items", []))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="tree.ok"), Text(f"  {result.op}", style="tree.op"))


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="tree.key")
    style = "tree.kind" if key.endswith("kind") else ""
    console.print(k, Text(str(value), style=style), sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the telemetry span tree (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in result.meta.items():
        if key == "telemetry":
            _render_span(console, value, indent=4)
        else:
            console.print(Text(f"    {key}: {value}"))


def _render_span(console: Console, span: dict[str, Any], indent: int) -> None:
    prefix = " " * indent
    duration = span.get("duration_ms", 0.0)
    style = "yellow" if duration > 100 else "dim"
    line = Text(prefix)
    line.append(f"{duration:>8.2f}ms", style=style)
    line.append(f"  {span.get('name', '?')}")
    annotations = span.get("annotations") or {}
    if annotations:
        line.append("  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")")
    console.print(line)
    for child in span.get("children", []):
        _render_span(console, child, indent + 4)


def _event_table(events: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Event")
    table.add_column("Detail")
    for index, event in enumerate(events, start=1):
        severity = str(event.get("severity", "info"))
        table.add_row(
            str(index),
            Text(str(event.get("type", "")), style=style_for_severity(severity)),
            Text(str(event.get("description", ""))),
        )
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="tree.error"),
        Text(f"  {result.op}", style="tree.op"),
        Text(" — "),
        Text(msg),
        sep="",
    )
    if err and err.detail:
        path = err.detail.get("path")
        if path:
            _field(console, "path", path)
        if verbose:
            console.print(Text("  detail:", style="dim"))
            for k, v in err.detail.items():
                console.print(Text(f"    {k}: {v}"))


# ── Operation renderers ───────────────────────────────────────────────


def _render_run(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    data = result.data
    for key in ("source", "root_kind", "notifications_sent", "failures"):
        if key in data:
            _field(console, key, data[key])
    events = data.get("events", [])
    if events:
        console.print()
        console.print(_event_table(events))
    if verbose:
        _render_meta(console, result)


def _render_validate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    data = result.data
    for key in ("source", "root_kind", "node_count", "depth", "round_trip"):
        if key in data:
            _field(console, key, data[key])
    kinds = data.get("kinds") or {}
    if kinds:
        _field(console, "kinds", ", ".join(f"{k}={v}" for k, v in sorted(kinds.items())))
    if verbose:
        _render_meta(console, result)


def _render_samples(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for name in result.data.get("items", []):
        console.print(Text(f"  {name}", style="tree.label"))


def _render_sample(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    # Plain JSON so the output can be redirected into a tree document.
    console.print(json.dumps(result.data.get("tree", {}), indent=2), markup=False, soft_wrap=True)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "run": _render_run,
    "validate": _render_validate,
    "samples": _render_samples,
    "sample": _render_sample,
}
