"""Rich Console factory and theme for treectl output.

Consoles render into a StringIO buffer so renderers keep a
``-> str`` contract. Rich drops color codes when not on a TTY.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

TREECTL_THEME = Theme(
    {
        "tree.ok": "bold green",
        "tree.error": "bold red",
        "tree.warning": "bold yellow",
        "tree.op": "bold cyan",
        "tree.key": "dim",
        "tree.kind": "bold blue",
        "tree.label": "bold",
        "tree.severity.info": "green",
        "tree.severity.warning": "yellow",
        "tree.severity.error": "red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=TREECTL_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_severity(severity: str) -> str:
    return f"tree.severity.{severity}" if severity in ("info", "warning", "error") else ""
