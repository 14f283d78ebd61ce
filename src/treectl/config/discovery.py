"""Config file discovery.

Starting from the working directory, each directory up to the filesystem
root is checked for ``treectl.toml`` and then for a ``pyproject.toml`` with
a ``[tool.treectl]`` table; the nearest hit wins. ``TREECTL_CONFIG`` names a
file directly and disables the search.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterator
from pathlib import Path

CONFIG_FILENAME = "treectl.toml"
PYPROJECT_FILENAME = "pyproject.toml"
CONFIG_ENV_VAR = "TREECTL_CONFIG"


def _ancestors(start: Path) -> Iterator[Path]:
    current = start.resolve()
    yield current
    yield from current.parents


def _declares_tool_table(pyproject: Path) -> bool:
    """True if *pyproject* parses and has a ``[tool.treectl]`` table."""
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return isinstance(data.get("tool", {}).get("treectl"), dict)


def find_config(start: Path | None = None) -> Path | None:
    """Locate the config file in effect for *start* (default: cwd).

    Returns None when ``TREECTL_CONFIG`` names a missing file, or when no
    directory on the way up has a usable file.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    for directory in _ancestors(start or Path.cwd()):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        pyproject = directory / PYPROJECT_FILENAME
        if pyproject.is_file() and _declares_tool_table(pyproject):
            return pyproject
    return None
