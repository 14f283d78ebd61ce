"""Bundled example trees shipped in ``treectl/samples/*.json``.

Referenced from the CLI as ``sample:<name>``.
"""

from __future__ import annotations

import json
from importlib import resources
from importlib.resources.abc import Traversable
from typing import Any

from treectl.domain.errors import TreeSourceError

SAMPLE_PREFIX = "sample:"


def _samples_dir() -> Traversable:
    return resources.files("treectl").joinpath("samples")


def list_samples() -> list[str]:
    """Names of all bundled samples, sorted."""
    return sorted(
        entry.name.removesuffix(".json")
        for entry in _samples_dir().iterdir()
        if entry.name.endswith(".json")
    )


def load_sample(name: str) -> Any:
    """Parsed record of the sample called *name*."""
    entry = _samples_dir().joinpath(f"{name}.json")
    if not entry.is_file():
        available = ", ".join(list_samples())
        raise TreeSourceError(
            f"Unknown sample {name!r} (available: {available})",
            source=f"{SAMPLE_PREFIX}{name}",
        )
    return json.loads(entry.read_text(encoding="utf-8"))
