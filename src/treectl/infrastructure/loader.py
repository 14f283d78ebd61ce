"""Read tree documents from disk.

A document holds one root node record in JSON (``.json``) or YAML
(``.yaml`` / ``.yml``). The result is untyped; validation is the
factory's job.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from treectl.domain.errors import TreeSourceError

YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def parse_tree_text(text: str, *, fmt: str = "json", source: str | None = None) -> Any:
    """Parse document *text* in the given format (``"json"`` or ``"yaml"``)."""
    if fmt == "yaml":
        try:
            return YAML(typ="safe").load(text)
        except YAMLError as exc:
            raise TreeSourceError(f"Invalid YAML: {exc}", source=source) from exc
        except RecursionError as exc:
            raise TreeSourceError("YAML document is nested too deeply", source=source) from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise TreeSourceError(f"Invalid JSON: {exc}", source=source) from exc
    except RecursionError as exc:
        raise TreeSourceError("JSON document is nested too deeply", source=source) from exc


def load_tree_document(path: Path) -> Any:
    """Read and parse the tree document at *path*."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeError) as exc:
        raise TreeSourceError(f"Cannot read {path}: {exc}", source=str(path)) from exc
    fmt = "yaml" if path.suffix.lower() in YAML_SUFFIXES else "json"
    return parse_tree_text(text, fmt=fmt, source=str(path))
