"""Pluggy hook specifications for execution events.

Hooks run synchronously, in the order events are produced.
"""

from __future__ import annotations

from typing import Any

import pluggy

PROJECT_NAME = "treectl"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class TreectlHookSpec:
    """Hook specifications for the treectl plugin system."""

    @hookspec
    def on_execution_event(self, event: dict[str, Any]) -> None:
        """Called for every execution event, with the event as a JSON-ready dict."""

    @hookspec
    def post_run(self, root_kind: str, event_count: int, failures: int) -> None:
        """Called after a tree run completes."""
