"""Plugin discovery, registration, and event forwarding."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pluggy

from treectl.plugins.hookspecs import PROJECT_NAME, TreectlHookSpec

if TYPE_CHECKING:
    from treectl.domain.events import ExecutionEvent

ENTRY_POINT_GROUP = "treectl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(TreectlHookSpec)

    def discover_and_load(self) -> list[str]:
        """Load plugins registered under the ``treectl.plugins`` entry point group.

        Returns the names of all registered plugins.
        """
        try:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        except Exception:
            logger.warning("Plugin discovery failed", exc_info=True)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]


class PluginEventSink:
    """EventSink that forwards events to ``on_execution_event`` hooks.

    A raising plugin is logged and skipped; execution always continues.
    """

    def __init__(self, manager: PluginManager) -> None:
        self._manager = manager

    def emit(self, event: ExecutionEvent) -> None:
        try:
            self._manager.hook.on_execution_event(event=event.model_dump(mode="json"))
        except Exception:
            logger.warning("Plugin hook on_execution_event failed", exc_info=True)

    def post_run(self, root_kind: str, event_count: int, failures: int) -> None:
        try:
            self._manager.hook.post_run(
                root_kind=root_kind,
                event_count=event_count,
                failures=failures,
            )
        except Exception:
            logger.warning("Plugin hook post_run failed", exc_info=True)
