"""Extension layer — plugin system via pluggy.

Discovery: entry_points in the ``treectl.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from treectl.plugins.hookspecs import hookimpl
from treectl.plugins.manager import PluginEventSink, PluginManager

__all__ = ["PluginEventSink", "PluginManager", "hookimpl"]
