"""Extension layer — change listeners as pluggy plugins.

Discovery: entry points in the ``kvinput.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from kvinput.plugins.event_bus import EventBus
from kvinput.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
