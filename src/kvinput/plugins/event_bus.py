"""Synchronous event dispatch via pluggy.

The editor has a single thread of control, so events are delivered in
order, inline, on the commit path.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kvinput.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Dispatch editor events to registered plugins.

    Parameters:
        plugin_manager: Loaded PluginManager for hook dispatch.
    """

    def __init__(self, plugin_manager: PluginManager) -> None:
        self._pm = plugin_manager
        self.dispatched: int = 0

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> list[str]:
        """Call *hook_name* on every plugin. Returns warnings for failures."""
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            return []

        self.dispatched += 1
        try:
            hook_fn(**payload)
        except Exception as exc:
            logger.debug("Hook %s failed: %s", hook_name, exc, exc_info=True)
            return [f"Plugin hook {hook_name} failed: {exc}"]
        return []
