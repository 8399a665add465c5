"""Plugin registry for editor listeners.

Plugins arrive two ways: installed packages advertising the
``kvinput.plugins`` entry-point group, and objects handed to
:meth:`PluginManager.register_plugin` (tests, embedding applications).
Either way they only ever see the hooks in :mod:`kvinput.plugins.hookspecs`.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from kvinput.plugins.hookspecs import KvInputHookSpec

PROJECT_NAME = "kvinput"
ENTRY_POINT_GROUP = f"{PROJECT_NAME}.plugins"
_IMPL_MARKER = f"{PROJECT_NAME}_impl"

logger = logging.getLogger(__name__)


class PluginManager:
    """Thin wrapper over :class:`pluggy.PluginManager` bound to the kvinput hooks."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(KvInputHookSpec)
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self) -> list[str]:
        """Load every ``kvinput.plugins`` entry point; return all plugin names."""
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        if count:
            logger.debug("Loaded %d entry-point plugin(s) from %s", count, ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register *plugin* under *name* (default: its class name)."""
        name = name or type(plugin).__name__
        self._pm.register(plugin, name=name)
        logger.debug("Registered plugin: %s", name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._name_of(plugin) for plugin in self._pm.get_plugins()]

    def _name_of(self, plugin: object) -> str:
        return self._pm.get_name(plugin) or type(plugin).__name__

    def _normalize_plugin_instances(self) -> None:
        """Swap hook-bearing classes for instances of them.

        Entry points usually name a class; dispatching on the class itself
        would leave ``self`` unbound in every hook. A class that cannot be
        constructed with no arguments is dropped with a warning.
        """
        classes = [p for p in self._pm.get_plugins() if inspect.isclass(p) and self._has_hook_impls(p)]
        for cls in classes:
            name = self._pm.get_name(cls) or cls.__name__
            self._pm.unregister(cls)
            try:
                instance = cls()
            except Exception:
                logger.warning("Dropping plugin %s: construction failed", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """True when some public attribute of *cls* carries a ``@hookimpl`` mark."""
        return any(
            getattr(getattr(cls, attr, None), _IMPL_MARKER, None) is not None
            for attr in dir(cls)
            if not attr.startswith("_")
        )
