"""Tests for PluginManager — discovery, registration, and hook relay."""

from __future__ import annotations

from kvinput.plugins.hookspecs import hookimpl
from kvinput.plugins.manager import PluginManager


class _DummyPlugin:
    """Minimal plugin for registration tests."""

    @hookimpl
    def post_replace(self, size: int) -> None:
        pass


class _NoHooks:
    def helper(self) -> None:
        pass


class TestPluginManager:
    def test_hook_relay_accessible(self) -> None:
        pm = PluginManager()
        assert hasattr(pm.hook, "post_commit")
        assert hasattr(pm.hook, "post_remove")
        assert hasattr(pm.hook, "post_replace")

    def test_register_plugin(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin(), name="dummy")
        assert "dummy" in pm.list_plugin_names()

    def test_register_plugin_default_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin())
        assert "_DummyPlugin" in pm.list_plugin_names()

    def test_unregister_plugin(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin, name="dummy")
        pm.unregister(plugin)
        assert "dummy" not in pm.list_plugin_names()
        assert pm.get_plugins() == []

    def test_discover_marks_loaded(self) -> None:
        pm = PluginManager()
        assert pm.is_loaded is False
        assert isinstance(pm.discover_and_load(), list)
        assert pm.is_loaded is True

    def test_has_hook_impls(self) -> None:
        assert PluginManager._has_hook_impls(_DummyPlugin) is True
        assert PluginManager._has_hook_impls(_NoHooks) is False

    def test_registered_classes_become_instances(self) -> None:
        pm = PluginManager()
        pm._pm.register(_DummyPlugin, name="cls")
        pm._normalize_plugin_instances()
        plugins = pm.get_plugins()
        assert len(plugins) == 1
        assert isinstance(plugins[0], _DummyPlugin)
        assert pm.list_plugin_names() == ["cls"]
