"""Tests for the global hook manager."""

import pytest

from graphpack.hooks import create_hook_manager_with_plugins
from graphpack.hooks import get_global_plugin_manager
from graphpack.hooks import hook_impl
from graphpack.hooks import register_hooks
from graphpack.hooks import register_plugins_entry_points
from graphpack.hooks import reset_global_plugin_manager


class CountingHooks:
    """Counts successful packs."""

    def __init__(self):
        self.packed = 0

    @hook_impl
    def after_serialize(self, packet, duration):
        self.packed += 1


class TestGlobalManager:
    """Tests for the process-wide plugin manager."""

    def test_is_created_once(self):
        assert get_global_plugin_manager() is get_global_plugin_manager()

    def test_reset_drops_plugins(self):
        hooks = CountingHooks()
        register_hooks(hooks)
        reset_global_plugin_manager()
        assert not get_global_plugin_manager().is_registered(hooks)

    def test_register_is_idempotent(self):
        hooks = CountingHooks()
        register_hooks(hooks)
        register_hooks(hooks)
        assert get_global_plugin_manager().get_plugins() == {hooks}

    def test_rejects_classes(self):
        with pytest.raises(TypeError, match="instances"):
            register_hooks(CountingHooks)

    def test_entry_points_load_without_plugins(self):
        register_plugins_entry_points()
        assert get_global_plugin_manager().get_plugins() == set()


class TestServiceManager:
    """Tests for managers combining global and service-specific plugins."""

    def test_combines_global_and_local(self):
        global_hooks = CountingHooks()
        local_hooks = CountingHooks()
        register_hooks(global_hooks)

        manager = create_hook_manager_with_plugins([local_hooks])
        manager.hook.after_serialize(packet=None, duration=0.0)

        assert global_hooks.packed == 1
        assert local_hooks.packed == 1

    def test_local_plugins_stay_local(self):
        local_hooks = CountingHooks()
        create_hook_manager_with_plugins([local_hooks])
        assert not get_global_plugin_manager().is_registered(local_hooks)

    def test_rejects_classes(self):
        with pytest.raises(TypeError):
            create_hook_manager_with_plugins([CountingHooks])
