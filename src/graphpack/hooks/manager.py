"""Utility functions to manage the process-wide hook configuration."""

import logging
import threading
from inspect import isclass
from typing import Any

from pluggy import PluginManager

from graphpack.hooks.markers import HOOK_NAMESPACE
from graphpack.hooks.specs import PacketSpecs

logger = logging.getLogger(__name__)

_PLUGIN_ENTRY_POINT = "graphpack.hooks"  # entry-point to load hooks from for installed plugins
_PLUGIN_MANAGER: PluginManager | None = None
_MANAGER_LOCK = threading.Lock()


# region API


def register_hooks(*hooks: Any) -> None:
    """Register graphpack pluggy hook implementations in the global manager."""
    hook_manager = get_global_plugin_manager()
    for hooks_collection in hooks:
        if not hook_manager.is_registered(hooks_collection):
            _check_instance(hooks_collection)
            hook_manager.register(hooks_collection)


def register_plugins_entry_points(_plugin_manager: PluginManager | None = None) -> None:
    """Register graphpack plugins from Python package entrypoints."""
    _plugin_manager = _plugin_manager if _plugin_manager else get_global_plugin_manager()
    _plugin_manager.load_setuptools_entrypoints(_PLUGIN_ENTRY_POINT)  # Doesn't use setuptools


def create_hook_manager_with_plugins(plugins: list[Any]) -> PluginManager:
    """
    Create a new hook manager with both global and service-specific plugins.

    Args:
        plugins: Additional hook implementations to register.

    Returns:
        A new PluginManager with global + service-specific hooks.
    """
    manager = _create_plugin_manager()

    for plugin in get_global_plugin_manager().get_plugins():
        if not manager.is_registered(plugin):  # pragma: no branch
            manager.register(plugin)

    for plugin in plugins:
        if not manager.is_registered(plugin):  # pragma: no branch
            _check_instance(plugin)
            manager.register(plugin)

    return manager


def get_global_plugin_manager() -> PluginManager:
    """Returns the global plugin manager, creating it on first use."""
    global _PLUGIN_MANAGER
    with _MANAGER_LOCK:
        if _PLUGIN_MANAGER is None:
            _PLUGIN_MANAGER = _create_plugin_manager()
        return _PLUGIN_MANAGER


def reset_global_plugin_manager() -> None:
    """Drop every globally registered plugin. Intended for tests."""
    global _PLUGIN_MANAGER
    with _MANAGER_LOCK:
        _PLUGIN_MANAGER = None


# region Helpers


def _check_instance(plugin: Any) -> None:
    if isclass(plugin):
        raise TypeError(
            "graphpack expects hooks to be registered as instances. "
            "Have you forgotten the `()` when registering a hook class?"
        )


def _create_plugin_manager() -> PluginManager:
    """Create a new PluginManager instance and register graphpack's hook specs."""
    manager = PluginManager(HOOK_NAMESPACE)
    manager.trace.root.setwriter(
        logger.debug if logger.getEffectiveLevel() == logging.DEBUG else None
    )
    manager.enable_tracing()
    manager.add_hookspecs(PacketSpecs)
    return manager
