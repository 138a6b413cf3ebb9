"""Pluggy hooks fired around packing and unpacking."""

from graphpack.hooks.manager import create_hook_manager_with_plugins
from graphpack.hooks.manager import get_global_plugin_manager
from graphpack.hooks.manager import register_hooks
from graphpack.hooks.manager import register_plugins_entry_points
from graphpack.hooks.manager import reset_global_plugin_manager
from graphpack.hooks.markers import hook_impl
from graphpack.hooks.markers import hook_spec

__all__ = [
    "create_hook_manager_with_plugins",
    "get_global_plugin_manager",
    "hook_impl",
    "hook_spec",
    "register_hooks",
    "register_plugins_entry_points",
    "reset_global_plugin_manager",
]
