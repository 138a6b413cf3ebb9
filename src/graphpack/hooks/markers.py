"""Pluggy markers for graphpack hook specifications and implementations."""

import pluggy

HOOK_NAMESPACE = "graphpack"

hook_spec = pluggy.HookspecMarker(HOOK_NAMESPACE)
"""Marker for graphpack hook specifications."""

hook_impl = pluggy.HookimplMarker(HOOK_NAMESPACE)
"""Marker for graphpack hook implementations."""
