from __future__ import annotations

import pickle
import threading
from dataclasses import dataclass

_GLOBAL_GRAPHPACK_SETTINGS: GraphpackSettings | None = None
_SETTINGS_LOCK = threading.RLock()


@dataclass(frozen=True)
class GraphpackSettings:
    """Configuration settings for graphpack."""

    max_buffer_words: int = 2**24
    """
    Maximum size of a packing buffer, in machine words.

    Packing a graph whose flattened form does not fit raises `NoBuffer`.
    """

    executable_path: tuple[str, ...] | None = None
    """
    Files hashed to compute the executable identity.

    If None, the interpreter binary and the program's main script are used. Only read the first
    time the identity is computed.
    """

    hash_loaded_modules: bool = True
    """
    Whether the executable identity also covers the code of loaded third-party packages.

    Packed functions and classes are stored by module and name, so a packet is only safe to
    restore against the same package code. Disable only when every process involved is known to
    run identical package versions but imports them in a different order.
    """

    pickle_protocol: int = pickle.HIGHEST_PROTOCOL
    """Pickle protocol used by the default graph primitive."""


def get_global_settings() -> GraphpackSettings:
    """
    Get the global graphpack settings instance (thread-safe).

    If no global settings have been set, returns a default instance.
    """
    with _SETTINGS_LOCK:
        global _GLOBAL_GRAPHPACK_SETTINGS
        if _GLOBAL_GRAPHPACK_SETTINGS is None:
            _GLOBAL_GRAPHPACK_SETTINGS = GraphpackSettings()
        return _GLOBAL_GRAPHPACK_SETTINGS


def set_global_settings(settings: GraphpackSettings) -> None:
    """
    Set the global graphpack settings instance (thread-safe).

    Note: `executable_path` only takes effect if set before the executable identity is first
    computed; the identity is never recomputed for the lifetime of the process.

    Args:
        settings (GraphpackSettings): Settings to set as global.
    """
    with _SETTINGS_LOCK:
        global _GLOBAL_GRAPHPACK_SETTINGS
        _GLOBAL_GRAPHPACK_SETTINGS = settings
