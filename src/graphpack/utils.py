"""Shared utility helpers for graphpack."""

from __future__ import annotations

import reprlib
import typing
from collections.abc import Mapping
from typing import Any


def build_repr(class_name: str, *leading: str, kwargs: Mapping[str, Any] | None = None) -> str:
    """Build a concise repr string: ``ClassName(leading…, k=v, …)``."""
    parts = list(leading)
    if kwargs:
        parts.extend(f"{k}={reprlib.Repr().repr(v)}" for k, v in kwargs.items())
    return f"{class_name}({', '.join(parts)})"


def describe_type(tp: Any) -> str:
    """
    Human-readable name of a type or typing form, for messages.

    Examples:
        >>> describe_type(int)
        'int'
        >>> describe_type(list[int])
        'list[int]'
    """
    if isinstance(tp, type) and typing.get_origin(tp) is None:
        if tp.__module__ == "builtins":
            return tp.__qualname__
        return f"{tp.__module__}.{tp.__qualname__}"
    return repr(tp)
