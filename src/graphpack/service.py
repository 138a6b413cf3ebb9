"""
Typed serialization on top of the graph primitive.

`SerializationService` is the only place where primitive status codes are translated into the
`PackError` taxonomy. Everything above it deals in packets and exceptions.
"""

from __future__ import annotations

import logging
import time
import typing
from typing import Any, TypeVar

from pluggy import PluginManager

from graphpack.exceptions import Garbled
from graphpack.exceptions import Impossible
from graphpack.exceptions import PackError
from graphpack.exceptions import PackErrorKind
from graphpack.hooks.manager import create_hook_manager_with_plugins
from graphpack.hooks.manager import get_global_plugin_manager
from graphpack.packet import Packet
from graphpack.primitive import GraphCodec
from graphpack.primitive import PackStatus
from graphpack.primitive import PickleGraphCodec
from graphpack.utils import describe_type

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SerializationService:
    """
    Packs values into typed packets and unpacks them again.

    Args:
        graph_codec: Graph primitive to use. If None, a `PickleGraphCodec` configured from the
            global settings at call time is used.
        plugins: Hook implementations fired by this service in addition to the globally
            registered ones.

    Examples:
        >>> service = SerializationService()
        >>> packet = service.try_serialize([1, 2, 3])
        >>> service.deserialize(packet)
        [1, 2, 3]
    """

    def __init__(
        self, graph_codec: GraphCodec | None = None, plugins: list[Any] | None = None
    ) -> None:
        self._graph_codec = graph_codec
        self._plugins = list(plugins or [])

    @property
    def graph_codec(self) -> GraphCodec:
        if self._graph_codec is not None:
            return self._graph_codec
        return PickleGraphCodec.from_settings()

    def try_serialize(self, value: T, as_type: Any = None) -> Packet[T]:
        """
        Pack `value` without ever blocking the calling thread.

        If the graph reaches a thunk that another thread is evaluating, `BlackHole` is raised
        immediately.

        Args:
            value: Root of the graph to pack.
            as_type: Type to tag the packet with. Defaults to ``type(value)``.

        Raises:
            PackError: The primitive failed; the subclass names the reason.
            TypeError: `as_type` is a class and `value` is not an instance of it.
        """
        return self._pack(value, as_type, block=False)

    def serialize(self, value: T, as_type: Any = None) -> Packet[T]:
        """
        Pack `value`, waiting for thunks that other threads are evaluating.

        A thunk that the calling thread itself is evaluating still raises `BlackHole`, since
        waiting for it would never return.
        """
        return self._pack(value, as_type, block=True)

    def deserialize(self, packet: Packet[T]) -> T:
        """
        Rebuild the value held by `packet`.

        Every call materializes an independent copy of the packed graph.

        Raises:
            Garbled: The primitive rejected the payload.
        """
        hook = self._hook_manager().hook
        start = time.perf_counter()
        status, root = self.graph_codec.unpack(packet._payload)
        if status != PackStatus.SUCCESS:
            error = Garbled(f"primitive status {status}")
            hook.on_unpack_error(packet=packet, error=error)
            raise error

        duration = time.perf_counter() - start
        logger.debug("Unpacked %r in %.6fs", packet, duration)
        hook.after_deserialize(packet=packet, result=root, duration=duration)
        return root

    def _pack(self, value: Any, as_type: Any, block: bool) -> Packet[Any]:
        type_tag = type(value) if as_type is None else as_type
        if _is_plain_class(type_tag) and not isinstance(value, type_tag):
            raise TypeError(
                f"Cannot tag a {describe_type(type(value))} value as {describe_type(type_tag)}"
            )

        hook = self._hook_manager().hook
        start = time.perf_counter()
        status, buffer = self.graph_codec.pack(value, block=block)
        if status != PackStatus.SUCCESS or buffer is None:
            error = _classify_pack_status(status)
            if error.kind is PackErrorKind.IMPOSSIBLE:
                logger.warning("Graph primitive reported an impossible case: %s", error)
            hook.on_pack_error(value=value, error=error)
            raise error

        packet: Packet[Any] = Packet(buffer, type_tag)
        duration = time.perf_counter() - start
        logger.debug("Packed %r in %.6fs", packet, duration)
        hook.after_serialize(packet=packet, duration=duration)
        return packet

    def _hook_manager(self) -> PluginManager:
        if self._plugins:
            return create_hook_manager_with_plugins(self._plugins)
        return get_global_plugin_manager()


def _is_plain_class(tp: Any) -> bool:
    # On 3.10, list[int] is an instance of type
    return isinstance(tp, type) and typing.get_origin(tp) is None


def _classify_pack_status(status: int) -> PackError:
    """Map a failed pack status to its error; statuses outside the contract are `Impossible`."""
    if status == PackStatus.SUCCESS:
        return Impossible("primitive reported success without a buffer")
    try:
        kind = PackStatus(status)
    except ValueError:
        return Impossible(f"unknown primitive status {status}")
    if kind is PackStatus.GARBLED:
        return Impossible("primitive reported garbled data while packing")
    return PackError.from_kind(int(kind))


_default_service = SerializationService()


def try_serialize(value: T, as_type: Any = None) -> Packet[T]:
    """Pack `value` with the default service. See `SerializationService.try_serialize`."""
    return _default_service.try_serialize(value, as_type)


def serialize(value: T, as_type: Any = None) -> Packet[T]:
    """Pack `value` with the default service. See `SerializationService.serialize`."""
    return _default_service.serialize(value, as_type)


def deserialize(packet: Packet[T]) -> T:
    """Unpack `packet` with the default service. See `SerializationService.deserialize`."""
    return _default_service.deserialize(packet)


__all__ = ["SerializationService", "deserialize", "serialize", "try_serialize"]
