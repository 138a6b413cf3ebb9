"""Hook specifications for packet lifecycle events."""

from typing import Any

from graphpack.exceptions import PackError
from graphpack.hooks.markers import hook_spec
from graphpack.packet import Packet


class PacketSpecs:
    """Hook specifications fired by `SerializationService`."""

    @hook_spec
    def after_serialize(self, packet: Packet[Any], duration: float) -> None:
        """
        Called after a value was packed successfully.

        Args:
            packet: The packet produced.
            duration: Time taken to pack, in seconds.
        """

    @hook_spec
    def on_pack_error(self, value: Any, error: PackError) -> None:
        """
        Called when packing a value failed, before the error is raised to the caller.

        Args:
            value: Root of the graph that could not be packed.
            error: The error about to be raised.
        """

    @hook_spec
    def after_deserialize(self, packet: Packet[Any], result: Any, duration: float) -> None:
        """
        Called after a packet was unpacked successfully.

        Args:
            packet: The packet consumed.
            result: The reconstructed value.
            duration: Time taken to unpack, in seconds.
        """

    @hook_spec
    def on_unpack_error(self, packet: Packet[Any], error: PackError) -> None:
        """
        Called when unpacking a packet failed, before the error is raised to the caller.

        Args:
            packet: The packet that could not be unpacked.
            error: The error about to be raised.
        """
