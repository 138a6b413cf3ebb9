"""Helpers combining a packet codec with file storage through fsspec."""

from __future__ import annotations

import struct
from typing import Any, TypeVar

import fsspec

from graphpack.codecs import get_codec
from graphpack.exceptions import ParseError
from graphpack.packet import Packet
from graphpack.service import deserialize
from graphpack.service import try_serialize

T = TypeVar("T")

_DECODE_FAILURES = (ValueError, struct.error, UnicodeDecodeError, EOFError)


def write_packet(path: str, packet: Packet[Any], format: str = "binary") -> None:
    """
    Encode `packet` and write it to `path`.

    Args:
        path: Local path or fsspec URL (``s3://...``, ``memory://...``).
        packet: Packet to write.
        format: ``"binary"`` or ``"text"``.
    """
    data = get_codec(format).encode(packet)
    if isinstance(data, str):
        data = data.encode("utf-8")
    with fsspec.open(path, "wb") as f:
        f.write(data)


def read_packet(path: str, expected_type: type[T] | Any, format: str = "binary") -> Packet[T]:
    """
    Read and decode a packet holding a value of `expected_type`.

    Raises:
        FileNotFoundError: If `path` does not exist.
        PackError: If the record cannot be decoded. Low-level decoding failures are reported as
            `ParseError`.
    """
    codec = get_codec(format)
    with fsspec.open(path, "rb") as f:
        data = f.read()
    try:
        return codec.decode(data, expected_type)
    except _DECODE_FAILURES as e:
        raise ParseError(str(e)) from e


def encode_to_file(
    path: str, value: Any, as_type: Any = None, format: str = "binary"
) -> Packet[Any]:
    """
    Pack `value` and write the encoded packet to `path`.

    Examples:
        >>> import os, tempfile
        >>> path = os.path.join(tempfile.mkdtemp(), "numbers.pkt")
        >>> _ = encode_to_file(path, [1, 2, 3])
        >>> decode_from_file(path, list)
        [1, 2, 3]

    Returns:
        The packet that was written.
    """
    packet = try_serialize(value, as_type)
    write_packet(path, packet, format)
    return packet


def decode_from_file(path: str, expected_type: type[T] | Any, format: str = "binary") -> T:
    """Read a packet from `path` and rebuild the value it holds."""
    return deserialize(read_packet(path, expected_type, format))


__all__ = ["decode_from_file", "encode_to_file", "read_packet", "write_packet"]
