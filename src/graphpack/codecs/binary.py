"""
Compact binary packet encoding.

Layout, all integers big-endian::

    program.hi  program.lo  type.hi  type.lo  word_count     5 x u64
    word_0 ... word_{word_count - 1}                          machine words
"""

from __future__ import annotations

import struct
from typing import Any, TypeVar

from typing_extensions import override

from graphpack.codecs.base import PacketCodec
from graphpack.codecs.base import RecordHeader
from graphpack.codecs.base import check_record
from graphpack.exceptions import ParseError
from graphpack.identity import ExecutableIdentity
from graphpack.identity import Fingerprint
from graphpack.packet import Packet
from graphpack.primitive import WORD_CODE
from graphpack.primitive import WORD_SIZE

T = TypeVar("T")

_HEADER = struct.Struct(">QQQQQ")


class BinaryCodec(PacketCodec):
    """
    Length-prefixed binary encoding of packets, meant for storage and transport.

    Examples:
        >>> from graphpack import try_serialize
        >>> codec = BinaryCodec()
        >>> packet = try_serialize({"a": 1})
        >>> codec.decode(codec.encode(packet), dict) == packet
        True
    """

    name = "binary"

    @override
    def encode(self, packet: Packet[Any]) -> bytes:
        program = ExecutableIdentity.current()
        type_fp = packet.type_fingerprint
        words = packet._words()
        header = _HEADER.pack(program.hi, program.lo, type_fp.hi, type_fp.lo, len(words))
        return header + struct.pack(f">{len(words)}{WORD_CODE}", *words)

    @override
    def decode(self, data: str | bytes, expected_type: type[T] | Any) -> Packet[T]:
        raw = _as_bytes(data)
        header = self.read_header(raw)

        body = raw[_HEADER.size :]
        if len(body) % WORD_SIZE:
            raise ParseError(f"payload of {len(body)} bytes is not word-aligned")
        word_count = len(body) // WORD_SIZE

        check_record(header, word_count, expected_type)
        words = struct.unpack(f">{word_count}{WORD_CODE}", body)
        return Packet._from_words(words, expected_type, header.type)

    @override
    def read_header(self, data: str | bytes) -> RecordHeader:
        raw = _as_bytes(data)
        if len(raw) < _HEADER.size:
            raise ParseError(f"record of {len(raw)} bytes is shorter than its header")
        p_hi, p_lo, t_hi, t_lo, size = _HEADER.unpack_from(raw)
        return RecordHeader(program=Fingerprint(p_hi, p_lo), type=Fingerprint(t_hi, t_lo), size=size)


def _as_bytes(data: str | bytes) -> bytes:
    if isinstance(data, str):
        raise ParseError("binary records must be bytes, not str")
    return bytes(data)


__all__ = ["BinaryCodec"]
