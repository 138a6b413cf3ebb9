"""
Human-readable packet encoding.

Records look like this (words are zero-padded to the machine word width)::

    Serialization Packet, size 6, program 3f2a...e1
    , type 9c0d...47
    0:	0x0000000000000029	0x0000000000000580	0x...	0x...
    4:	0x...	0x...
"""

from __future__ import annotations

import re
from typing import Any, TypeVar

from typing_extensions import override

from graphpack.codecs.base import PacketCodec
from graphpack.codecs.base import RecordHeader
from graphpack.codecs.base import check_record
from graphpack.exceptions import ParseError
from graphpack.identity import ExecutableIdentity
from graphpack.identity import Fingerprint
from graphpack.packet import Packet
from graphpack.primitive import WORD_SIZE

T = TypeVar("T")

WORDS_PER_ROW = 4
_HEX_WIDTH = 2 * WORD_SIZE
_WORD_LIMIT = 1 << (8 * WORD_SIZE)

_HEADER = re.compile(
    r"Serialization Packet, size (?P<size>[0-9]+), program (?P<program>[^\n]*?)[ \t]*\n"
    r", type (?P<type>[^\n]*?)[ \t]*(?:\n|\Z)"
)
_ROW = re.compile(r"(?P<index>[0-9]{1,20}):(?P<words>(?:[ \t]+0[xX][0-9a-fA-F]+)+)[ \t]*")


class TextCodec(PacketCodec):
    """
    Line-oriented text encoding of packets, meant to be read by humans.

    Examples:
        >>> from graphpack import try_serialize
        >>> codec = TextCodec()
        >>> packet = try_serialize([1, 2, 3])
        >>> text = codec.encode(packet)
        >>> text.startswith("Serialization Packet, size ")
        True
        >>> codec.decode(text, list) == packet
        True
    """

    name = "text"

    @override
    def encode(self, packet: Packet[Any]) -> str:
        words = packet._words()
        lines = [
            f"Serialization Packet, size {len(words)}, program {ExecutableIdentity.current()}",
            f", type {packet.type_fingerprint}",
        ]
        for start in range(0, len(words), WORDS_PER_ROW):
            row = words[start : start + WORDS_PER_ROW]
            lines.append(f"{start}:" + "".join(f"\t0x{w:0{_HEX_WIDTH}x}" for w in row))
        return "\n".join(lines) + "\n"

    @override
    def decode(self, data: str | bytes, expected_type: type[T] | Any) -> Packet[T]:
        header, words = self.parse(data)
        check_record(header, len(words), expected_type)
        return Packet._from_words(words, expected_type, header.type)

    @override
    def read_header(self, data: str | bytes) -> RecordHeader:
        return self._parse_header(_as_text(data))[0]

    def parse(self, data: str | bytes) -> tuple[RecordHeader, tuple[int, ...]]:
        """
        Structurally parse a record without validating its identities or size.

        Returns:
            The header as written and every word found in the rows.

        Raises:
            ParseError: The header or a row is malformed.
        """
        text = _as_text(data)
        header, end = self._parse_header(text)

        words: list[int] = []
        for line in text[end:].split("\n"):
            if not line.strip():
                continue
            match = _ROW.fullmatch(line)
            if match is None:
                raise ParseError(f"malformed row {line!r}")
            if int(match["index"]) != len(words):
                raise ParseError(f"row starts at index {match['index']}, expected {len(words)}")
            for token in match["words"].split():
                word = int(token, 16)
                if word >= _WORD_LIMIT:
                    raise ParseError(f"word {token} does not fit in {WORD_SIZE} bytes")
                words.append(word)

        return header, tuple(words)

    @staticmethod
    def _parse_header(text: str) -> tuple[RecordHeader, int]:
        match = _HEADER.match(text)
        if match is None:
            raise ParseError("malformed packet header")
        try:
            header = RecordHeader(
                program=Fingerprint.from_hex(match["program"]),
                type=Fingerprint.from_hex(match["type"]),
                size=int(match["size"]),
            )
        except ValueError as e:
            raise ParseError(str(e)) from e
        return header, match.end()


def _as_text(data: str | bytes) -> str:
    if isinstance(data, str):
        return data
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"record is not valid UTF-8: {e}") from e


__all__ = ["TextCodec", "WORDS_PER_ROW"]
