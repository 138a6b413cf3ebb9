"""Wire encodings for packets."""

from graphpack.codecs.base import PacketCodec
from graphpack.codecs.base import RecordHeader
from graphpack.codecs.binary import BinaryCodec
from graphpack.codecs.text import TextCodec

_CODECS: dict[str, type[PacketCodec]] = {
    BinaryCodec.name: BinaryCodec,
    TextCodec.name: TextCodec,
}


def get_codec(format: str) -> PacketCodec:
    """
    Return a codec instance for a format name (``"binary"`` or ``"text"``).

    Raises:
        ValueError: If the format is unknown.
    """
    try:
        return _CODECS[format]()
    except KeyError:
        raise ValueError(
            f"Unknown packet format '{format}', expected one of {sorted(_CODECS)}"
        ) from None


def sniff_format(data: bytes) -> str:
    """Guess the format of an encoded record from its first bytes."""
    if data.startswith(b"Serialization Packet"):
        return TextCodec.name
    return BinaryCodec.name


__all__ = ["BinaryCodec", "PacketCodec", "RecordHeader", "TextCodec", "get_codec", "sniff_format"]
