"""Typed, immutable packets wrapping a flattened graph."""

from __future__ import annotations

import struct
from typing import Any, Generic, Sequence, TypeVar

from graphpack.exceptions import TypeMismatch
from graphpack.identity import Fingerprint
from graphpack.identity import TypeIdentity
from graphpack.primitive import WORD_CODE
from graphpack.primitive import WORD_SIZE
from graphpack.utils import build_repr
from graphpack.utils import describe_type

T = TypeVar("T")


class Packet(Generic[T]):
    """
    An opaque, type-tagged, immutable buffer holding a packed graph.

    Packets are produced by `graphpack.try_serialize` or by decoding an encoded record, and are
    consumed by `graphpack.deserialize`. The payload is deliberately not part of the public
    interface; only its size in machine words is.

    Args:
        payload: Word-aligned buffer produced by a graph primitive.
        type_tag: The type of the packed root value.
        type_fingerprint: Type fingerprint read from an encoded record. When given, it must match
            the identity of `type_tag`.

    Raises:
        ValueError: If the payload is not a whole number of machine words.
        TypeMismatch: If `type_fingerprint` does not identify `type_tag`.
    """

    __slots__ = ("_payload", "_type_tag", "_type_fingerprint")

    _payload: bytes
    _type_tag: Any
    _type_fingerprint: Fingerprint

    def __init__(
        self,
        payload: bytes,
        type_tag: Any,
        type_fingerprint: Fingerprint | None = None,
    ) -> None:
        payload = bytes(payload)
        if len(payload) % WORD_SIZE:
            raise ValueError(
                f"Packet payload must be a multiple of {WORD_SIZE} bytes, got {len(payload)}"
            )

        expected = TypeIdentity.of(type_tag)
        if type_fingerprint is not None and type_fingerprint != expected:
            raise TypeMismatch(
                f"record holds type {type_fingerprint}, requested {describe_type(type_tag)} "
                f"({expected})"
            )

        object.__setattr__(self, "_payload", payload)
        object.__setattr__(self, "_type_tag", type_tag)
        object.__setattr__(self, "_type_fingerprint", expected)

    @classmethod
    def _from_words(
        cls, words: Sequence[int], type_tag: Any, type_fingerprint: Fingerprint | None = None
    ) -> Packet[Any]:
        return cls(struct.pack(f"={len(words)}{WORD_CODE}", *words), type_tag, type_fingerprint)

    @property
    def size(self) -> int:
        """Payload size in machine words."""
        return len(self._payload) // WORD_SIZE

    @property
    def type_tag(self) -> Any:
        return self._type_tag

    @property
    def type_fingerprint(self) -> Fingerprint:
        return self._type_fingerprint

    def _words(self) -> tuple[int, ...]:
        return struct.unpack(f"={self.size}{WORD_CODE}", self._payload)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Packet):
            return NotImplemented
        return (
            self._payload == other._payload and self._type_fingerprint == other._type_fingerprint
        )

    def __hash__(self) -> int:
        return hash((self._payload, self._type_fingerprint))

    def __repr__(self) -> str:
        return build_repr("Packet", describe_type(self._type_tag), kwargs={"size": self.size})

    def __str__(self) -> str:
        from graphpack.codecs.text import TextCodec

        return TextCodec().encode(self)


__all__ = ["Packet"]
