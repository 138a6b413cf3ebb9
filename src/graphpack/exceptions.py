"""
Centralized exception classes for the graphpack library.

All graphpack-specific exceptions inherit from GraphpackError for easy catching. Every failure
of a pack, unpack or decode operation is a PackError subclass carrying the PackErrorKind that
identifies which member of the taxonomy occurred.
"""

from __future__ import annotations

from enum import IntEnum


class PackErrorKind(IntEnum):
    """
    Exhaustive taxonomy of packet failures.

    The first six members share their numeric values with the status codes returned by the graph
    primitive (see `graphpack.primitive.PackStatus`); the remaining three are raised by the
    codecs while validating an encoded record.
    """

    BLACKHOLE = 1
    NOBUFFER = 2
    CANNOT_PACK = 3
    UNSUPPORTED = 4
    IMPOSSIBLE = 5
    GARBLED = 6
    PARSE_ERROR = 7
    BINARY_MISMATCH = 8
    TYPE_MISMATCH = 9


_DESCRIPTIONS: dict[PackErrorKind, str] = {
    PackErrorKind.BLACKHOLE: "Packing hit a blackhole",
    PackErrorKind.NOBUFFER: "Buffer too small (increase GraphpackSettings.max_buffer_words)",
    PackErrorKind.CANNOT_PACK: "Data contain a value that cannot be packed (lock, queue, event)",
    PackErrorKind.UNSUPPORTED: "Contains an unsupported value kind (no packing support)",
    PackErrorKind.IMPOSSIBLE: "An impossible case happened. This is probably a bug.",
    PackErrorKind.GARBLED: "Garbled data for deserialisation",
    PackErrorKind.PARSE_ERROR: "Packet parse error",
    PackErrorKind.BINARY_MISMATCH: "Executable binaries do not match",
    PackErrorKind.TYPE_MISMATCH: "Packet data has unexpected type",
}


class GraphpackError(Exception):
    """Base exception for all graphpack errors."""


class PackError(GraphpackError):
    """
    Raised when a packet cannot be produced, decoded or consumed.

    Args:
        detail: Optional extra context appended to the standard description of the error kind.

    Examples:
        >>> err = PackError.from_kind(PackErrorKind.TYPE_MISMATCH)
        >>> isinstance(err, TypeMismatch)
        True
        >>> str(err)
        'Packet data has unexpected type'
    """

    kind: PackErrorKind

    def __init__(self, detail: str | None = None) -> None:
        message = _DESCRIPTIONS[self.kind]
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.detail = detail

    @staticmethod
    def from_kind(kind: PackErrorKind | int, detail: str | None = None) -> PackError:
        """
        Build the exception subclass that corresponds to an error kind.

        Args:
            kind: Error kind, or the integer value of one.
            detail: Optional extra context for the message.

        Raises:
            ValueError: If `kind` is not a member of the taxonomy.
        """
        return _BY_KIND[PackErrorKind(kind)](detail)


class BlackHole(PackError):
    """Packing reached a computation that another thread is currently evaluating."""

    kind = PackErrorKind.BLACKHOLE


class NoBuffer(PackError):
    """The packing buffer was exhausted."""

    kind = PackErrorKind.NOBUFFER


class CannotPack(PackError):
    """The graph contains an externally-synchronized mutable cell."""

    kind = PackErrorKind.CANNOT_PACK


class Unsupported(PackError):
    """The graph contains a value kind that has no packing support."""

    kind = PackErrorKind.UNSUPPORTED


class Impossible(PackError):
    """
    The graph primitive violated one of its own invariants.

    This is a bug signal rather than an expected condition, and callers should not try to
    recover from it.
    """

    kind = PackErrorKind.IMPOSSIBLE


class Garbled(PackError):
    """The payload failed structural validation while the graph was being reconstructed."""

    kind = PackErrorKind.GARBLED


class ParseError(PackError):
    """An encoded record was malformed, ambiguous or had the wrong size."""

    kind = PackErrorKind.PARSE_ERROR


class BinaryMismatch(PackError):
    """An encoded record was produced by a different program."""

    kind = PackErrorKind.BINARY_MISMATCH


class TypeMismatch(PackError):
    """An encoded record holds a value of a different type than the one requested."""

    kind = PackErrorKind.TYPE_MISMATCH


_BY_KIND: dict[PackErrorKind, type[PackError]] = {
    cls.kind: cls
    for cls in (
        BlackHole,
        NoBuffer,
        CannotPack,
        Unsupported,
        Impossible,
        Garbled,
        ParseError,
        BinaryMismatch,
        TypeMismatch,
    )
}
