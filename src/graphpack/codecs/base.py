"""Abstract base class and shared validation for packet wire codecs."""

from __future__ import annotations

from abc import ABC
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, TypeVar

from graphpack.exceptions import BinaryMismatch
from graphpack.exceptions import ParseError
from graphpack.exceptions import TypeMismatch
from graphpack.identity import ExecutableIdentity
from graphpack.identity import Fingerprint
from graphpack.identity import TypeIdentity
from graphpack.packet import Packet
from graphpack.utils import describe_type

T = TypeVar("T")


@dataclass(frozen=True)
class RecordHeader:
    """Identity header of an encoded packet record."""

    program: Fingerprint
    """Executable identity of the program that encoded the record."""

    type: Fingerprint
    """Type identity of the packed value."""

    size: int
    """Declared payload size in machine words."""

    @property
    def matches_program(self) -> bool:
        """Whether the record was encoded by the running program."""
        return self.program == ExecutableIdentity.current()


class PacketCodec(ABC):
    """
    Abstract base class for packet wire encodings.

    Every codec decodes in the same order, and a packet is only built once all checks pass:

    1. structural parse of the record (`ParseError`);
    2. program identity against the running program (`BinaryMismatch`);
    3. number of payload words against the declared size (`ParseError`);
    4. type identity against the requested type (`TypeMismatch`).
    """

    name: str
    """Short format name, used by file helpers and the CLI."""

    @abstractmethod
    def encode(self, packet: Packet[Any]) -> str | bytes:
        """Encode a packet, stamping it with the running program's identity."""
        ...

    @abstractmethod
    def decode(self, data: str | bytes, expected_type: type[T] | Any) -> Packet[T]:
        """
        Decode a record as a packet holding a value of `expected_type`.

        Raises:
            ParseError: The record is malformed or its word count differs from its size.
            BinaryMismatch: The record was encoded by a different program.
            TypeMismatch: The record holds a value of another type.
        """
        ...

    @abstractmethod
    def read_header(self, data: str | bytes) -> RecordHeader:
        """
        Parse only the identity header of a record, without validating it.

        Raises:
            ParseError: The header is malformed.
        """
        ...


def check_record(header: RecordHeader, word_count: int, expected_type: Any) -> None:
    """Run validation steps 2 to 4 on a structurally parsed record."""
    current = ExecutableIdentity.current()
    if header.program != current:
        raise BinaryMismatch(f"record from program {header.program}, running {current}")

    if word_count != header.size:
        raise ParseError(f"record declares {header.size} words but holds {word_count}")

    expected = TypeIdentity.of(expected_type)
    if header.type != expected:
        raise TypeMismatch(
            f"record holds type {header.type}, requested {describe_type(expected_type)} "
            f"({expected})"
        )
