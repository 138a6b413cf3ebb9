"""
Graph primitive: flattens a live object graph into a word buffer and back.

The `GraphCodec` interface is the boundary the typed packet layer is built on. It reports
failures as small integer status codes (`PackStatus`) rather than exceptions; translating those
codes into the error taxonomy is the job of `graphpack.service`.

`PickleGraphCodec` is the default implementation, built on cloudpickle so that functions,
lambdas and closures inside suspended computations can be captured.

Buffer layout::

    word 0          byte length N of the pickle stream
    words 1..       the pickle stream, zero-padded to a word boundary
"""

from __future__ import annotations

import logging
import pickle
import queue
import struct
import threading
from abc import ABC
from abc import abstractmethod
from enum import IntEnum
from typing import Any, Final

import cloudpickle
from typing_extensions import override

from graphpack.settings import GraphpackSettings
from graphpack.settings import get_global_settings
from graphpack.thunk import Thunk
from graphpack.thunk import ThunkState

logger = logging.getLogger(__name__)

WORD_SIZE: Final = struct.calcsize("P")
"""Size of a machine word in bytes."""

WORD_CODE: Final = "Q" if WORD_SIZE == 8 else "I"
"""`struct` format character of an unsigned machine word."""

_LENGTH_WORD = struct.Struct(f"={WORD_CODE}")

# Externally synchronized mutable cells: packing them would copy the cell and break the
# synchronization it provides.
_SYNCHRONIZED_TYPES: tuple[type, ...] = (
    type(threading.Lock()),
    type(threading.RLock()),
    threading.Condition,
    threading.Semaphore,
    threading.Event,
    threading.Barrier,
    queue.Queue,
    queue.SimpleQueue,
)


class PackStatus(IntEnum):
    """Status codes returned by a `GraphCodec`. Zero is success, anything else a failure."""

    SUCCESS = 0
    BLACKHOLE = 1
    NOBUFFER = 2
    CANNOT_PACK = 3
    UNSUPPORTED = 4
    IMPOSSIBLE = 5
    GARBLED = 6


class GraphCodec(ABC):
    """
    Abstract base class for graph primitives.

    Implementations flatten a graph reachable from a root into an opaque, word-aligned buffer
    and rebuild an equivalent, independently rooted graph from such a buffer. They never raise
    for expected failures; they return a status code instead.
    """

    @abstractmethod
    def pack(self, root: Any, block: bool = False) -> tuple[int, bytes | None]:
        """
        Flatten the graph reachable from `root`.

        Args:
            root: Root of the graph.
            block: Whether to wait for computations that other threads are evaluating. When
                False, such a computation yields `PackStatus.BLACKHOLE` immediately.

        Returns:
            ``(status, buffer)``; the buffer is None unless the status is success.
        """
        ...

    @abstractmethod
    def unpack(self, buffer: bytes) -> tuple[int, Any]:
        """
        Rebuild a graph from a buffer produced by `pack`.

        Returns:
            ``(status, root)``; the root is None unless the status is success.
        """
        ...


class _Abort(Exception):
    """Stops a pack in progress with a failure status."""

    def __init__(self, status: PackStatus, detail: str = "") -> None:
        super().__init__(detail or status.name)
        self.status = status


class _BoundedBuffer:
    """Write-only byte sink that aborts the pack once `limit` bytes are exceeded."""

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._size = 0
        self._chunks: list[bytes] = []

    def write(self, data: Any) -> int:
        chunk = bytes(data)
        self._size += len(chunk)
        if self._size > self._limit:
            raise _Abort(PackStatus.NOBUFFER, f"more than {self._limit} bytes")
        self._chunks.append(chunk)
        return len(chunk)

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)


class _GraphPickler(cloudpickle.Pickler):
    """Cloudpickle pickler that understands thunks and refuses synchronized cells."""

    def __init__(self, file: _BoundedBuffer, protocol: int, block: bool) -> None:
        super().__init__(file, protocol=protocol)
        self._block = block

    def reducer_override(self, obj: Any) -> Any:
        if isinstance(obj, _SYNCHRONIZED_TYPES):
            raise _Abort(PackStatus.CANNOT_PACK, type(obj).__qualname__)
        if isinstance(obj, Thunk):
            return self._reduce_thunk(obj)
        return super().reducer_override(obj)

    def _reduce_thunk(self, thunk: Thunk[Any]) -> tuple[Any, ...]:
        state, payload = thunk._snapshot()
        while state is ThunkState.EVALUATING:
            if not self._block or payload == threading.get_ident():
                raise _Abort(PackStatus.BLACKHOLE)
            thunk.wait()
            state, payload = thunk._snapshot()
        return thunk._reduce_snapshot(state, payload)


class PickleGraphCodec(GraphCodec):
    """
    Graph primitive built on cloudpickle.

    Args:
        max_buffer_words: Maximum buffer size in machine words, including the length word.
        protocol: Pickle protocol to use.

    Examples:
        >>> codec = PickleGraphCodec()
        >>> status, buffer = codec.pack([1, 2, 3])
        >>> status == PackStatus.SUCCESS and len(buffer) % WORD_SIZE == 0
        True
        >>> status, root = codec.unpack(buffer)
        >>> status == PackStatus.SUCCESS, root
        (True, [1, 2, 3])
    """

    def __init__(
        self,
        max_buffer_words: int = GraphpackSettings.max_buffer_words,
        protocol: int = GraphpackSettings.pickle_protocol,
    ) -> None:
        if max_buffer_words < 1:
            raise ValueError(f"max_buffer_words must be positive, got {max_buffer_words}")
        self.max_buffer_words = max_buffer_words
        self.protocol = protocol

    @classmethod
    def from_settings(cls, settings: GraphpackSettings | None = None) -> PickleGraphCodec:
        """Create a codec configured from `settings`, or from the global settings."""
        settings = settings or get_global_settings()
        return cls(max_buffer_words=settings.max_buffer_words, protocol=settings.pickle_protocol)

    @override
    def pack(self, root: Any, block: bool = False) -> tuple[int, bytes | None]:
        # The stream is padded up to a word boundary, so it may fill the remaining words exactly
        sink = _BoundedBuffer((self.max_buffer_words - 1) * WORD_SIZE)
        try:
            _GraphPickler(sink, self.protocol, block).dump(root)
        except _Abort as abort:
            logger.debug("Pack aborted with %s: %s", abort.status.name, abort)
            return abort.status, None
        except RecursionError:
            logger.debug("Pack exhausted the recursion limit")
            return PackStatus.NOBUFFER, None
        except pickle.PicklingError as e:
            # cloudpickle re-raises a recursion overflow as a PicklingError
            if isinstance(e.__cause__, RecursionError):
                logger.debug("Pack exhausted the recursion limit")
                return PackStatus.NOBUFFER, None
            logger.debug("Pack hit an unsupported value: %s", e)
            return PackStatus.UNSUPPORTED, None
        except (TypeError, AttributeError) as e:
            logger.debug("Pack hit an unsupported value: %s", e)
            return PackStatus.UNSUPPORTED, None
        except Exception:
            logger.warning("Unexpected failure while packing a graph", exc_info=True)
            return PackStatus.IMPOSSIBLE, None

        stream = sink.getvalue()
        padding = b"\x00" * (-len(stream) % WORD_SIZE)
        return PackStatus.SUCCESS, _LENGTH_WORD.pack(len(stream)) + stream + padding

    @override
    def unpack(self, buffer: bytes) -> tuple[int, Any]:
        data = bytes(buffer)
        if len(data) < WORD_SIZE or len(data) % WORD_SIZE:
            return PackStatus.GARBLED, None

        (length,) = _LENGTH_WORD.unpack_from(data)
        end = WORD_SIZE + length
        if end > len(data) or len(data) - end >= WORD_SIZE or data[end:].strip(b"\x00"):
            return PackStatus.GARBLED, None

        try:
            root = cloudpickle.loads(data[WORD_SIZE:end])
        except Exception as e:
            # A corrupted stream can fail in many ways; all of them mean the buffer is garbled
            logger.debug("Unpack failed: %r", e)
            return PackStatus.GARBLED, None
        return PackStatus.SUCCESS, root


__all__ = ["GraphCodec", "PackStatus", "PickleGraphCodec", "WORD_CODE", "WORD_SIZE"]
