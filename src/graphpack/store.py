"""Named checkpoints of live values, stored as binary packets through a Driver."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, TypeVar

from graphpack.codecs.binary import BinaryCodec
from graphpack.drivers.base import Driver
from graphpack.identity import ExecutableIdentity
from graphpack.service import SerializationService

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DATA_SUFFIX = ".pkt"
_META_SUFFIX = ".meta.json"


class CheckpointMiss:
    """Sentinel type returned by `CheckpointStore.get` when no usable checkpoint exists."""

    def __repr__(self) -> str:
        return "CHECKPOINT_MISS"


CHECKPOINT_MISS = CheckpointMiss()


class CheckpointStore:
    """
    Checkpoint store saving values as binary packets on a Driver.

    Each checkpoint is two entries: the packet itself and a JSON metadata sidecar holding the
    timestamp, TTL and the identities stamped on the packet.

    Layout::

        base_path/
            model/state.pkt             # binary packet
            model/state.pkt.meta.json   # {"timestamp": ..., "ttl": ..., "program": ..., ...}

    Only a missing or expired checkpoint is a miss. A checkpoint written by another program, or
    holding another type, raises the corresponding `PackError`.

    Args:
        driver: A Driver instance or a base path/URL (creates a FileDriver).
        service: Serialization service used to pack and unpack values.

    Examples:
        >>> store = CheckpointStore("memory://doctest-checkpoints")
        >>> _ = store.put("numbers", [1, 2, 3], ttl=3600)
        >>> store.get("numbers", list)
        [1, 2, 3]
        >>> store.invalidate("numbers")
        >>> store.get("numbers", list)
        CHECKPOINT_MISS
    """

    def __init__(self, driver: Driver | str, service: SerializationService | None = None) -> None:
        if isinstance(driver, str):
            from graphpack.drivers import FileDriver

            self._driver: Driver = FileDriver(driver)
        else:
            self._driver = driver
        self._service = service or SerializationService()
        self._codec = BinaryCodec()

    def put(self, key: str, value: Any, ttl: float | None = None, as_type: Any = None) -> str:
        """
        Pack `value` and store it as checkpoint `key`.

        Args:
            key: Checkpoint name; may contain ``/`` to group checkpoints.
            value: Value to checkpoint.
            ttl: Time-to-live in seconds. None means no expiration.
            as_type: Type to tag the packet with. Defaults to ``type(value)``.

        Returns:
            The path where the packet was stored.
        """
        packet = self._service.try_serialize(value, as_type)
        path = self._driver.save(key + _DATA_SUFFIX, self._codec.encode(packet))

        metadata = {
            "timestamp": time.time(),
            "ttl": ttl,
            "program": str(ExecutableIdentity.current()),
            "type": str(packet.type_fingerprint),
            "size": packet.size,
        }
        self._driver.save(key + _DATA_SUFFIX + _META_SUFFIX, json.dumps(metadata).encode("utf-8"))
        logger.debug("Stored checkpoint '%s' (%d words)", key, packet.size)
        return path

    def get(self, key: str, expected_type: type[T] | Any) -> T | CheckpointMiss:
        """
        Restore checkpoint `key` as a value of `expected_type`.

        Returns:
            The restored value, or ``CHECKPOINT_MISS`` if the checkpoint does not exist or has
            expired. Expired checkpoints are removed.
        """
        data_key = key + _DATA_SUFFIX
        if not self._driver.exists(data_key):
            return CHECKPOINT_MISS

        if self._expired(key):
            logger.debug("Checkpoint '%s' expired", key)
            self.invalidate(key)
            return CHECKPOINT_MISS

        packet = self._codec.decode(self._driver.load(data_key), expected_type)
        return self._service.deserialize(packet)

    def exists(self, key: str) -> bool:
        return self._driver.exists(key + _DATA_SUFFIX)

    def invalidate(self, key: str) -> None:
        """Remove a checkpoint. Safe to call on non-existent checkpoints."""
        self._driver.delete(key + _DATA_SUFFIX)
        self._driver.delete(key + _DATA_SUFFIX + _META_SUFFIX)

    def keys(self) -> list[str]:
        """Names of all stored checkpoints, sorted."""
        return [
            k[: -len(_DATA_SUFFIX)] for k in self._driver.list_keys() if k.endswith(_DATA_SUFFIX)
        ]

    def clear(self) -> None:
        """Remove all checkpoints."""
        for key in self._driver.list_keys():
            self._driver.delete(key)

    def _expired(self, key: str) -> bool:
        meta_key = key + _DATA_SUFFIX + _META_SUFFIX
        if not self._driver.exists(meta_key):
            return False
        try:
            metadata = json.loads(self._driver.load(meta_key).decode("utf-8"))
            ttl = metadata.get("ttl")
            return ttl is not None and time.time() - metadata["timestamp"] > ttl
        except (json.JSONDecodeError, UnicodeDecodeError, AttributeError, KeyError, TypeError):
            logger.warning("Ignoring unreadable metadata for checkpoint '%s'", key)
            return False


__all__ = ["CHECKPOINT_MISS", "CheckpointMiss", "CheckpointStore"]
