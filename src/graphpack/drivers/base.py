"""Storage backend interface used by `graphpack.store.CheckpointStore`."""

from __future__ import annotations

from abc import ABC
from abc import abstractmethod


class Driver(ABC):
    """
    Key-value storage for encoded packets and their metadata sidecars.

    A driver maps relative, ``/``-separated keys (``"model/state.pkt"``) to opaque byte strings.
    It never looks inside the bytes: encoding, identity checks and expiry belong to the store
    layered on top.
    """

    @abstractmethod
    def save(self, key: str, data: bytes) -> str:
        """
        Write `data` under `key`, overwriting whatever was there.

        Returns:
            Location of the written entry, for display.

        Raises:
            ValueError: If `key` is not a valid relative key.
        """
        ...

    @abstractmethod
    def load(self, key: str) -> bytes:
        """
        Read the entry stored under `key`.

        Raises:
            KeyError: No entry exists for `key`.
        """
        ...

    @abstractmethod
    def exists(self, key: str) -> bool: ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the entry for `key`; missing entries are ignored."""
        ...

    @abstractmethod
    def list_keys(self) -> list[str]:
        """Every stored key, in sorted order."""
        ...
