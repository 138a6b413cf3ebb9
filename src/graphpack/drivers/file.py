"""File-based driver using fsspec."""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from typing_extensions import override

from graphpack.drivers.base import Driver

if TYPE_CHECKING:
    from fsspec import AbstractFileSystem


class FileDriver(Driver):
    """
    Stores each key as a file below a base directory, on any fsspec filesystem.

    Keys are relative, ``/``-separated paths; absolute keys and ``..`` segments are rejected so
    that a driver never writes outside its base directory.

    Args:
        base_path: Base directory or URL (e.g. ``"/var/checkpoints"``, ``"memory://ckpt"``,
            ``"s3://bucket/ckpt"``).
        fs: Filesystem to use. If not provided, it is derived from the protocol of `base_path`.

    Examples:
        >>> driver = FileDriver("memory://doctest-driver")
        >>> _ = driver.save("a/b.bin", b"hello")
        >>> driver.load("a/b.bin")
        b'hello'
        >>> driver.list_keys()
        ['a/b.bin']
    """

    def __init__(self, base_path: str, fs: AbstractFileSystem | None = None) -> None:
        from fsspec.core import url_to_fs

        if fs is None:
            fs, path = url_to_fs(base_path)
        else:
            path = fs._strip_protocol(base_path)

        self.fs = fs
        self.base_path = path.rstrip("/") or "/"
        self.fs.mkdirs(self.base_path, exist_ok=True)

    def _full_path(self, key: str) -> str:
        parts = key.replace("\\", "/").split("/")
        if not key or key.startswith(("/", "\\")) or any(p in ("", ".", "..") for p in parts):
            raise ValueError(f"Invalid storage key {key!r}: must be a relative path")
        return posixpath.join(self.base_path, *parts)

    @override
    def save(self, key: str, data: bytes) -> str:
        path = self._full_path(key)
        self.fs.mkdirs(posixpath.dirname(path), exist_ok=True)
        with self.fs.open(path, "wb") as f:
            f.write(data)
        return path

    @override
    def load(self, key: str) -> bytes:
        path = self._full_path(key)
        if not self.fs.exists(path):
            raise KeyError(f"Key '{key}' not found")
        with self.fs.open(path, "rb") as f:
            return f.read()

    @override
    def exists(self, key: str) -> bool:
        return self.fs.exists(self._full_path(key))

    @override
    def delete(self, key: str) -> None:
        path = self._full_path(key)
        if self.fs.exists(path):
            self.fs.rm(path)

    @override
    def list_keys(self) -> list[str]:
        prefix = self.base_path.rstrip("/") + "/"
        keys = []
        for path in self.fs.find(self.base_path):
            normalized = path.replace("\\", "/")
            if normalized.startswith(prefix):
                keys.append(normalized[len(prefix) :])
        return sorted(keys)
