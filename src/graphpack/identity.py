"""
Identity fingerprints for programs and types.

A `Fingerprint` is an opaque 128-bit value with equality as its only meaningful operation. Two
kinds are used to guard encoded packets:

- `ExecutableIdentity` fingerprints the running program. Packets reference code by location, so
  they may only be materialized by the very program that produced them.
- `TypeIdentity` fingerprints a type descriptor, so a packet is never decoded as a value of a
  different type than the one it was packed as.
"""

from __future__ import annotations

import hashlib
import importlib.machinery
import inspect
import os
import struct
import sys
import threading
import typing
import weakref
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable

from graphpack.settings import get_global_settings

_HALF_MASK = (1 << 64) - 1
_PAIR = struct.Struct(">QQ")
_CHUNK_SIZE = 1 << 20
_CODE_SUFFIXES = (".py", *importlib.machinery.EXTENSION_SUFFIXES)
_SOURCE_CACHE: weakref.WeakKeyDictionary[type, str] = weakref.WeakKeyDictionary()


@dataclass(frozen=True)
class Fingerprint:
    """
    Opaque 128-bit identity value, stored as two unsigned 64-bit words.

    Examples:
        >>> fp = Fingerprint(1, 255)
        >>> str(fp)
        '000000000000000100000000000000ff'
        >>> Fingerprint.from_hex(str(fp)) == fp
        True
    """

    hi: int
    lo: int

    def __post_init__(self) -> None:
        for word in (self.hi, self.lo):
            if not 0 <= word <= _HALF_MASK:
                raise ValueError(f"Fingerprint words must be unsigned 64-bit integers, got {word}")

    @classmethod
    def from_digest(cls, digest: bytes) -> Fingerprint:
        """Build a fingerprint from the first 16 bytes of a hash digest."""
        if len(digest) < _PAIR.size:
            raise ValueError(f"Digest must hold at least {_PAIR.size} bytes, got {len(digest)}")
        return cls(*_PAIR.unpack_from(digest))

    @classmethod
    def from_hex(cls, text: str) -> Fingerprint:
        """
        Parse the 32-digit hexadecimal form produced by `str()`.

        Raises:
            ValueError: If `text` is not exactly 32 hexadecimal digits.
        """
        if len(text) != 32 or any(c not in "0123456789abcdefABCDEF" for c in text):
            raise ValueError(f"Fingerprint must be 32 hexadecimal digits, got {text!r}")
        return cls(int(text[:16], 16), int(text[16:], 16))

    @classmethod
    def from_bytes(cls, data: bytes) -> Fingerprint:
        """Parse the 16-byte big-endian form produced by `to_bytes()`."""
        return cls(*_PAIR.unpack(data))

    def to_bytes(self) -> bytes:
        return _PAIR.pack(self.hi, self.lo)

    def __str__(self) -> str:
        return f"{self.hi:016x}{self.lo:016x}"


class ExecutableIdentity:
    """
    Process-wide fingerprint of the running program.

    The interpreter binary and the program's main script are hashed together with the interpreter
    version, unless `GraphpackSettings.executable_path` names the files to hash instead. The
    source and extension files of every non-standard-library package loaded at that moment are
    hashed as well (see `module_files`), since packed functions and classes refer to that code
    by name. The value is computed on first use, at most once even under concurrent first use,
    and is never recomputed for the lifetime of the process, so import the modules whose code
    packets refer to before the first pack or decode.
    """

    _cached: ClassVar[Fingerprint | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def current(cls) -> Fingerprint:
        """Return the fingerprint of the running program."""
        cached = cls._cached
        if cached is not None:
            return cached

        with cls._lock:
            if cls._cached is None:
                cls._cached = cls._compute()
            return cls._cached

    @classmethod
    def _compute(cls) -> Fingerprint:
        h = hashlib.sha256()
        h.update(sys.version.encode())
        h.update(sys.implementation.cache_tag.encode() if sys.implementation.cache_tag else b"")
        for path in program_files():
            h.update(path.encode())
            _feed_file(h, path)
        if get_global_settings().hash_loaded_modules:
            for name, path in module_files():
                h.update(f"module {name}\n".encode())
                _feed_file(h, path)
        return Fingerprint.from_digest(h.digest())

    @classmethod
    def _reset(cls) -> None:
        """Forget the cached fingerprint. Only meant for tests."""
        with cls._lock:
            cls._cached = None


def program_files() -> list[str]:
    """
    List the files that make up the running program, in hashing order.

    Returns:
        `GraphpackSettings.executable_path` when set, otherwise the interpreter binary followed
        by the ``__main__`` script, keeping only the files that exist.
    """
    configured = get_global_settings().executable_path
    if configured is not None:
        return [os.path.abspath(p) for p in configured]

    candidates: list[str] = []
    if sys.executable:
        candidates.append(sys.executable)
    main_file = getattr(sys.modules.get("__main__"), "__file__", None)
    if main_file:
        candidates.append(main_file)
    return [os.path.abspath(p) for p in candidates if os.path.isfile(p)]


def module_files() -> list[tuple[str, str]]:
    """
    List the code files of the loaded packages that are not part of the standard library.

    Every top-level package present in `sys.modules` contributes all of its ``.py`` and extension
    module files, whether or not each submodule has been imported yet, so lazily imported
    submodules do not change the result. Single-file modules contribute their own file.

    Returns:
        ``(name, path)`` pairs sorted by package name then path, where `name` is the file's path
        relative to its package root with ``/`` separators.
    """
    files: list[tuple[str, str]] = []
    for top in sorted({name.partition(".")[0] for name in list(sys.modules)}):
        if top in sys.stdlib_module_names or top in ("__main__", "__mp_main__"):
            continue
        module = sys.modules.get(top)
        if module is None:
            continue
        search_path = getattr(module, "__path__", None)
        if search_path is not None:
            for root in sorted(set(search_path)):
                files.extend(_package_files(top, root))
        else:
            path = getattr(module, "__file__", None)
            if isinstance(path, str) and path.endswith(_CODE_SUFFIXES) and os.path.isfile(path):
                files.append((top, path))
    return files


def _package_files(top: str, root: str) -> list[tuple[str, str]]:
    if not isinstance(root, str) or not os.path.isdir(root):
        return []
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d != "__pycache__")
        for filename in sorted(filenames):
            if filename.endswith(_CODE_SUFFIXES):
                path = os.path.join(dirpath, filename)
                relative = os.path.relpath(path, root).replace(os.sep, "/")
                found.append((f"{top}/{relative}", path))
    return found


def _feed_file(h: Any, path: str) -> None:
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)


class TypeIdentity:
    """
    Fingerprints of type descriptors.

    A class is identified by its module, qualified name, bases, member names and source text, so
    redefining a class under the same name yields a different identity. Parameterised generics
    fold in the identities of their arguments (``list[int]`` differs from ``list[str]``). Any
    other typing form is identified by its ``repr``.

    Examples:
        >>> TypeIdentity.of(list[int]) == TypeIdentity.of(list[int])
        True
        >>> TypeIdentity.of(list[int]) == TypeIdentity.of(list[str])
        False
    """

    @staticmethod
    def of(tp: Any) -> Fingerprint:
        h = hashlib.sha256()
        _feed_type(h, tp)
        return Fingerprint.from_digest(h.digest())


def _feed_type(h: Any, tp: Any) -> None:
    origin = typing.get_origin(tp)
    if origin is not None:
        h.update(b"generic(")
        _feed_type(h, origin)
        _feed_all(h, typing.get_args(tp))
        h.update(b")")
    elif isinstance(tp, type):
        h.update(f"class {tp.__module__}.{tp.__qualname__}\n".encode())
        for base in tp.__mro__[1:]:
            h.update(f"base {base.__module__}.{base.__qualname__}\n".encode())
        h.update(f"members {sorted(vars(tp))}\n".encode())
        h.update(_class_source(tp).encode())
    elif isinstance(tp, (list, tuple)):
        h.update(b"[")
        _feed_all(h, tp)
        h.update(b"]")
    else:
        h.update(f"form {tp!r}\n".encode())


def _feed_all(h: Any, types: Iterable[Any]) -> None:
    for arg in types:
        _feed_type(h, arg)
        h.update(b",")


def _class_source(tp: type) -> str:
    # Read once per class object, so editing the file later does not change a loaded class
    source = _SOURCE_CACHE.get(tp)
    if source is None:
        try:
            source = inspect.getsource(tp)
        except (OSError, TypeError):
            # Builtins and interactively defined classes have no retrievable source
            source = ""
        _SOURCE_CACHE[tp] = source
    return source


__all__ = [
    "ExecutableIdentity",
    "Fingerprint",
    "TypeIdentity",
    "module_files",
    "program_files",
]
