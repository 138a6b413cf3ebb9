"""Driver implementations for reading and writing bytes to various storage backends."""

from graphpack.drivers.base import Driver
from graphpack.drivers.file import FileDriver

__all__ = [
    "Driver",
    "FileDriver",
]
