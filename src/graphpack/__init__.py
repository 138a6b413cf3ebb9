"""Graphpack: typed, identity-checked snapshots of live Python object graphs."""

__version__ = "0.1.0"

from . import settings
from .codecs import BinaryCodec
from .codecs import TextCodec
from .exceptions import BinaryMismatch
from .exceptions import BlackHole
from .exceptions import CannotPack
from .exceptions import Garbled
from .exceptions import GraphpackError
from .exceptions import Impossible
from .exceptions import NoBuffer
from .exceptions import PackError
from .exceptions import PackErrorKind
from .exceptions import ParseError
from .exceptions import TypeMismatch
from .exceptions import Unsupported
from .fileio import decode_from_file
from .fileio import encode_to_file
from .identity import ExecutableIdentity
from .identity import Fingerprint
from .identity import TypeIdentity
from .packet import Packet
from .service import SerializationService
from .service import deserialize
from .service import serialize
from .service import try_serialize
from .store import CHECKPOINT_MISS
from .store import CheckpointStore
from .thunk import Thunk

__all__ = [
    "BinaryCodec",
    "BinaryMismatch",
    "BlackHole",
    "CHECKPOINT_MISS",
    "CannotPack",
    "CheckpointStore",
    "ExecutableIdentity",
    "Fingerprint",
    "Garbled",
    "GraphpackError",
    "Impossible",
    "NoBuffer",
    "Packet",
    "PackError",
    "PackErrorKind",
    "ParseError",
    "SerializationService",
    "TextCodec",
    "Thunk",
    "TypeIdentity",
    "TypeMismatch",
    "Unsupported",
    "decode_from_file",
    "deserialize",
    "encode_to_file",
    "serialize",
    "settings",
    "try_serialize",
]
