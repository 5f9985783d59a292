"""
binseg - named, digest-verified segments of fixed-format binary files

Declare the byte layout of a binary artifact (firmware image, ROM dump,
container file) once and get a class with one read-only accessor per segment.
Loading an artifact verifies its SHA-256 digest before any segment is exposed.
"""

from .segments import SegmentDescriptor
from .schema import SegmentSchema, SchemaBuilder
from .options import LoadOptions
from .artifact import BinaryArtifact
from .compiler import compile_schema, segment_binary
from .codec import sha256_hex, digest_matches
from .runtime.errors import *

__version__ = "0.3.0"
__all__ = [
    # Declaration
    "SegmentDescriptor",
    "SegmentSchema",
    "SchemaBuilder",
    "compile_schema",
    "segment_binary",

    # Loading
    "BinaryArtifact",
    "LoadOptions",

    # Hashing
    "sha256_hex",
    "digest_matches",

    # Errors
    "ErrorCode",
    "BinsegError",
    "SchemaError",
    "ArtifactIOError",
    "IntegrityError",
    "SegmentBoundsError",
    "SegmentNotFoundError",
]
