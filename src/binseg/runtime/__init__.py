"""Runtime helpers for binseg"""

from .errors import (
    ErrorCode,
    BinsegError,
    SchemaError,
    ArtifactIOError,
    IntegrityError,
    SegmentBoundsError,
    SegmentNotFoundError,
)

__all__ = [
    "ErrorCode",
    "BinsegError",
    "SchemaError",
    "ArtifactIOError",
    "IntegrityError",
    "SegmentBoundsError",
    "SegmentNotFoundError",
]
