"""
Verified binary artifacts.

BinaryArtifact is the base class of every class generated from a segment
schema. Constructing an artifact verifies the SHA-256 digest of its buffer,
so segment accessors are only reachable on verified bytes.
"""

from __future__ import annotations
from typing import ClassVar, Dict, Iterator, List, Optional, Tuple, Union
import logging
import os

from .codec.hashes import digest_matches, sha256_hex, BytesLike
from .options import LoadOptions, DEFAULT_LOAD_OPTIONS
from .runtime.errors import (
    ArtifactIOError,
    ErrorCode,
    IntegrityError,
    SegmentBoundsError,
    SegmentNotFoundError,
    error_from_os_error,
)
from .schema import SegmentSchema
from .segments import SegmentDescriptor

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class BinaryArtifact:
    """
    Immutable, digest-verified contents of a binary file.

    Not used directly: compile a SegmentSchema to get a subclass with one
    read-only property per declared segment.
    """

    __slots__ = ("_data", "_digest", "_path")

    schema: ClassVar[Optional[SegmentSchema]] = None
    expected_digest: ClassVar[str] = ""

    def __init__(self, data: BytesLike, *, path: Optional[PathLike] = None,
                 options: Optional[LoadOptions] = None):
        """
        Verify a buffer and wrap it.

        Args:
            data: Complete contents of the artifact
            path: File the contents were read from, if any
            options: Load options, defaults apply when None

        Raises:
            TypeError: If the class was not compiled from a schema
            ArtifactIOError: If the buffer exceeds options.max_size
            IntegrityError: If the digest does not match the schema
            SegmentBoundsError: If a segment does not fit the buffer and
                options.check_bounds is set
        """
        schema = type(self).schema
        if schema is None:
            raise TypeError(
                f"{type(self).__name__} has no schema; compile a SegmentSchema "
                f"to create an artifact class"
            )
        if options is None:
            options = DEFAULT_LOAD_OPTIONS
        path = os.fspath(path) if path is not None else None

        # Size is checked on a view so oversized buffers are never copied
        view = memoryview(data)
        _check_size(view.nbytes, options, path)
        data = view.tobytes()

        if not digest_matches(data, schema.digest):
            digest = sha256_hex(data)
            logger.warning(
                "Digest mismatch for %s (path=%s): expected %s, got %s",
                schema.name, path, schema.digest, digest,
            )
            raise IntegrityError(schema.digest, digest, path=path, type_name=schema.name)

        if options.check_bounds:
            _raise_out_of_bounds(schema, schema.out_of_bounds(len(data)), len(data))

        self._data = data
        self._digest = schema.digest
        self._path = path
        logger.debug("Loaded %s (%d bytes) from %s", schema.name, len(data), path or "<memory>")

    @classmethod
    def from_file(cls, path: PathLike, options: Optional[LoadOptions] = None) -> BinaryArtifact:
        """
        Read a file and verify it against the schema.

        The whole file is read into memory, hashed with SHA-256 and compared
        with the schema's digest before the artifact is created.

        Args:
            path: Path of the binary file
            options: Load options, defaults apply when None

        Returns:
            Verified artifact instance

        Raises:
            ArtifactIOError: If the file cannot be opened or read
            IntegrityError: If the file is not the one the schema describes
            SegmentBoundsError: If a declared segment lies beyond the end of
                the file
        """
        if options is None:
            options = DEFAULT_LOAD_OPTIONS
        try:
            with open(path, "rb") as handle:
                if options.max_size is not None:
                    _check_size(os.fstat(handle.fileno()).st_size, options, os.fspath(path))
                data = handle.read()
        except ArtifactIOError:
            raise
        except OSError as e:
            error = error_from_os_error(e, path)
            logger.warning("Cannot load %s: %s", cls.__name__, error.message)
            raise error from e

        return cls(data, path=path, options=options)

    @classmethod
    def from_bytes(cls, data: BytesLike, options: Optional[LoadOptions] = None) -> BinaryArtifact:
        """
        Verify an in-memory buffer against the schema.

        The buffer is copied, later changes to it do not affect the artifact.
        """
        return cls(data, options=options)

    @property
    def data(self) -> bytes:
        """Complete contents of the artifact."""
        return self._data

    @property
    def digest(self) -> str:
        """Lowercase hex SHA-256 digest of the contents."""
        return self._digest

    @property
    def path(self) -> Optional[str]:
        """File the artifact was loaded from, or None."""
        return self._path

    @property
    def size(self) -> int:
        return len(self._data)

    def segment(self, name: str) -> memoryview:
        """
        Return a segment by name.

        Raises:
            SegmentNotFoundError: If the schema declares no such segment
        """
        descriptor = self.schema.get(name)
        if descriptor is None:
            raise SegmentNotFoundError(name, type(self).__name__)
        return self._view(descriptor)

    def segments(self) -> Dict[str, memoryview]:
        """Return every segment, keyed by name, in declaration order."""
        return {descriptor.name: self._view(descriptor) for descriptor in self.schema.segments}

    def iter_segments(self) -> Iterator[Tuple[SegmentDescriptor, memoryview]]:
        """Yield (descriptor, view) pairs in declaration order."""
        for descriptor in self.schema.segments:
            yield descriptor, self._view(descriptor)

    def _view(self, descriptor: SegmentDescriptor) -> memoryview:
        if not descriptor.fits(len(self._data)):
            _raise_out_of_bounds(self.schema, [descriptor], len(self._data))
        return memoryview(self._data)[descriptor.start:descriptor.end]

    def __repr__(self) -> str:
        source = f" path={self._path!r}" if self._path else ""
        return f"<{type(self).__name__} size={len(self._data)} digest={self._digest[:16]}...{source}>"


def _check_size(size: int, options: LoadOptions, path: Optional[str]) -> None:
    if options.max_size is not None and size > options.max_size:
        raise ArtifactIOError(
            f"Binary is {size} bytes, larger than the allowed {options.max_size}",
            ErrorCode.TOO_LARGE,
            path=path,
            details={"size": size, "max_size": options.max_size},
        )


def _raise_out_of_bounds(schema: SegmentSchema, descriptors: List[SegmentDescriptor], size: int) -> None:
    """Raise SegmentBoundsError naming every given descriptor, if any."""
    if not descriptors:
        return

    offending = {descriptor.name: [descriptor.start, descriptor.end] for descriptor in descriptors}

    names = ", ".join(offending)
    logger.warning("Segments out of bounds for %s (%d bytes): %s", schema.name, size, names)
    raise SegmentBoundsError(
        f"{schema.name} is {size} bytes long, segments exceed it: {names}",
        size,
        offending,
    )
