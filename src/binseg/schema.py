"""
Segment schemas for binseg.

A schema binds an artifact type name, the SHA-256 digest of the one file it
describes, and an ordered list of segment descriptors. Segment ranges may
overlap and may be declared in any order; only duplicate names are rejected.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple, Type, TYPE_CHECKING
import re

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError

from .segments import SegmentDescriptor, check_identifier
from .runtime.errors import error_from_validation

if TYPE_CHECKING:
    from .artifact import BinaryArtifact

_DIGEST_PATTERN = re.compile(r"[0-9a-f]{64}")


class SegmentSchema(BaseModel):
    """
    Declarative layout of a fixed-format binary artifact.

    Instances are immutable. Compile one with
    :func:`binseg.compiler.compile_schema` to obtain the artifact class.
    """
    name: str = Field(description="Name of the generated artifact type")
    digest: str = Field(description="Lowercase hex SHA-256 digest of the artifact")
    segments: Tuple[SegmentDescriptor, ...] = Field(default=(), description="Segments in declaration order")
    doc: Optional[str] = Field(default=None, description="Documentation for the artifact type")

    model_config = {"frozen": True}

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return check_identifier(value, what="artifact type name")

    @field_validator("digest")
    @classmethod
    def _check_digest(cls, value: str) -> str:
        if not _DIGEST_PATTERN.fullmatch(value):
            raise PydanticCustomError(
                "invalid_digest",
                "digest must be 64 lowercase hex characters, got '{digest}'",
                {"digest": value},
            )
        return value

    @model_validator(mode="after")
    def _check_unique_names(self) -> SegmentSchema:
        seen = set()
        for descriptor in self.segments:
            if descriptor.name in seen:
                raise PydanticCustomError(
                    "duplicate_segment",
                    "segment '{name}' is declared more than once",
                    {"name": descriptor.name},
                )
            seen.add(descriptor.name)
        return self

    @property
    def names(self) -> Tuple[str, ...]:
        """Segment names in declaration order."""
        return tuple(descriptor.name for descriptor in self.segments)

    @property
    def span(self) -> int:
        """Smallest buffer size that holds every declared segment."""
        return max((descriptor.end for descriptor in self.segments), default=0)

    def get(self, name: str) -> Optional[SegmentDescriptor]:
        """Look up a segment descriptor by name."""
        for descriptor in self.segments:
            if descriptor.name == name:
                return descriptor
        return None

    def overlapping(self) -> List[Tuple[SegmentDescriptor, SegmentDescriptor]]:
        """
        List every pair of segments that share bytes.

        Overlap is allowed in a schema; this helper only reports it.

        Returns:
            Pairs in declaration order
        """
        pairs = []
        for index, first in enumerate(self.segments):
            for second in self.segments[index + 1:]:
                if first.overlaps(second):
                    pairs.append((first, second))
        return pairs

    def out_of_bounds(self, size: int) -> List[SegmentDescriptor]:
        """Segments that do not fit in a buffer of the given size."""
        return [descriptor for descriptor in self.segments if not descriptor.fits(size)]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary."""
        return self.model_dump(mode="json", exclude_none=True)


class SchemaBuilder:
    """
    Fluent builder for segment schemas.

    Example:
        >>> BeefBin = (
        ...     SchemaBuilder("BeefBin", digest)
        ...     .segment("dead_beef", 0x00, 0x04, "This beef is very dead")
        ...     .segment("best_code", 0x04, 0x08, "This code is the best")
        ...     .compile()
        ... )
    """

    def __init__(self, name: str, digest: str, doc: Optional[str] = None):
        """
        Initialize the builder.

        Args:
            name: Name of the generated artifact type
            digest: Lowercase hex SHA-256 digest of the artifact
            doc: Documentation for the artifact type
        """
        self._name = name
        self._digest = digest
        self._doc = doc
        self._segments: List[Any] = []

    def segment(self, name: str, start: int, end: int, doc: Optional[str] = None) -> SchemaBuilder:
        """
        Declare a segment (chainable).

        Args:
            name: Accessor name
            start: First byte offset (inclusive)
            end: Last byte offset (exclusive)
            doc: Documentation for the accessor

        Returns:
            Self for chaining
        """
        self._segments.append({"name": name, "start": start, "end": end, "doc": doc})
        return self

    def add(self, descriptor: SegmentDescriptor) -> SchemaBuilder:
        """Declare an already built segment descriptor (chainable)."""
        self._segments.append(descriptor)
        return self

    def build(self) -> SegmentSchema:
        """
        Create the schema.

        Returns:
            Validated SegmentSchema

        Raises:
            SchemaError: If the declaration is invalid
        """
        try:
            return SegmentSchema(
                name=self._name,
                digest=self._digest,
                segments=tuple(self._segments),
                doc=self._doc,
            )
        except ValidationError as e:
            raise error_from_validation(e, f"schema {self._name!r}") from e

    def compile(self, module: Optional[str] = None) -> Type[BinaryArtifact]:
        """Build the schema and compile it into an artifact class."""
        # Import here to avoid circular imports
        from .compiler import compile_schema, _caller_module
        if module is None:
            module = _caller_module()
        return compile_schema(self.build(), module)
