"""
Segment descriptors for binseg schemas.

A segment is a named, fixed byte range ``[start, end)`` within a binary
artifact. Descriptors are declared once as part of a schema and never change.
"""

from __future__ import annotations
from typing import Any, Optional, Tuple, Union
import keyword

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from .runtime.errors import ErrorCode, SchemaError

# Attribute names of generated artifact classes that segments may not shadow
RESERVED_NAMES = frozenset({
    "data",
    "digest",
    "expected_digest",
    "from_bytes",
    "from_file",
    "iter_segments",
    "path",
    "schema",
    "segment",
    "segments",
    "size",
})

RangeLike = Union[range, slice, Tuple[int, int]]


def check_identifier(value: str, what: str = "segment name") -> str:
    """
    Validate that value can be used as a Python attribute name.

    Raises:
        PydanticCustomError: If value is not a usable identifier
    """
    if not value.isidentifier() or keyword.iskeyword(value):
        raise PydanticCustomError(
            "invalid_identifier",
            "{what} '{name}' is not a valid Python identifier",
            {"what": what, "name": value},
        )
    return value


class SegmentDescriptor(BaseModel):
    """
    A named byte range within a binary artifact.

    ``start`` is inclusive and ``end`` is exclusive, like a Python slice.
    Empty segments (``start == end``) are allowed.
    """
    name: str = Field(description="Accessor name of the segment")
    start: int = Field(ge=0, strict=True, description="First byte offset (inclusive)")
    end: int = Field(ge=0, strict=True, description="Last byte offset (exclusive)")
    doc: Optional[str] = Field(default=None, description="Documentation for the accessor")

    model_config = {"frozen": True}

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        check_identifier(value)
        if value.startswith("_"):
            raise PydanticCustomError(
                "invalid_identifier",
                "segment name '{name}' must not start with an underscore",
                {"name": value},
            )
        if value in RESERVED_NAMES:
            raise PydanticCustomError(
                "invalid_identifier",
                "segment name '{name}' is reserved by the artifact class",
                {"name": value},
            )
        return value

    @model_validator(mode="after")
    def _check_range(self) -> SegmentDescriptor:
        if self.start > self.end:
            raise PydanticCustomError(
                "invalid_range",
                "segment '{name}' starts at {start} after its end {end}",
                {"name": self.name, "start": self.start, "end": self.end},
            )
        return self

    @property
    def length(self) -> int:
        """Number of bytes covered by the segment."""
        return self.end - self.start

    def as_slice(self) -> slice:
        """Return the segment range as a slice object."""
        return slice(self.start, self.end)

    def overlaps(self, other: SegmentDescriptor) -> bool:
        """Check whether two segments share at least one byte."""
        return self.start < other.end and other.start < self.end

    def fits(self, size: int) -> bool:
        """Check whether the segment lies within a buffer of the given size."""
        return self.end <= size

    @classmethod
    def from_range(cls, name: str, rng: Any, doc: Optional[str] = None) -> SegmentDescriptor:
        """
        Create a descriptor from a range-like value.

        Args:
            name: Segment name
            rng: ``range(start, end)``, ``slice(start, end)``, ``(start, end)``
                or ``(start, end, doc)``
            doc: Documentation text, overrides a doc given in a 3-tuple

        Returns:
            New SegmentDescriptor

        Raises:
            SchemaError: If rng has an unsupported shape or a step other than 1
            pydantic.ValidationError: If the resulting range is invalid
        """
        if isinstance(rng, (range, slice)):
            if rng.step not in (None, 1):
                raise SchemaError(
                    f"Segment {name!r} must use a step of 1, got {rng.step}",
                    ErrorCode.INVALID_RANGE,
                    {"name": name},
                )
            start = 0 if rng.start is None else rng.start
            end = rng.stop
        elif isinstance(rng, tuple) and len(rng) in (2, 3):
            start, end = rng[0], rng[1]
            if len(rng) == 3 and doc is None:
                doc = rng[2]
        else:
            raise SchemaError(
                f"Segment {name!r} must be declared with a range, slice or "
                f"(start, end) tuple, got {type(rng).__name__}",
                ErrorCode.INVALID_RANGE,
                {"name": name},
            )

        if end is None:
            raise SchemaError(
                f"Segment {name!r} must declare an end offset",
                ErrorCode.INVALID_RANGE,
                {"name": name},
            )
        return cls(name=name, start=start, end=end, doc=doc)

    def describe(self) -> str:
        """Human readable one-line description, e.g. ``dead_beef [0x0..0x4)``."""
        return f"{self.name} [{self.start:#x}..{self.end:#x})"

    def __str__(self) -> str:
        return self.describe()
