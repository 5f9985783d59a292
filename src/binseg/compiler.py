"""
Segment schema compiler.

Turns a SegmentSchema into a BinaryArtifact subclass with one read-only
property per declared segment. The accessor table is fixed when the class is
created; segments are never looked up dynamically on property access.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Mapping, Optional, Type, Union
import collections.abc
import logging
import sys

from pydantic import ValidationError

from .artifact import BinaryArtifact
from .runtime.errors import ErrorCode, SchemaError, error_from_validation
from .schema import SegmentSchema
from .segments import SegmentDescriptor, RangeLike

logger = logging.getLogger(__name__)

SegmentDeclarations = Union[Mapping[str, Any], Iterable[Union[SegmentDescriptor, tuple]]]


def compile_schema(schema: SegmentSchema, module: Optional[str] = None) -> Type[BinaryArtifact]:
    """
    Generate the artifact class for a schema.

    Args:
        schema: Validated segment schema
        module: Value for the class __module__, defaults to the caller's module

    Returns:
        New BinaryArtifact subclass named after the schema
    """
    if module is None:
        module = _caller_module()
    namespace: Dict[str, Any] = {
        "__slots__": (),
        "__module__": module,
        "__doc__": _class_doc(schema),
        "schema": schema,
        "expected_digest": schema.digest,
    }
    for descriptor in schema.segments:
        namespace[descriptor.name] = _segment_property(schema.name, module, descriptor)

    artifact_cls = type(schema.name, (BinaryArtifact,), namespace)
    logger.debug(
        "Compiled %s with %d segments: %s",
        schema.name, len(schema.segments), ", ".join(schema.names),
    )
    return artifact_cls


def segment_binary(name: str, digest: str, segments: SegmentDeclarations,
                   doc: Optional[str] = None, module: Optional[str] = None) -> Type[BinaryArtifact]:
    """
    Declare a binary layout and generate its artifact class.

    Example:
        >>> BeefBin = segment_binary(
        ...     "BeefBin",
        ...     "8594c5c15c75fcc5f27893faa4b6a185ec6687306f92b81759d76704319a16b4",
        ...     [
        ...         ("dead_beef", 0x00, 0x04, "This beef is very dead"),
        ...         ("best_code", range(0x04, 0x08)),
        ...     ],
        ... )
        >>> beef = BeefBin.from_file("beef.bin")
        >>> bytes(beef.dead_beef)
        b'\\xde\\xad\\xbe\\xef'

    Args:
        name: Name of the generated artifact type
        digest: Lowercase hex SHA-256 digest of the file, as printed by
            ``shasum -a 256``
        segments: Sequence of ``(name, start, end[, doc])`` or
            ``(name, range_like[, doc])`` tuples and SegmentDescriptor
            objects, where range_like is a range, slice, ``(start, end)`` or
            ``(start, end, doc)`` tuple. A mapping of name to range_like is
            accepted too, but a dict literal silently keeps only the last of
            two equal keys, so duplicate names are only reported for the
            sequence form. Declaration order is kept.
        doc: Documentation for the generated class
        module: Value for the class __module__, defaults to the caller's module

    Returns:
        New BinaryArtifact subclass

    Raises:
        SchemaError: If the declaration is invalid
    """
    try:
        if isinstance(segments, collections.abc.Mapping):
            descriptors = tuple(
                _coerce_segment(segment_name, value) for segment_name, value in segments.items()
            )
        else:
            descriptors = tuple(_declared_segment(entry) for entry in segments)
        schema = SegmentSchema(name=name, digest=digest, segments=descriptors, doc=doc)
    except ValidationError as e:
        raise error_from_validation(e, f"schema {name!r}") from e

    if module is None:
        module = _caller_module()
    return compile_schema(schema, module)


def _coerce_segment(name: str, value: Union[RangeLike, SegmentDescriptor]) -> SegmentDescriptor:
    if isinstance(value, SegmentDescriptor):
        if value.name != name:
            raise SchemaError(
                f"Segment declared as {name!r} is named {value.name!r}",
                details={"name": name},
            )
        return value
    return SegmentDescriptor.from_range(name, value)


def _declared_segment(entry: Any) -> SegmentDescriptor:
    if isinstance(entry, SegmentDescriptor):
        return entry
    if isinstance(entry, (tuple, list)) and entry and isinstance(entry[0], str):
        name, rest = entry[0], tuple(entry[1:])
        # Flat form: (name, start, end) or (name, start, end, doc)
        if len(rest) in (2, 3) and isinstance(rest[0], int):
            return SegmentDescriptor.from_range(name, rest)
        if len(rest) == 1:
            return _coerce_segment(name, rest[0])
        if len(rest) == 2:
            return SegmentDescriptor.from_range(name, rest[0], rest[1])
    raise SchemaError(
        f"Segment must be declared as (name, start, end[, doc]), (name, range[, doc]) "
        f"or a SegmentDescriptor, got {entry!r}",
        ErrorCode.INVALID_SCHEMA,
    )


def _caller_module(depth: int = 1) -> str:
    """Name of the module that called the function depth frames up."""
    try:
        return sys._getframe(depth + 1).f_globals.get("__name__", "__main__")
    except (AttributeError, ValueError):
        return "__main__"


def _segment_property(type_name: str, module: str, descriptor: SegmentDescriptor) -> property:
    def accessor(self: BinaryArtifact) -> memoryview:
        return self._view(descriptor)

    accessor.__name__ = descriptor.name
    accessor.__qualname__ = f"{type_name}.{descriptor.name}"
    accessor.__module__ = module
    accessor.__doc__ = _segment_doc(descriptor)
    return property(accessor)


def _segment_doc(descriptor: SegmentDescriptor) -> str:
    location = f"Bytes [{descriptor.start:#x}..{descriptor.end:#x}) ({descriptor.length} bytes)."
    if descriptor.doc:
        return f"{descriptor.doc}\n\n{location}"
    return location


def _class_doc(schema: SegmentSchema) -> str:
    lines = []
    if schema.doc:
        lines.extend([schema.doc, ""])
    lines.append(f"Segmentation for the binary with the sha256 hash `{schema.digest}`.")
    if schema.segments:
        lines.extend(["", "Segments:"])
        lines.extend(f"    {descriptor.describe()}" for descriptor in schema.segments)
    return "\n".join(lines)
