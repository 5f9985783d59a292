"""
Binseg Error Model

This module provides the error handling framework for binseg. Every failure
the library reports carries an ErrorCode, a message, optional structured
details and the underlying exception that caused it.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, Union
from enum import IntEnum
import os

from pydantic import ValidationError


class ErrorCode(IntEnum):
    """binseg error codes."""

    # Success
    OK = 0

    # General errors (1-99)
    UNKNOWN = 1
    INTERNAL = 2

    # Schema errors (100-199)
    INVALID_SCHEMA = 100
    INVALID_IDENTIFIER = 101
    DUPLICATE_SEGMENT = 102
    INVALID_RANGE = 103
    INVALID_DIGEST = 104

    # I/O errors (200-299)
    IO_ERROR = 200
    NOT_FOUND = 201
    PERMISSION_DENIED = 202
    IS_A_DIRECTORY = 203
    READ_FAILED = 204
    TOO_LARGE = 205

    # Integrity errors (300-399)
    DIGEST_MISMATCH = 300

    # Segment access errors (400-499)
    SEGMENT_OUT_OF_BOUNDS = 400
    SEGMENT_NOT_FOUND = 401


class BinsegError(Exception):
    """
    Base class for all binseg errors.

    Provides structured error information: a code, a message, details and
    an optional cause.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a binseg error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __reduce__(self):
        return type(self), (self.message, self.code, self.details, self.cause)

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class SchemaError(BinsegError, ValueError):
    """Invalid segment schema declaration."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_SCHEMA,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class ArtifactIOError(BinsegError, OSError):
    """
    A binary artifact could not be read.

    Also an OSError, so errno, strerror and filename are populated from the
    underlying operating system error when there is one.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.IO_ERROR,
                 path: Optional[str] = None, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        details = dict(details or {})
        if path is not None:
            details.setdefault("path", path)
        super().__init__(message, code, details, cause)
        self.path = path
        self.filename = path
        if isinstance(cause, OSError):
            self.errno = cause.errno
            self.strerror = cause.strerror

    def __reduce__(self):
        return type(self), (self.message, self.code, self.path, self.details, self.cause)


class IntegrityError(BinsegError):
    """The SHA-256 digest of an artifact does not match the expected digest."""

    def __init__(self, expected: str, actual: str, path: Optional[str] = None,
                 type_name: Optional[str] = None):
        details: Dict[str, Any] = {"expected": expected, "actual": actual}
        if path is not None:
            details["path"] = path
        subject = type_name or "artifact"
        super().__init__(f"Incorrect file for {subject}: digest mismatch",
                         ErrorCode.DIGEST_MISMATCH, details)
        self.expected = expected
        self.actual = actual
        self.path = path
        self.type_name = type_name

    def __reduce__(self):
        return type(self), (self.expected, self.actual, self.path, self.type_name)


class SegmentBoundsError(BinsegError, IndexError):
    """One or more declared segments lie outside the loaded buffer."""

    def __init__(self, message: str, size: int, segments: Dict[str, Any]):
        super().__init__(message, ErrorCode.SEGMENT_OUT_OF_BOUNDS,
                         {"size": size, "segments": segments})
        self.size = size
        self.segments = segments

    def __reduce__(self):
        return type(self), (self.message, self.size, self.segments)


class SegmentNotFoundError(BinsegError, KeyError):
    """Lookup of a segment name the schema does not declare."""

    def __init__(self, name: str, type_name: Optional[str] = None):
        subject = type_name or "artifact"
        super().__init__(f"{subject} has no segment named {name!r}",
                         ErrorCode.SEGMENT_NOT_FOUND, {"name": name})
        self.name = name
        self.type_name = type_name

    def __reduce__(self):
        return type(self), (self.name, self.type_name)


# Maps pydantic error types raised by the schema models to error codes
_VALIDATION_CODES = {
    "invalid_identifier": ErrorCode.INVALID_IDENTIFIER,
    "duplicate_segment": ErrorCode.DUPLICATE_SEGMENT,
    "invalid_range": ErrorCode.INVALID_RANGE,
    "greater_than_equal": ErrorCode.INVALID_RANGE,
    "int_type": ErrorCode.INVALID_RANGE,
    "invalid_digest": ErrorCode.INVALID_DIGEST,
}


def error_from_validation(error: ValidationError, subject: str = "schema") -> SchemaError:
    """
    Create a SchemaError from a pydantic ValidationError.

    The code is taken from the first reported problem; every problem is kept
    in the details.

    Args:
        error: Validation error raised by a schema model
        subject: What was being validated, used in the message

    Returns:
        SchemaError wrapping the validation error
    """
    problems = error.errors(include_url=False)
    code = ErrorCode.INVALID_SCHEMA
    if problems:
        code = _VALIDATION_CODES.get(problems[0]["type"], ErrorCode.INVALID_SCHEMA)

    messages = [problem["msg"] for problem in problems]
    details = {
        "errors": [
            {
                "type": problem["type"],
                "loc": ".".join(str(part) for part in problem["loc"]),
                "msg": problem["msg"],
            }
            for problem in problems
        ]
    }
    return SchemaError(f"Invalid {subject}: {'; '.join(messages)}", code, details, error)


def error_from_os_error(error: OSError, path: Union[str, os.PathLike]) -> ArtifactIOError:
    """
    Create an ArtifactIOError from an OSError raised while reading a file.

    Args:
        error: The operating system error
        path: Path that was being read

    Returns:
        ArtifactIOError with the matching code
    """
    path = os.fspath(path)
    if isinstance(error, FileNotFoundError):
        code = ErrorCode.NOT_FOUND
        message = f"Binary file not found: {path}"
    elif isinstance(error, PermissionError):
        code = ErrorCode.PERMISSION_DENIED
        message = f"Permission denied reading binary file: {path}"
    elif isinstance(error, IsADirectoryError):
        code = ErrorCode.IS_A_DIRECTORY
        message = f"Expected a binary file but found a directory: {path}"
    else:
        code = ErrorCode.READ_FAILED
        message = f"Failed to read binary file: {path}"
    return ArtifactIOError(message, code, path=path, cause=error)


__all__ = [
    "ErrorCode",
    "BinsegError",
    "SchemaError",
    "ArtifactIOError",
    "IntegrityError",
    "SegmentBoundsError",
    "SegmentNotFoundError",
    "error_from_validation",
    "error_from_os_error",
]
