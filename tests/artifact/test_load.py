"""
Artifact loading tests.

Covers the beef end-to-end scenarios, digest verification, I/O failures,
load-time bounds validation and size limits.
"""

import errno
import logging
import os
import sys

import pytest

from binseg import (
    ArtifactIOError,
    BinaryArtifact,
    ErrorCode,
    IntegrityError,
    LoadOptions,
    SegmentBoundsError,
    segment_binary,
)


class TestBeefScenarios:
    """End-to-end scenarios over tests/data/beef.bin."""

    def test_load_and_access(self, beef_cls, beef_path):
        """Test loading succeeds and both halves are exposed."""
        beef = beef_cls.from_file(beef_path)
        assert beef.dead_beef == bytes([0xDE, 0xAD, 0xBE, 0xEF])
        assert beef.best_code == bytes([0xBE, 0x57, 0xC0, 0xDE])

    def test_incorrect_digest(self, beef_path):
        """Test a schema with the wrong digest refuses the file."""
        wrong_digest = "0" * 64
        WrongBin = segment_binary("WrongBin", wrong_digest, {"dead_beef": (0, 4)})
        with pytest.raises(IntegrityError) as exc_info:
            WrongBin.from_file(beef_path)

        error = exc_info.value
        assert error.code == ErrorCode.DIGEST_MISMATCH
        assert error.expected == wrong_digest
        assert error.actual == "8594c5c15c75fcc5f27893faa4b6a185ec6687306f92b81759d76704319a16b4"
        assert error.path == os.fspath(beef_path)

    def test_missing_file(self, beef_cls, tmp_path):
        """Test a missing path fails with a not-found I/O error."""
        missing = tmp_path / "does_not_exist.bin"
        with pytest.raises(ArtifactIOError) as exc_info:
            beef_cls.from_file(missing)

        error = exc_info.value
        assert error.code == ErrorCode.NOT_FOUND
        assert error.errno == errno.ENOENT
        assert error.filename == str(missing)
        assert isinstance(error.cause, FileNotFoundError)
        assert isinstance(error.__cause__, FileNotFoundError)

    def test_missing_file_is_os_error(self, beef_cls, tmp_path):
        """Test callers catching OSError also catch load failures."""
        with pytest.raises(OSError):
            beef_cls.from_file(tmp_path / "nope.bin")

    def test_accepts_str_path(self, beef_cls, beef_path):
        """Test plain string paths."""
        beef = beef_cls.from_file(str(beef_path))
        assert beef.path == str(beef_path)


class TestDigestVerification:
    """Digest verification over arbitrary contents."""

    def test_verified_artifact_metadata(self, write_binary):
        """Test digest, size, data and path of a loaded artifact."""
        contents = bytes(range(32))
        path, digest = write_binary(contents)
        Table = segment_binary("Table", digest, {"first": (0, 16), "second": (16, 32)})

        table = Table.from_file(path)
        assert table.digest == digest
        assert table.size == 32
        assert table.data == contents
        assert table.path == str(path)

    def test_single_flipped_bit_rejected(self, write_binary):
        """Test any change to the file is detected."""
        contents = bytearray(b"\x00" * 64)
        _, digest = write_binary(bytes(contents), "original.bin")
        contents[63] ^= 0x01
        tampered, _ = write_binary(bytes(contents), "tampered.bin")

        Image = segment_binary("Image", digest, {"body": (0, 64)})
        with pytest.raises(IntegrityError):
            Image.from_file(tampered)

    def test_mismatch_is_logged(self, beef_path, caplog):
        """Test a warning is logged before IntegrityError is raised."""
        WrongBin = segment_binary("WrongBin", "0" * 64, [("dead_beef", 0, 4)])
        with caplog.at_level(logging.WARNING, logger="binseg.artifact"):
            with pytest.raises(IntegrityError):
                WrongBin.from_file(beef_path)

        warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "Digest mismatch" in warnings[0].getMessage()
        assert "WrongBin" in warnings[0].getMessage()

    def test_empty_file(self, write_binary):
        """Test an empty file with an empty schema."""
        path, digest = write_binary(b"")
        Empty = segment_binary("Empty", digest, {})
        empty = Empty.from_file(path)
        assert empty.size == 0
        assert empty.segments() == {}

    def test_directory_path(self, beef_cls, tmp_path):
        """Test a directory is reported as an I/O error."""
        with pytest.raises(ArtifactIOError) as exc_info:
            beef_cls.from_file(tmp_path)
        assert exc_info.value.code in (ErrorCode.IS_A_DIRECTORY, ErrorCode.PERMISSION_DENIED)

    @pytest.mark.skipif(
        sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="file permissions are not enforced",
    )
    def test_unreadable_file(self, beef_cls, beef_bytes, write_binary):
        """Test permission problems are reported as PERMISSION_DENIED."""
        path, _ = write_binary(beef_bytes)
        path.chmod(0)
        try:
            with pytest.raises(ArtifactIOError) as exc_info:
                beef_cls.from_file(path)
            assert exc_info.value.code == ErrorCode.PERMISSION_DENIED
        finally:
            path.chmod(0o644)


class TestFromBytes:
    """Verification of in-memory buffers."""

    def test_from_bytes(self, beef_cls, beef_bytes):
        beef = beef_cls.from_bytes(beef_bytes)
        assert beef.path is None
        assert beef.dead_beef == bytes([0xDE, 0xAD, 0xBE, 0xEF])

    def test_from_bytes_wrong_contents(self, beef_cls):
        with pytest.raises(IntegrityError) as exc_info:
            beef_cls.from_bytes(b"\x00" * 8)
        assert exc_info.value.path is None

    def test_buffer_is_copied(self, beef_cls, beef_bytes):
        """Test mutating the source buffer does not change the artifact."""
        buffer = bytearray(beef_bytes)
        beef = beef_cls.from_bytes(buffer)
        buffer[0] = 0x00
        assert beef.dead_beef == bytes([0xDE, 0xAD, 0xBE, 0xEF])
        assert isinstance(beef.data, bytes)

    def test_memoryview_source(self, beef_cls, beef_bytes):
        beef = beef_cls.from_bytes(memoryview(beef_bytes))
        assert beef.best_code == bytes([0xBE, 0x57, 0xC0, 0xDE])

    @pytest.mark.parametrize("data", [8, None, "deadbeef"])
    def test_non_buffer_rejected(self, beef_cls, data):
        """Test only bytes-like objects are accepted."""
        with pytest.raises(TypeError):
            beef_cls.from_bytes(data)

    def test_constructor_verifies(self, beef_cls):
        """Test the class constructor cannot skip verification."""
        with pytest.raises(IntegrityError):
            beef_cls(b"not the beef")

    def test_base_class_cannot_load(self, beef_bytes):
        """Test BinaryArtifact itself has no schema."""
        with pytest.raises(TypeError):
            BinaryArtifact(beef_bytes)


class TestLoadTimeBounds:
    """Segments past the end of the file fail the load by default."""

    def test_segment_past_end(self, beef_digest, beef_path):
        """Test a segment ending after the file is rejected at load time."""
        TooLong = segment_binary("TooLong", beef_digest, {
            "dead_beef": (0x00, 0x04),
            "trailer": (0x04, 0x10),
        })
        with pytest.raises(SegmentBoundsError) as exc_info:
            TooLong.from_file(beef_path)

        error = exc_info.value
        assert error.code == ErrorCode.SEGMENT_OUT_OF_BOUNDS
        assert error.size == 8
        assert error.segments == {"trailer": [0x04, 0x10]}

    def test_all_offending_segments_reported(self, beef_digest, beef_bytes):
        TooLong = segment_binary("TooLong", beef_digest, {
            "a": (0, 9),
            "ok": (0, 8),
            "b": (100, 200),
        })
        with pytest.raises(SegmentBoundsError) as exc_info:
            TooLong.from_bytes(beef_bytes)
        assert list(exc_info.value.segments) == ["a", "b"]

    def test_bounds_failure_is_logged(self, beef_digest, beef_bytes, caplog):
        """Test a warning naming the offending segments is logged."""
        TooLong = segment_binary("TooLong", beef_digest, [("ok", 0, 8), ("trailer", 4, 16)])
        with caplog.at_level(logging.WARNING, logger="binseg.artifact"):
            with pytest.raises(SegmentBoundsError):
                TooLong.from_bytes(beef_bytes)

        warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "out of bounds" in warnings[0].getMessage()
        assert "trailer" in warnings[0].getMessage()
        assert "ok" not in warnings[0].getMessage().split(": ", 1)[1]

    def test_segment_ending_at_end_is_valid(self, beef_digest, beef_bytes):
        Whole = segment_binary("Whole", beef_digest, {"everything": (0, 8), "tail": (8, 8)})
        whole = Whole.from_bytes(beef_bytes)
        assert whole.everything == beef_bytes
        assert len(whole.tail) == 0


class TestMaxSize:
    """The max_size load option."""

    def test_file_too_large(self, beef_cls, beef_path):
        with pytest.raises(ArtifactIOError) as exc_info:
            beef_cls.from_file(beef_path, LoadOptions(max_size=4))
        assert exc_info.value.code == ErrorCode.TOO_LARGE
        assert exc_info.value.details["size"] == 8

    def test_bytes_too_large(self, beef_cls, beef_bytes):
        with pytest.raises(ArtifactIOError):
            beef_cls.from_bytes(beef_bytes, LoadOptions(max_size=7))

    def test_memoryview_too_large(self, beef_cls, beef_bytes):
        """Test the limit applies to views before they are copied."""
        with pytest.raises(ArtifactIOError) as exc_info:
            beef_cls.from_bytes(memoryview(beef_bytes), LoadOptions(max_size=7))
        assert exc_info.value.code == ErrorCode.TOO_LARGE
        assert exc_info.value.details == {"size": 8, "max_size": 7}

    def test_exact_size_allowed(self, beef_cls, beef_path):
        beef = beef_cls.from_file(beef_path, LoadOptions(max_size=8))
        assert beef.size == 8

    def test_missing_file_with_max_size(self, beef_cls, tmp_path):
        """Test the size check still reports missing files as NOT_FOUND."""
        with pytest.raises(ArtifactIOError) as exc_info:
            beef_cls.from_file(tmp_path / "missing.bin", LoadOptions(max_size=8))
        assert exc_info.value.code == ErrorCode.NOT_FOUND

    def test_directory_with_max_size(self, beef_cls, tmp_path):
        """Test a directory is reported as such, not checked for size."""
        with pytest.raises(ArtifactIOError) as exc_info:
            beef_cls.from_file(tmp_path, LoadOptions(max_size=1))
        assert exc_info.value.code in (ErrorCode.IS_A_DIRECTORY, ErrorCode.PERMISSION_DENIED)
