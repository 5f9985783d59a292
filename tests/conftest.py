"""
Shared fixtures:
- The 8 byte "beef" binary (DE AD BE EF BE 57 C0 DE) on disk and its digest
- The BeefBin artifact class declared over it
- A factory for writing arbitrary binaries to a temporary directory
"""
import hashlib
import pathlib
import pytest

from binseg import segment_binary

DATA_DIR = pathlib.Path(__file__).parent / "data"


@pytest.fixture
def beef_bytes():
    """Contents of tests/data/beef.bin."""
    return bytes([0xDE, 0xAD, 0xBE, 0xEF, 0xBE, 0x57, 0xC0, 0xDE])


@pytest.fixture
def beef_digest():
    """SHA-256 of beef.bin, as printed by shasum."""
    return "8594c5c15c75fcc5f27893faa4b6a185ec6687306f92b81759d76704319a16b4"


@pytest.fixture
def beef_path():
    """Path of the checked-in beef binary."""
    return DATA_DIR / "beef.bin"


@pytest.fixture
def beef_cls(beef_digest):
    """Artifact class splitting beef.bin into two halves."""
    return segment_binary(
        "BeefBin",
        beef_digest,
        [
            ("dead_beef", 0x00, 0x04, "This beef is very dead"),
            ("best_code", 0x04, 0x08, "This code is the best"),
        ],
    )


@pytest.fixture
def write_binary(tmp_path):
    """Write bytes to a temporary file and return (path, sha256 hex digest)."""
    def _write(data: bytes, name: str = "artifact.bin"):
        path = tmp_path / name
        path.write_bytes(data)
        return path, hashlib.sha256(data).hexdigest()

    return _write
