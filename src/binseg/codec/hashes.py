"""
Hash Functions

SHA-256 helpers used to verify binary artifacts against the digest declared
in their schema. Digests are compared as lowercase hex strings.
"""

import hashlib
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

SHA256_HEX_LENGTH = 64


def sha256_hex(input_bytes: BytesLike) -> str:
    """
    Compute the lowercase hex SHA-256 digest of input bytes.

    This is the digest format expected in a segment schema, the same string
    printed by ``shasum -a 256``.

    Args:
        input_bytes: Input bytes to hash

    Returns:
        64 character lowercase hex string
    """
    return hashlib.sha256(input_bytes).hexdigest()


def digest_matches(input_bytes: BytesLike, expected_hex: str) -> bool:
    """
    Check input bytes against an expected hex digest.

    The comparison is exact and case-sensitive.

    Args:
        input_bytes: Bytes to hash
        expected_hex: Expected lowercase hex digest

    Returns:
        True if the digest of input_bytes equals expected_hex
    """
    return sha256_hex(input_bytes) == expected_hex
