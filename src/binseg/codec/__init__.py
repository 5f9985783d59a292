"""
Binseg Codec Module

Hashing helpers used to verify artifacts before any segment is exposed.

Key components:
- hashes.py: SHA-256 hashing helpers
"""

from .hashes import sha256_hex, digest_matches

__all__ = [
    "sha256_hex",
    "digest_matches",
]
