"""Hashing helpers for content fingerprints.

Keccak-256 comes from ``eth_utils`` (backed by ``eth-hash``) so derived
digests match what an EVM contract computes. ``hashlib.sha3_256`` is a
different function and must not be used as a stand-in.
"""

from __future__ import annotations

import hashlib

from eth_utils import keccak


def _as_bytes(data: bytes | str) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


def sha256_hexdigest(data: bytes | str) -> str:
    """Return the lowercase hex SHA-256 of ``data`` (str is UTF-8 encoded)."""
    return hashlib.sha256(_as_bytes(data)).hexdigest()


def keccak256_digest(data: bytes | str) -> bytes:
    """Return the 32-byte Keccak-256 digest of ``data``."""
    return keccak(_as_bytes(data))


def keccak256_hexdigest(data: bytes | str) -> str:
    """Return the lowercase hex Keccak-256 of ``data``."""
    return keccak256_digest(data).hex()
