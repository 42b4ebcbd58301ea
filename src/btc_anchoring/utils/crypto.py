"""Hash primitives used for transaction ids, script hashes and checksums."""

from __future__ import annotations

import hashlib


def sha256(data: bytes) -> bytes:
    """Single SHA-256 hash."""
    return hashlib.sha256(data).digest()


def sha256d(data: bytes) -> bytes:
    """Bitcoin's double SHA-256 (txids, signature hashes, Base58Check)."""
    return sha256(sha256(data))


def ripemd160(data: bytes) -> bytes:
    """RIPEMD-160 hash."""
    h = hashlib.new("ripemd160")
    h.update(data)
    return h.digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD-160(SHA-256(data)), the digest behind P2SH and P2PKH outputs."""
    return ripemd160(sha256(data))
