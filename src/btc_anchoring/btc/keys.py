"""secp256k1 keys and ECDSA, Base58Check encoding.

- Base58 / Base58Check encoding and decoding
- Public key derivation and SEC compressed encoding
- Deterministic (RFC 6979) ECDSA signing with low-S DER output
- Signature verification that never raises
"""

from __future__ import annotations

import hashlib

from ecdsa import SECP256k1, SigningKey, VerifyingKey
from ecdsa.util import sigdecode_der, sigencode_der_canonize

from btc_anchoring.utils.crypto import sha256d

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CURVE = SECP256k1
_CURVE_ORDER = _CURVE.order


# ---------------------------------------------------------------------------
# Base58Check encoding / decoding
# ---------------------------------------------------------------------------

_B58_ALPHABET = b"123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def base58_encode(payload: bytes) -> str:
    """Base58 without checksum; each leading zero byte becomes a '1'."""
    n = int.from_bytes(payload, "big")
    digits = bytearray()
    while n:
        n, digit = divmod(n, 58)
        digits.append(_B58_ALPHABET[digit])
    zeros = len(payload) - len(payload.lstrip(b"\x00"))
    return (_B58_ALPHABET[:1] * zeros + bytes(reversed(digits))).decode("ascii")


def base58_decode(s: str) -> bytes:
    """Decode Base58 string to raw bytes (no checksum).

    Raises:
        ValueError: If *s* contains a character outside the Base58 alphabet.
    """
    n = 0
    for char in s:
        index = _B58_ALPHABET.find(char.encode("ascii", errors="replace"))
        if index < 0:
            msg = f"Invalid Base58 character: {char!r}"
            raise ValueError(msg)
        n = n * 58 + index
    zeros = len(s) - len(s.lstrip("1"))
    return bytes(zeros) + n.to_bytes((n.bit_length() + 7) // 8, "big")


def base58check_encode(payload: bytes) -> str:
    """Base58Check: *payload* followed by the first four bytes of its SHA256d."""
    return base58_encode(payload + sha256d(payload)[:4])


def base58check_decode(s: str) -> bytes:
    """Decode a Base58Check string, verifying the checksum.

    Raises:
        ValueError: If the string is malformed or the checksum is invalid.
    """
    raw = base58_decode(s)
    if len(raw) < 4:
        msg = "Base58Check string too short"
        raise ValueError(msg)
    payload, checksum = raw[:-4], raw[-4:]
    if checksum != sha256d(payload)[:4]:
        msg = "Base58Check checksum mismatch"
        raise ValueError(msg)
    return payload


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


def private_key_to_public_key(privkey_bytes: bytes, *, compressed: bool = True) -> bytes:
    """Derive the public key from a 32-byte private key.

    Args:
        privkey_bytes: 32-byte big-endian scalar.
        compressed: If True, return the 33-byte SEC compressed encoding.

    Returns:
        The public key bytes (33 compressed or 65 uncompressed).
    """
    vk = SigningKey.from_string(privkey_bytes, curve=_CURVE).get_verifying_key()
    return vk.to_string("compressed" if compressed else "uncompressed")


def is_valid_private_key(privkey_bytes: bytes) -> bool:
    if len(privkey_bytes) != 32:
        return False
    return 0 < int.from_bytes(privkey_bytes, "big") < _CURVE_ORDER


# ---------------------------------------------------------------------------
# ECDSA
# ---------------------------------------------------------------------------


def sign_digest(privkey_bytes: bytes, digest: bytes) -> bytes:
    """Sign a 32-byte digest, returning a low-S DER signature.

    The nonce is derived per RFC 6979, so the same key and digest always
    produce the same signature.
    """
    sk = SigningKey.from_string(privkey_bytes, curve=_CURVE)
    return sk.sign_digest_deterministic(
        digest,
        hashfunc=hashlib.sha256,
        sigencode=sigencode_der_canonize,
    )


def verify_digest(pubkey_bytes: bytes, digest: bytes, signature: bytes) -> bool:
    """Verify a DER signature over *digest*.

    Malformed public keys or signatures yield ``False`` rather than an error.
    """
    try:
        vk = VerifyingKey.from_string(pubkey_bytes, curve=_CURVE)
        return vk.verify_digest(signature, digest, sigdecode=sigdecode_der)
    except Exception:
        return False
