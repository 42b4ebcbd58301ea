"""Address encoding — Base58Check P2SH / P2PKH addresses, WIF keys.

- ``Network`` selects the version bytes
- ``Address`` converts between the Base58Check form and a locking script
- WIF (Wallet Import Format) private key decoding
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from btc_anchoring.btc.keys import base58check_decode, base58check_encode, is_valid_private_key
from btc_anchoring.btc.script import (
    extract_pubkey_hash,
    extract_script_hash,
    p2pkh_lock_script,
    p2sh_lock_script,
)


class Network(enum.StrEnum):
    """Bitcoin networks; regtest shares the testnet version bytes."""

    BITCOIN = "bitcoin"
    TESTNET = "testnet"
    REGTEST = "regtest"

    @property
    def is_testnet(self) -> bool:
        return self is not Network.BITCOIN


class AddressType(enum.StrEnum):
    P2PKH = "p2pkh"
    P2SH = "p2sh"


# Network version bytes
_MAINNET_PUBKEY_HASH = 0x00  # 1...
_TESTNET_PUBKEY_HASH = 0x6F  # m... or n...
_MAINNET_SCRIPT_HASH = 0x05  # 3...
_TESTNET_SCRIPT_HASH = 0xC4  # 2...
_MAINNET_WIF = 0x80
_TESTNET_WIF = 0xEF

_VERSIONS: dict[int, tuple[AddressType, bool]] = {
    _MAINNET_PUBKEY_HASH: (AddressType.P2PKH, False),
    _TESTNET_PUBKEY_HASH: (AddressType.P2PKH, True),
    _MAINNET_SCRIPT_HASH: (AddressType.P2SH, False),
    _TESTNET_SCRIPT_HASH: (AddressType.P2SH, True),
}


@dataclass(frozen=True, eq=False)
class Address:
    """A legacy Base58Check address.

    Regtest and testnet share version bytes, so equality follows the encoded
    form: a regtest address equals its testnet twin.

    Attributes:
        hash: 20-byte script hash (P2SH) or public key hash (P2PKH).
        type: Address type.
        network: Network the address belongs to.
    """

    hash: bytes
    type: AddressType
    network: Network = Network.TESTNET

    def __post_init__(self) -> None:
        if len(self.hash) != 20:
            msg = f"Address hash must be 20 bytes, got {len(self.hash)}"
            raise ValueError(msg)

    @classmethod
    def p2sh(cls, script_hash: bytes, network: Network) -> Address:
        return cls(hash=script_hash, type=AddressType.P2SH, network=network)

    @classmethod
    def from_string(cls, address: str) -> Address:
        """Decode a Base58Check address string.

        Testnet version bytes always decode as ``Network.TESTNET``.

        Raises:
            ValueError: If the address is malformed or of an unknown version.
        """
        payload = base58check_decode(address)
        if len(payload) != 21:
            msg = f"Invalid address payload length: {len(payload)}"
            raise ValueError(msg)
        try:
            addr_type, testnet = _VERSIONS[payload[0]]
        except KeyError:
            msg = f"Unknown address version byte: {payload[0]:#04x}"
            raise ValueError(msg) from None
        network = Network.TESTNET if testnet else Network.BITCOIN
        return cls(hash=payload[1:], type=addr_type, network=network)

    @classmethod
    def from_script(cls, script_pubkey: bytes, network: Network) -> Address | None:
        """Recover the address paid by a P2SH or P2PKH locking script."""
        script_hash = extract_script_hash(script_pubkey)
        if script_hash is not None:
            return cls(hash=script_hash, type=AddressType.P2SH, network=network)
        pubkey_hash = extract_pubkey_hash(script_pubkey)
        if pubkey_hash is not None:
            return cls(hash=pubkey_hash, type=AddressType.P2PKH, network=network)
        return None

    @property
    def version(self) -> int:
        testnet = self.network.is_testnet
        if self.type is AddressType.P2SH:
            return _TESTNET_SCRIPT_HASH if testnet else _MAINNET_SCRIPT_HASH
        return _TESTNET_PUBKEY_HASH if testnet else _MAINNET_PUBKEY_HASH

    def to_string(self) -> str:
        """Encode as a Base58Check string."""
        return base58check_encode(bytes([self.version]) + self.hash)

    def script_pubkey(self) -> bytes:
        """Locking script paying to this address."""
        if self.type is AddressType.P2SH:
            return p2sh_lock_script(self.hash)
        return p2pkh_lock_script(self.hash)

    def __str__(self) -> str:
        return self.to_string()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return (self.version, self.hash) == (other.version, other.hash)

    def __hash__(self) -> int:
        return hash((self.version, self.hash))


def validate_address(address: str) -> bool:
    """Check if *address* is a well-formed P2SH or P2PKH address."""
    try:
        Address.from_string(address)
    except ValueError:
        return False
    return True


def wif_to_privkey(wif: str) -> tuple[bytes, bool, bool]:
    """Decode a WIF string to a private key.

    Returns:
        Tuple of (privkey_bytes, compressed, testnet).

    Raises:
        ValueError: If the string is not a valid WIF private key.
    """
    payload = base58check_decode(wif)
    if len(payload) not in (33, 34) or payload[0] not in (_MAINNET_WIF, _TESTNET_WIF):
        msg = "Invalid WIF payload"
        raise ValueError(msg)
    testnet = payload[0] == _TESTNET_WIF
    compressed = len(payload) == 34
    if compressed and payload[-1] != 0x01:
        msg = "Invalid WIF compression flag"
        raise ValueError(msg)
    privkey = payload[1:33]
    if not is_valid_private_key(privkey):
        msg = "WIF private key out of range"
        raise ValueError(msg)
    return privkey, compressed, testnet


def privkey_to_wif(privkey: bytes, *, compressed: bool = True, testnet: bool = False) -> str:
    """Encode a 32-byte private key as WIF."""
    payload = bytes([_TESTNET_WIF if testnet else _MAINNET_WIF]) + privkey
    if compressed:
        payload += b"\x01"
    return base58check_encode(payload)
