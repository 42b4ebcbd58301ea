"""Multisig redeem scripts, legacy signature hashing and the signer port.

The anchoring wallet is an m-of-n P2SH multisig.  Everything that touches a
private key goes through the :class:`Signer` protocol so transaction
construction stays free of key material; :class:`EcdsaSigner` is the local
in-process implementation.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from btc_anchoring.btc.address import Address, Network
from btc_anchoring.btc.keys import sign_digest, verify_digest
from btc_anchoring.btc.script import (
    OpCode,
    decode_small_int,
    iter_instructions,
    multisig_script,
    p2sh_lock_script,
)
from btc_anchoring.utils.crypto import hash160, sha256d

if TYPE_CHECKING:
    from btc_anchoring.btc.transaction import Transaction

SIGHASH_ALL = 0x01


# ---------------------------------------------------------------------------
# Redeem script
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RedeemScript:
    """Serialized ``OP_m <pubkeys...> OP_n OP_CHECKMULTISIG`` script."""

    script: bytes

    @classmethod
    def from_pubkeys(cls, pubkeys: Iterable[bytes], threshold: int) -> RedeemScript:
        """Build an m-of-n redeem script, keeping *pubkeys* in the given order."""
        return cls(multisig_script(list(pubkeys), threshold))

    @classmethod
    def from_hex(cls, hex_str: str) -> RedeemScript:
        return cls(bytes.fromhex(hex_str))

    def to_hex(self) -> str:
        return self.script.hex()

    def _parse(self) -> tuple[int, list[bytes]]:
        ops = list(iter_instructions(self.script))
        if len(ops) < 3 or ops[-1][0] != OpCode.OP_CHECKMULTISIG:
            msg = "not a multisig script"
            raise ValueError(msg)
        threshold = decode_small_int(ops[0][0])
        total = decode_small_int(ops[-2][0])
        pubkeys = [data for _, data in ops[1:-2] if data is not None]
        if threshold is None or total is None or total != len(pubkeys):
            msg = "malformed multisig script"
            raise ValueError(msg)
        return threshold, pubkeys

    @property
    def required_signatures(self) -> int:
        return self._parse()[0]

    def public_keys(self) -> list[bytes]:
        """Public keys in script order."""
        return self._parse()[1]

    def script_hash(self) -> bytes:
        """Hash160 of the script, committed to by the P2SH output."""
        return hash160(self.script)

    def script_pubkey(self) -> bytes:
        return p2sh_lock_script(self.script_hash())

    def address(self, network: Network) -> Address:
        """P2SH address for *network*."""
        return Address.p2sh(self.script_hash(), network)


# ---------------------------------------------------------------------------
# Signature hash
# ---------------------------------------------------------------------------


def signature_hash(
    tx: Transaction,
    input_index: int,
    script_code: bytes,
    sighash_type: int = SIGHASH_ALL,
) -> bytes:
    """Legacy (pre-segwit) signature hash of one input.

    Every unlocking script is blanked, the signed input carries
    *script_code*, and the sighash type is appended as a 4-byte integer.
    """
    if not 0 <= input_index < len(tx.inputs):
        msg = f"input index {input_index} out of range"
        raise IndexError(msg)
    tx_copy = tx.copy()
    for i, inp in enumerate(tx_copy.inputs):
        inp.script_sig = script_code if i == input_index else b""
        inp.witness = []
    preimage = tx_copy.serialize(include_witness=False) + struct.pack("<I", sighash_type)
    return sha256d(preimage)


# ---------------------------------------------------------------------------
# Signer port
# ---------------------------------------------------------------------------


class Signer(Protocol):
    """Signs and verifies P2SH multisig inputs."""

    def sign_input(
        self,
        tx: Transaction,
        input_index: int,
        redeem_script: RedeemScript,
        private_key: bytes,
    ) -> bytes: ...

    def verify_input(
        self,
        tx: Transaction,
        input_index: int,
        redeem_script: RedeemScript,
        public_key: bytes,
        signature: bytes,
    ) -> bool: ...


class EcdsaSigner:
    """In-process secp256k1 signer.

    Signatures are DER with the sighash type byte appended, ready to be
    pushed into an unlocking script.
    """

    def __init__(self, sighash_type: int = SIGHASH_ALL) -> None:
        self._sighash_type = sighash_type

    def sign_input(
        self,
        tx: Transaction,
        input_index: int,
        redeem_script: RedeemScript,
        private_key: bytes,
    ) -> bytes:
        digest = signature_hash(tx, input_index, redeem_script.script, self._sighash_type)
        return sign_digest(private_key, digest) + bytes([self._sighash_type])

    def verify_input(
        self,
        tx: Transaction,
        input_index: int,
        redeem_script: RedeemScript,
        public_key: bytes,
        signature: bytes,
    ) -> bool:
        if len(signature) < 2 or signature[-1] != self._sighash_type:
            return False
        try:
            digest = signature_hash(tx, input_index, redeem_script.script, self._sighash_type)
        except IndexError:
            return False
        return verify_digest(public_key, digest, signature[:-1])
