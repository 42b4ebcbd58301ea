"""Transaction serialisation — consensus binary encoding, hex, txid.

Anchoring only ever builds legacy transactions, but the node wallet may hand
back segwit (BIP144) ones when funding, so both layouts are parsed.  CompactSize
lengths must be minimally encoded.
"""

from __future__ import annotations

import copy
import struct
from dataclasses import dataclass, field
from io import BytesIO

from btc_anchoring.errors import DecodeError
from btc_anchoring.utils.crypto import sha256d

# ---------------------------------------------------------------------------
# Stream helpers
# ---------------------------------------------------------------------------


def _read_exact(stream: BytesIO, n: int, what: str) -> bytes:
    data = stream.read(n)
    if len(data) != n:
        msg = f"Unexpected end of stream reading {what}"
        raise DecodeError(msg)
    return data


def _read_u32(stream: BytesIO, what: str) -> int:
    return struct.unpack("<I", _read_exact(stream, 4, what))[0]


# ---------------------------------------------------------------------------
# VarInt (CompactSize) encoding / decoding
# ---------------------------------------------------------------------------


def encode_varint(n: int) -> bytes:
    """CompactSize encoding of *n*."""
    if n < 0xFD:
        return struct.pack("<B", n)
    if n <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", n)
    if n <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", n)
    return b"\xff" + struct.pack("<Q", n)


def read_varint(stream: BytesIO) -> int:
    """Read one CompactSize value from *stream*.

    Raises:
        DecodeError: On a truncated stream or a non-minimal encoding.
    """
    n = _read_exact(stream, 1, "varint")[0]
    if n < 0xFD:
        return n
    if n == 0xFD:
        value, minimum = struct.unpack("<H", _read_exact(stream, 2, "varint"))[0], 0xFD
    elif n == 0xFE:
        value, minimum = struct.unpack("<I", _read_exact(stream, 4, "varint"))[0], 0x10000
    else:
        value, minimum = struct.unpack("<Q", _read_exact(stream, 8, "varint"))[0], 0x100000000
    if value < minimum:
        msg = f"Non-canonical varint encoding for {value}"
        raise DecodeError(msg)
    return value


def _read_var_bytes(stream: BytesIO, what: str) -> bytes:
    length = read_varint(stream)
    return _read_exact(stream, length, what)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Final sequence, no relative locktime / RBF signalling
DEFAULT_SEQUENCE = 0xFFFFFFFF

_SEGWIT_MARKER = 0x00
_SEGWIT_FLAG = 0x01


# ---------------------------------------------------------------------------
# TxInput
# ---------------------------------------------------------------------------


@dataclass
class TxInput:
    """A transaction input.

    Attributes:
        prev_tx_id: 32-byte hash of the spent transaction (internal byte order).
        prev_tx_out_index: Index of the spent output.
        script_sig: Unlocking script.
        sequence: nSequence, final by default.
        witness: Segregated witness stack items, empty for legacy inputs.
    """

    prev_tx_id: bytes
    prev_tx_out_index: int
    script_sig: bytes = b""
    sequence: int = DEFAULT_SEQUENCE
    witness: list[bytes] = field(default_factory=list)

    @property
    def prev_tx_id_hex(self) -> str:
        """Spent transaction id in display (reversed) hex."""
        return self.prev_tx_id[::-1].hex()

    def serialize(self) -> bytes:
        """Outpoint, unlocking script and sequence; witness data is separate."""
        return b"".join(
            (
                self.prev_tx_id,
                struct.pack("<I", self.prev_tx_out_index),
                encode_varint(len(self.script_sig)),
                self.script_sig,
                struct.pack("<I", self.sequence),
            )
        )

    def serialize_witness(self) -> bytes:
        result = encode_varint(len(self.witness))
        for item in self.witness:
            result += encode_varint(len(item)) + item
        return result

    @classmethod
    def deserialize(cls, stream: BytesIO) -> TxInput:
        prev_tx_id = _read_exact(stream, 32, "prev_tx_id")
        prev_tx_out_index = _read_u32(stream, "prev_tx_out_index")
        script_sig = _read_var_bytes(stream, "script_sig")
        sequence = _read_u32(stream, "sequence")
        return cls(
            prev_tx_id=prev_tx_id,
            prev_tx_out_index=prev_tx_out_index,
            script_sig=script_sig,
            sequence=sequence,
        )


# ---------------------------------------------------------------------------
# TxOutput
# ---------------------------------------------------------------------------


@dataclass
class TxOutput:
    """A transaction output.

    Attributes:
        value: Amount in satoshis.
        script_pubkey: Locking script the amount is paid to.
    """

    value: int
    script_pubkey: bytes

    def serialize(self) -> bytes:
        script = self.script_pubkey
        return struct.pack("<Q", self.value) + encode_varint(len(script)) + script

    @classmethod
    def deserialize(cls, stream: BytesIO) -> TxOutput:
        value = struct.unpack("<Q", _read_exact(stream, 8, "output value"))[0]
        script_pubkey = _read_var_bytes(stream, "script_pubkey")
        return cls(value=value, script_pubkey=script_pubkey)


# ---------------------------------------------------------------------------
# Transaction
# ---------------------------------------------------------------------------


@dataclass
class Transaction:
    """A Bitcoin transaction, mutable so unlocking scripts can be filled in after signing.

    A transaction with no inputs but some outputs serializes to bytes that
    read as a BIP144 marker, so it cannot be decoded again.  A transaction
    with neither inputs nor outputs round-trips.
    """

    version: int = 1
    inputs: list[TxInput] = field(default_factory=list)
    outputs: list[TxOutput] = field(default_factory=list)
    locktime: int = 0

    @property
    def has_witness(self) -> bool:
        return any(inp.witness for inp in self.inputs)

    def serialize(self, *, include_witness: bool = True) -> bytes:
        """Serialize the transaction to raw bytes.

        Witness data is written (BIP144) only when an input carries any and
        *include_witness* is set.
        """
        segwit = include_witness and self.has_witness
        parts = [struct.pack("<i", self.version)]
        if segwit:
            parts.append(bytes([_SEGWIT_MARKER, _SEGWIT_FLAG]))
        parts.append(encode_varint(len(self.inputs)))
        parts.extend(inp.serialize() for inp in self.inputs)
        parts.append(encode_varint(len(self.outputs)))
        parts.extend(out.serialize() for out in self.outputs)
        if segwit:
            parts.extend(inp.serialize_witness() for inp in self.inputs)
        parts.append(struct.pack("<I", self.locktime))
        return b"".join(parts)

    def to_hex(self) -> str:
        return self.serialize().hex()

    @classmethod
    def deserialize(cls, stream: BytesIO) -> Transaction:
        """Parse one transaction, legacy or BIP144, from *stream*."""
        version = struct.unpack("<i", _read_exact(stream, 4, "version"))[0]
        n_inputs = read_varint(stream)
        segwit = False
        if n_inputs == _SEGWIT_MARKER:
            flag = _read_exact(stream, 1, "segwit flag")[0]
            if flag == 0:
                # zero inputs followed by zero outputs
                locktime = _read_u32(stream, "locktime")
                return cls(version=version, inputs=[], outputs=[], locktime=locktime)
            if flag != _SEGWIT_FLAG:
                msg = f"Unsupported segwit flag {flag:#x}"
                raise DecodeError(msg)
            segwit = True
            n_inputs = read_varint(stream)
        inputs = [TxInput.deserialize(stream) for _ in range(n_inputs)]
        n_outputs = read_varint(stream)
        outputs = [TxOutput.deserialize(stream) for _ in range(n_outputs)]
        if segwit:
            for inp in inputs:
                n_items = read_varint(stream)
                inp.witness = [_read_var_bytes(stream, "witness item") for _ in range(n_items)]
            if not any(inp.witness for inp in inputs):
                msg = "Segwit serialization without witness data"
                raise DecodeError(msg)
        locktime = _read_u32(stream, "locktime")
        return cls(version=version, inputs=inputs, outputs=outputs, locktime=locktime)

    @classmethod
    def from_hex(cls, hex_str: str) -> Transaction:
        """Parse a hex-encoded transaction.

        Raises:
            DecodeError: If the string is not hex or does not encode exactly
                one well-formed transaction.
        """
        try:
            raw = bytes.fromhex(hex_str)
        except (TypeError, ValueError) as exc:
            msg = f"Invalid transaction hex: {exc}"
            raise DecodeError(msg) from exc
        return cls.from_bytes(raw)

    @classmethod
    def from_bytes(cls, data: bytes) -> Transaction:
        """Parse *data*, which must hold exactly one transaction."""
        stream = BytesIO(data)
        tx = cls.deserialize(stream)
        remaining = len(data) - stream.tell()
        if remaining:
            msg = f"{remaining} trailing bytes after transaction"
            raise DecodeError(msg)
        return tx

    def txid(self) -> str:
        """Transaction id as shown by explorers and the node RPC (byte-reversed hex)."""
        return self.txid_bytes()[::-1].hex()

    def txid_bytes(self) -> bytes:
        """Double SHA-256 of the witness-stripped serialization, as referenced by outpoints."""
        return sha256d(self.serialize(include_witness=False))

    @property
    def size(self) -> int:
        """Serialized size in bytes, witness included."""
        return len(self.serialize())

    def copy(self) -> Transaction:
        """Return a deep copy that can be mutated independently."""
        return copy.deepcopy(self)
