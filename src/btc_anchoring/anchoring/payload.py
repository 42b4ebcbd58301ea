"""Checkpoint payload codec.

An anchoring transaction carries the anchored block in its second output,
an ``OP_RETURN`` data carrier with a single 42-byte push:

    offset  size  field
    0       1     format version (1)
    1       1     payload length (40)
    2       8     block height, little-endian
    10      32    block hash
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING

from btc_anchoring.btc.script import first_push, op_return_script
from btc_anchoring.btc.transaction import TxOutput

if TYPE_CHECKING:
    from btc_anchoring.btc.transaction import Transaction

PAYLOAD_VERSION = 1
PAYLOAD_LENGTH = 40
PAYLOAD_SIZE = 2 + PAYLOAD_LENGTH
DATA_OUTPUT_INDEX = 1

_MAX_HEIGHT = 2**64 - 1


@dataclass(frozen=True)
class Payload:
    """Anchored block height and hash."""

    height: int
    block_hash: bytes

    def __post_init__(self) -> None:
        if not 0 <= self.height <= _MAX_HEIGHT:
            msg = f"block height out of range: {self.height}"
            raise ValueError(msg)
        if len(self.block_hash) != 32:
            msg = f"block hash must be 32 bytes, got {len(self.block_hash)}"
            raise ValueError(msg)

    def serialize(self) -> bytes:
        """The 42-byte wire form."""
        return (
            bytes([PAYLOAD_VERSION, PAYLOAD_LENGTH])
            + struct.pack("<Q", self.height)
            + self.block_hash
        )

    @classmethod
    def deserialize(cls, data: bytes) -> Payload | None:
        """Parse the wire form, ``None`` unless it is a version-1 payload."""
        if len(data) != PAYLOAD_SIZE or data[0] != PAYLOAD_VERSION:
            return None
        height = struct.unpack("<Q", data[2:10])[0]
        return cls(height=height, block_hash=bytes(data[10:42]))

    def to_script(self) -> bytes:
        return op_return_script(self.serialize())

    def to_output(self) -> TxOutput:
        """Zero-value data carrier output holding this payload."""
        return TxOutput(value=0, script_pubkey=self.to_script())


def find_payload(tx: Transaction) -> Payload | None:
    """Decode the payload from output 1 of *tx*.

    Absence is a normal outcome: ``None`` is returned when the output is
    missing, carries no push, or the push is not a valid payload.
    """
    if len(tx.outputs) <= DATA_OUTPUT_INDEX:
        return None
    data = first_push(tx.outputs[DATA_OUTPUT_INDEX].script_pubkey)
    if data is None:
        return None
    return Payload.deserialize(data)
