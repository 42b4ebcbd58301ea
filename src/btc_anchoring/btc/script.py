"""Bitcoin script building — P2SH, P2PKH, OP_RETURN, multisig, type detection.

Provides construction and parsing of the standard scripts anchoring relies on:
- P2SH (Pay-to-Script-Hash) and P2PKH locking scripts
- OP_RETURN (data carrier) scripts
- Multisig redeem scripts and the matching P2SH unlocking script
- Instruction parsing and script type detection
"""

from __future__ import annotations

import enum
import struct
from collections.abc import Iterator, Sequence

from btc_anchoring.utils.crypto import hash160

# ---------------------------------------------------------------------------
# Opcodes
# ---------------------------------------------------------------------------


class OpCode(int, enum.Enum):
    """Commonly used Bitcoin opcodes."""

    OP_0 = 0x00
    OP_PUSHDATA1 = 0x4C
    OP_PUSHDATA2 = 0x4D
    OP_PUSHDATA4 = 0x4E
    OP_1 = 0x51
    OP_16 = 0x60
    OP_RETURN = 0x6A
    OP_DUP = 0x76
    OP_EQUAL = 0x87
    OP_EQUALVERIFY = 0x88
    OP_HASH160 = 0xA9
    OP_CHECKSIG = 0xAC
    OP_CHECKMULTISIG = 0xAE


# ---------------------------------------------------------------------------
# Script Type
# ---------------------------------------------------------------------------


class ScriptType(enum.StrEnum):
    """Known script types."""

    P2PKH = "pubkeyhash"
    P2SH = "scripthash"
    NULL_DATA = "nulldata"
    MULTISIG = "multisig"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Data push helpers
# ---------------------------------------------------------------------------


def push_data(data: bytes) -> bytes:
    """Encode a data push operation using minimal encoding rules.

    Args:
        data: Arbitrary data bytes.

    Returns:
        The opcode(s) + data for a minimal push of *data*.
    """
    length = len(data)
    if length == 0:
        return bytes([OpCode.OP_0])
    if length <= 0x4B:
        return bytes([length]) + data
    if length <= 0xFF:
        return bytes([OpCode.OP_PUSHDATA1, length]) + data
    if length <= 0xFFFF:
        return bytes([OpCode.OP_PUSHDATA2]) + struct.pack("<H", length) + data
    return bytes([OpCode.OP_PUSHDATA4]) + struct.pack("<I", length) + data


def small_int_opcode(n: int) -> int:
    """Return the OP_1..OP_16 opcode encoding *n*."""
    if not 1 <= n <= 16:
        msg = f"small integer out of range: {n}"
        raise ValueError(msg)
    return OpCode.OP_1 + n - 1


def decode_small_int(opcode: int) -> int | None:
    """Inverse of :func:`small_int_opcode`, ``None`` for any other opcode."""
    if OpCode.OP_1 <= opcode <= OpCode.OP_16:
        return opcode - OpCode.OP_1 + 1
    return None


# ---------------------------------------------------------------------------
# Instruction parsing
# ---------------------------------------------------------------------------


_PUSHDATA_WIDTHS = {0x4C: 1, 0x4D: 2, 0x4E: 4}


def iter_instructions(script: bytes) -> Iterator[tuple[int, bytes | None]]:
    """Walk a script, yielding ``(opcode, data)`` pairs.

    ``data`` holds the pushed bytes for push operations (``b""`` for OP_0)
    and ``None`` for every other opcode.

    Raises:
        ValueError: If a push runs past the end of the script.
    """
    i = 0
    end = len(script)
    while i < end:
        opcode = script[i]
        i += 1
        if opcode > OpCode.OP_PUSHDATA4:
            yield opcode, None
            continue
        if opcode < OpCode.OP_PUSHDATA1:
            length = opcode
        else:
            width = _PUSHDATA_WIDTHS[opcode]
            if i + width > end:
                msg = "truncated push length"
                raise ValueError(msg)
            length = int.from_bytes(script[i : i + width], "little")
            i += width
        if i + length > end:
            msg = f"push of {length} bytes runs past end of script"
            raise ValueError(msg)
        yield opcode, script[i : i + length]
        i += length


def push_items(script: bytes) -> list[bytes]:
    """Return the data of every push in *script*, stopping at malformed data."""
    items: list[bytes] = []
    try:
        for _, data in iter_instructions(script):
            if data is not None:
                items.append(data)
    except ValueError:
        pass
    return items


def first_push(script: bytes) -> bytes | None:
    """Return the first pushed operand of *script*, or ``None``."""
    try:
        for _, data in iter_instructions(script):
            if data is not None:
                return data
    except ValueError:
        return None
    return None


# ---------------------------------------------------------------------------
# Locking scripts
# ---------------------------------------------------------------------------


def p2pkh_lock_script(pubkey_hash: bytes) -> bytes:
    """Build a P2PKH locking script.

    OP_DUP OP_HASH160 <20 bytes> OP_EQUALVERIFY OP_CHECKSIG
    """
    if len(pubkey_hash) != 20:
        msg = f"pubkey_hash must be 20 bytes, got {len(pubkey_hash)}"
        raise ValueError(msg)
    return (
        bytes([OpCode.OP_DUP, OpCode.OP_HASH160])
        + push_data(pubkey_hash)
        + bytes([OpCode.OP_EQUALVERIFY, OpCode.OP_CHECKSIG])
    )


def p2sh_lock_script(script_hash: bytes) -> bytes:
    """Build a P2SH locking script.

    OP_HASH160 <20 bytes> OP_EQUAL

    Args:
        script_hash: 20-byte Hash160 of the redeem script.

    Returns:
        23-byte locking script.
    """
    if len(script_hash) != 20:
        msg = f"script_hash must be 20 bytes, got {len(script_hash)}"
        raise ValueError(msg)
    return bytes([OpCode.OP_HASH160]) + push_data(script_hash) + bytes([OpCode.OP_EQUAL])


def p2sh_lock_script_from_redeem(redeem_script: bytes) -> bytes:
    return p2sh_lock_script(hash160(redeem_script))


def op_return_script(*data_items: bytes) -> bytes:
    """Build a provably unspendable data carrier script.

    ``OP_RETURN <push data1> <push data2> ...``
    """
    script = bytes([OpCode.OP_RETURN])
    for item in data_items:
        script += push_data(item)
    return script


# ---------------------------------------------------------------------------
# Multisig
# ---------------------------------------------------------------------------


def multisig_script(pubkeys: Sequence[bytes], threshold: int) -> bytes:
    """Build a bare ``OP_m <pk1> ... <pkn> OP_n OP_CHECKMULTISIG`` script.

    Key order is preserved; signatures must later be supplied in this order.
    """
    if not pubkeys:
        msg = "multisig script needs at least one public key"
        raise ValueError(msg)
    if not 1 <= threshold <= len(pubkeys) <= 16:
        msg = f"invalid multisig threshold {threshold} of {len(pubkeys)}"
        raise ValueError(msg)
    script = bytes([small_int_opcode(threshold)])
    for pubkey in pubkeys:
        script += push_data(pubkey)
    script += bytes([small_int_opcode(len(pubkeys)), OpCode.OP_CHECKMULTISIG])
    return script


def p2sh_multisig_unlock_script(signatures: Sequence[bytes], redeem_script: bytes) -> bytes:
    """Build the unlocking script spending a P2SH multisig output.

    ``OP_0 <sig1> ... <sigm> <redeem script>``; the leading OP_0 feeds the
    extra stack item consumed by OP_CHECKMULTISIG.
    """
    script = bytes([OpCode.OP_0])
    for signature in signatures:
        script += push_data(signature)
    return script + push_data(redeem_script)


# ---------------------------------------------------------------------------
# Script type detection
# ---------------------------------------------------------------------------


def is_p2sh(script: bytes) -> bool:
    """``OP_HASH160 <20 bytes> OP_EQUAL``"""
    return (
        len(script) == 23
        and script[0] == OpCode.OP_HASH160
        and script[1] == 0x14
        and script[22] == OpCode.OP_EQUAL
    )


def detect_script_type(script: bytes) -> ScriptType:
    """Detect the type of a locking script."""
    if len(script) == 0:
        return ScriptType.UNKNOWN

    if (
        len(script) == 25
        and script[0] == OpCode.OP_DUP
        and script[1] == OpCode.OP_HASH160
        and script[2] == 0x14  # push 20 bytes
        and script[23] == OpCode.OP_EQUALVERIFY
        and script[24] == OpCode.OP_CHECKSIG
    ):
        return ScriptType.P2PKH

    if is_p2sh(script):
        return ScriptType.P2SH

    if script[0] == OpCode.OP_RETURN:
        return ScriptType.NULL_DATA

    if script[-1] == OpCode.OP_CHECKMULTISIG and decode_small_int(script[0]) is not None:
        return ScriptType.MULTISIG

    return ScriptType.UNKNOWN


def extract_script_hash(script: bytes) -> bytes | None:
    """Extract the 20-byte redeem script hash from a P2SH locking script."""
    if not is_p2sh(script):
        return None
    return script[2:22]


def extract_pubkey_hash(script: bytes) -> bytes | None:
    """Extract the 20-byte pubkey hash from a P2PKH locking script."""
    if detect_script_type(script) != ScriptType.P2PKH:
        return None
    return script[3:23]
