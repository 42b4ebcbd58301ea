"""Bitcoin Core RPC response models — unspent outputs, transaction info.

Amounts reported by the node in BTC are converted to integer satoshis
through ``Decimal`` so no precision is lost.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

SATOSHIS_PER_BTC = 100_000_000


def btc_to_satoshis(amount: Decimal | int | float | str) -> int:
    """Convert a BTC amount as returned by the node to satoshis."""
    return int((Decimal(str(amount)) * SATOSHIS_PER_BTC).to_integral_exact())


def satoshis_to_btc(satoshis: int) -> str:
    """Format satoshis as a plain decimal BTC string (no exponent)."""
    return f"{Decimal(satoshis).scaleb(-8):f}"


@dataclass(frozen=True)
class UnspentInfo:
    """A single entry of ``listunspent``.

    Attributes:
        txid: Transaction id (display hex).
        vout: Output index.
        address: Address the output pays to.
        script_pubkey: Locking script (hex).
        amount: Value in satoshis.
        confirmations: Confirmation count (0 = mempool).
        redeem_script: Redeem script (hex) when the wallet knows it.
        spendable: Whether the wallet holds the keys to spend it.
    """

    txid: str
    vout: int
    address: str
    script_pubkey: str
    amount: int
    confirmations: int
    redeem_script: str = ""
    spendable: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UnspentInfo:
        return cls(
            txid=data["txid"],
            vout=data["vout"],
            address=data.get("address", ""),
            script_pubkey=data.get("scriptPubKey", ""),
            amount=btc_to_satoshis(data.get("amount", 0)),
            confirmations=data.get("confirmations", 0),
            redeem_script=data.get("redeemScript", ""),
            spendable=data.get("spendable", False),
        )


@dataclass(frozen=True)
class TransactionInfo:
    """Verbose ``getrawtransaction`` result, trimmed to what anchoring needs.

    Attributes:
        txid: Transaction id (display hex).
        hex: Raw transaction hex.
        confirmations: Confirmation count, 0 while in the mempool.
        block_hash: Containing block hash, empty while unconfirmed.
        block_time: Block timestamp, 0 while unconfirmed.
        time: Time the node first saw the transaction.
    """

    txid: str
    hex: str = ""
    confirmations: int = 0
    block_hash: str = ""
    block_time: int = 0
    time: int = 0

    @property
    def is_confirmed(self) -> bool:
        return self.confirmations > 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionInfo:
        return cls(
            txid=data["txid"],
            hex=data.get("hex", ""),
            confirmations=data.get("confirmations", 0),
            block_hash=data.get("blockhash", ""),
            block_time=data.get("blocktime", 0),
            time=data.get("time", 0),
        )
