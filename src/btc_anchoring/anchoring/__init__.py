"""Anchoring transactions — payload codec, classification, building, signing."""

from btc_anchoring.anchoring.builder import TransactionBuilder
from btc_anchoring.anchoring.payload import Payload, find_payload
from btc_anchoring.anchoring.transactions import (
    AnchoringTx,
    AnyTx,
    BitcoinTx,
    FundingTx,
    TxKind,
    classify,
    kind_from_txid,
)

__all__ = [
    "AnchoringTx",
    "AnyTx",
    "BitcoinTx",
    "FundingTx",
    "Payload",
    "TransactionBuilder",
    "TxKind",
    "classify",
    "find_payload",
    "kind_from_txid",
]
