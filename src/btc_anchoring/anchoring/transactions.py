"""Anchoring, funding and plain Bitcoin transaction kinds.

All three kinds share the Bitcoin wire format; each wrapper owns a
:class:`Transaction` and the kind is decided by :func:`classify`, never by
parsing.  Structure of an anchoring transaction:

- input 0 spends the previous anchoring transaction (or the funding one)
- output 0 carries the funds forward to the multisig P2SH address
- output 1 is the zero-value checkpoint payload
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Self

from btc_anchoring.anchoring import signing
from btc_anchoring.anchoring.payload import Payload, find_payload
from btc_anchoring.btc.address import Address, Network
from btc_anchoring.btc.script import extract_script_hash, is_p2sh
from btc_anchoring.btc.transaction import Transaction
from btc_anchoring.errors import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from btc_anchoring.btc.multisig import RedeemScript, Signer
    from btc_anchoring.rpc.client import BitcoinRpc
    from btc_anchoring.rpc.models import TransactionInfo, UnspentInfo

logger = logging.getLogger(__name__)

FUNDS_OUTPUT_INDEX = 0

# listunspent upper bound on confirmations
_MAX_CONFIRMATIONS = 9_999_999


class TxKind(enum.StrEnum):
    """Semantic kind of a transaction."""

    ANCHORING = "anchoring"
    FUNDING = "funding"
    OTHER = "other"


def _as_address(address: Address | str) -> Address:
    return address if isinstance(address, Address) else Address.from_string(address)


@dataclass
class _TxWrapper:
    tx: Transaction

    kind: ClassVar[TxKind]

    @classmethod
    def from_hex(cls, hex_str: str) -> Self:
        """Decode *hex_str* and wrap it as this kind without classifying.

        Raises:
            DecodeError: If the hex does not encode a transaction.
        """
        return cls(Transaction.from_hex(hex_str))

    def to_hex(self) -> str:
        return self.tx.to_hex()

    def serialize(self) -> bytes:
        return self.tx.serialize()

    def txid(self) -> str:
        """Transaction id in display hex."""
        return self.tx.txid()

    def txid_bytes(self) -> bytes:
        return self.tx.txid_bytes()


# ---------------------------------------------------------------------------
# Plain / funding transactions
# ---------------------------------------------------------------------------


@dataclass(repr=False)
class BitcoinTx(_TxWrapper):
    """Any transaction that is neither anchoring nor funding."""

    kind: ClassVar[TxKind] = TxKind.OTHER

    def __repr__(self) -> str:
        return f"BitcoinTx(txid={self.txid()})"


@dataclass(repr=False)
class FundingTx(_TxWrapper):
    """Transaction that seeds the anchoring multisig address with funds."""

    kind: ClassVar[TxKind] = TxKind.FUNDING

    def __repr__(self) -> str:
        return f"FundingTx(txid={self.txid()})"

    @classmethod
    def create(cls, rpc: BitcoinRpc, address: Address | str, total_funds: int) -> FundingTx:
        """Pay *total_funds* satoshis from the node wallet to *address*."""
        tx = rpc.send_to_address(str(address), total_funds)
        funding = cls(tx)
        logger.info("Created funding transaction %s for %s", funding.txid(), address)
        return funding

    def find_output(self, address: Address | str) -> int | None:
        """Index of the first output paying to the P2SH *address*, if any."""
        script_hash = _as_address(address).hash
        for index, output in enumerate(self.tx.outputs):
            if extract_script_hash(output.script_pubkey) == script_hash:
                return index
        return None

    def is_unspent(
        self,
        rpc: BitcoinRpc,
        address: Address | str,
        *,
        min_confirmations: int = 0,
    ) -> UnspentInfo | None:
        """The wallet's unspent entry for this transaction at *address*, if any.

        Outputs with fewer than *min_confirmations* confirmations (usually
        ``AnchoringConfig.utxo_confirmations``) are not reported.
        """
        txid = self.txid()
        unspent = rpc.list_unspent(min_confirmations, _MAX_CONFIRMATIONS, [str(address)])
        return next((info for info in unspent if info.txid == txid), None)


# ---------------------------------------------------------------------------
# Anchoring transaction
# ---------------------------------------------------------------------------


@dataclass(repr=False)
class AnchoringTx(_TxWrapper):
    """Transaction chaining the multisig funds forward with a checkpoint payload."""

    kind: ClassVar[TxKind] = TxKind.ANCHORING

    def __repr__(self) -> str:
        payload = find_payload(self.tx)
        if payload is None:
            return f"AnchoringTx(txid={self.txid()}, payload=None)"
        return (
            f"AnchoringTx(txid={self.txid()}, height={payload.height}, "
            f"block_hash={payload.block_hash.hex()})"
        )

    def amount(self) -> int:
        """Satoshis carried forward by the funds output."""
        return self.tx.outputs[FUNDS_OUTPUT_INDEX].value

    def output_address(self, network: Network) -> Address:
        """Address the funds output pays to."""
        script = self.tx.outputs[FUNDS_OUTPUT_INDEX].script_pubkey
        address = Address.from_script(script, network)
        if address is None:
            msg = "Funds output does not pay to an address"
            raise ValueError(msg)
        return address

    def inputs(self) -> range:
        return range(len(self.tx.inputs))

    def payload(self) -> Payload:
        """Decoded checkpoint payload.

        Raises:
            RuntimeError: If the transaction carries no payload, i.e. it was
                wrapped without being classified as anchoring.
        """
        payload = find_payload(self.tx)
        if payload is None:
            msg = f"Anchoring transaction {self.txid()} carries no payload"
            raise RuntimeError(msg)
        return payload

    def previous_id(self) -> str:
        """Id of the transaction spent by input 0, in display hex."""
        return self.tx.inputs[0].prev_tx_id_hex

    def fetch_status(self, rpc: BitcoinRpc) -> TransactionInfo | None:
        """Confirmation details, ``None`` while the node has not seen the transaction."""
        try:
            return rpc.get_transaction_status(self.txid())
        except NotFoundError:
            logger.debug("Anchoring transaction %s not found", self.txid())
            return None

    # -- Signing ------------------------------------------------------------

    def sign(
        self,
        redeem_script: RedeemScript,
        input_index: int,
        private_key: bytes,
        *,
        signer: Signer | None = None,
    ) -> bytes:
        return signing.sign(self, redeem_script, input_index, private_key, signer=signer)

    def verify(
        self,
        redeem_script: RedeemScript,
        input_index: int,
        public_key: bytes,
        signature: bytes,
        *,
        signer: Signer | None = None,
    ) -> bool:
        return signing.verify(
            self, redeem_script, input_index, public_key, signature, signer=signer
        )

    def finalize(
        self,
        redeem_script: RedeemScript,
        signatures: Mapping[int, Sequence[bytes]],
    ) -> AnchoringTx:
        return signing.finalize(self, redeem_script, signatures)

    def send(
        self,
        rpc: BitcoinRpc,
        redeem_script: RedeemScript,
        signatures: Mapping[int, Sequence[bytes]],
    ) -> AnchoringTx:
        return signing.send(self, rpc, redeem_script, signatures)


AnyTx = AnchoringTx | FundingTx | BitcoinTx


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify(tx: Transaction | AnyTx) -> AnyTx:
    """Decide the kind of *tx*.

    A valid payload makes it anchoring even if it also pays to a script
    hash; otherwise any funded P2SH output makes it funding.
    """
    raw = tx if isinstance(tx, Transaction) else tx.tx
    if find_payload(raw) is not None:
        return AnchoringTx(raw)
    logger.debug("No payload in transaction with %d outputs", len(raw.outputs))
    for output in raw.outputs:
        if output.value > 0 and is_p2sh(output.script_pubkey):
            return FundingTx(raw)
    return BitcoinTx(raw)


def kind_from_txid(rpc: BitcoinRpc, txid: str) -> AnyTx:
    """Fetch a transaction by id and classify it."""
    return classify(rpc.get_transaction(txid))
