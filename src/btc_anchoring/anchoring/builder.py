"""Fluent builder for unsigned anchoring transactions.

Usage::

    tx = (
        TransactionBuilder.with_previous_output(prev_tx, 0)
        .add_funds(funding_tx, 0)
        .payload(height, block_hash)
        .fee(1000)
        .send_to(redeem_script.address(network))
        .build()
    )

Fields may be set in any order; nothing is checked until :meth:`build`.
"""

from __future__ import annotations

import logging

from btc_anchoring.anchoring.payload import Payload
from btc_anchoring.anchoring.transactions import AnchoringTx, AnyTx
from btc_anchoring.btc.address import Address
from btc_anchoring.btc.transaction import DEFAULT_SEQUENCE, Transaction, TxInput, TxOutput
from btc_anchoring.errors import PreconditionError

logger = logging.getLogger(__name__)


def _raw(tx: Transaction | AnyTx) -> Transaction:
    return tx if isinstance(tx, Transaction) else tx.tx


class TransactionBuilder:
    """Accumulates inputs, destination, fee and payload of an anchoring transaction."""

    def __init__(self) -> None:
        self._inputs: list[tuple[Transaction, int]] = []
        self._destination: Address | str | None = None
        self._fee: int | None = None
        self._payload: tuple[int, bytes] | None = None

    @classmethod
    def with_previous_output(cls, tx: Transaction | AnyTx, index: int) -> TransactionBuilder:
        """Start a builder spending output *index* of the previous anchoring or funding tx."""
        return cls().add_funds(tx, index)

    def add_funds(self, tx: Transaction | AnyTx, index: int) -> TransactionBuilder:
        """Spend another output, appended after the existing inputs."""
        self._inputs.append((_raw(tx), index))
        return self

    def fee(self, amount: int) -> TransactionBuilder:
        self._fee = amount
        return self

    def payload(self, height: int, block_hash: bytes) -> TransactionBuilder:
        self._payload = (height, block_hash)
        return self

    def send_to(self, address: Address | str) -> TransactionBuilder:
        self._destination = address
        return self

    def build(self) -> AnchoringTx:
        """Assemble the unsigned anchoring transaction.

        Raises:
            PreconditionError: If destination, fee or payload is unset, an
                input references a missing output, or the fee exceeds the
                total input value.
        """
        destination, fee, payload_fields = self._destination, self._fee, self._payload
        if destination is None or fee is None or payload_fields is None:
            missing = tuple(
                name
                for name, value in (
                    ("destination", destination),
                    ("fee", fee),
                    ("payload", payload_fields),
                )
                if value is None
            )
            msg = f"Anchoring transaction is missing: {', '.join(missing)}"
            raise PreconditionError(msg, missing=missing)

        if not self._inputs:
            msg = "Anchoring transaction has no inputs"
            raise PreconditionError(msg, missing=("inputs",))
        if fee < 0:
            msg = f"Fee must not be negative, got {fee}"
            raise PreconditionError(msg)

        try:
            payload = Payload(*payload_fields)
            if not isinstance(destination, Address):
                destination = Address.from_string(destination)
        except ValueError as exc:
            raise PreconditionError(str(exc)) from exc

        total = 0
        for source, index in self._inputs:
            if not 0 <= index < len(source.outputs):
                msg = f"Transaction {source.txid()} has no output {index}"
                raise PreconditionError(msg)
            total += source.outputs[index].value

        if fee > total:
            msg = f"Fee {fee} exceeds total input value {total}"
            raise PreconditionError(msg)

        tx = Transaction(
            version=1,
            inputs=[
                TxInput(
                    prev_tx_id=source.txid_bytes(),
                    prev_tx_out_index=index,
                    script_sig=b"",
                    sequence=DEFAULT_SEQUENCE,
                )
                for source, index in self._inputs
            ],
            outputs=[
                TxOutput(value=total - fee, script_pubkey=destination.script_pubkey()),
                payload.to_output(),
            ],
            locktime=0,
        )
        anchoring = AnchoringTx(tx)
        logger.info(
            "Built anchoring transaction %s: height %d, %d satoshis, %d inputs",
            anchoring.txid(),
            payload.height,
            anchoring.amount(),
            len(tx.inputs),
        )
        return anchoring
