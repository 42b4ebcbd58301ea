"""Tests for transaction kinds, classification and accessors — anchoring/transactions.py."""

from __future__ import annotations

import pytest

from btc_anchoring.anchoring.payload import Payload
from btc_anchoring.anchoring.transactions import (
    AnchoringTx,
    BitcoinTx,
    FundingTx,
    TxKind,
    classify,
    kind_from_txid,
)
from btc_anchoring.btc.address import Network
from btc_anchoring.btc.script import op_return_script, p2pkh_lock_script, p2sh_lock_script
from btc_anchoring.btc.transaction import Transaction, TxInput, TxOutput
from btc_anchoring.config.settings import AnchoringConfig
from btc_anchoring.errors import DecodeError, NotFoundError, RpcError
from btc_anchoring.rpc.models import TransactionInfo, UnspentInfo
from tests.test_anchoring.fakes import FakeRpc
from tests.vectors import (
    ANCHORING_TX_HEX,
    BLOCK_HASH,
    FUNDING_TX_HEX,
    MULTISIG_SCRIPT_HASH,
    OTHER_TX_HEX,
)

# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassify:
    def test_funding_vector(self) -> None:
        kind = classify(Transaction.from_hex(FUNDING_TX_HEX))
        assert isinstance(kind, FundingTx)
        assert kind.kind is TxKind.FUNDING

    def test_anchoring_vector(self) -> None:
        kind = classify(Transaction.from_hex(ANCHORING_TX_HEX))
        assert isinstance(kind, AnchoringTx)
        assert kind.kind is TxKind.ANCHORING

    def test_other_vector(self) -> None:
        kind = classify(Transaction.from_hex(OTHER_TX_HEX))
        assert isinstance(kind, BitcoinTx)
        assert kind.kind is TxKind.OTHER

    @pytest.mark.parametrize("hex_str", [ANCHORING_TX_HEX, FUNDING_TX_HEX, OTHER_TX_HEX])
    def test_deterministic(self, hex_str: str) -> None:
        first = classify(Transaction.from_hex(hex_str))
        second = classify(Transaction.from_hex(hex_str))
        assert type(first) is type(second)
        assert first == second

    def test_reclassify_wrapper(self) -> None:
        wrapped = BitcoinTx.from_hex(FUNDING_TX_HEX)
        assert isinstance(classify(wrapped), FundingTx)

    def test_payload_wins_over_p2sh(self) -> None:
        """Output 0 of the anchoring vector is P2SH, yet the payload decides."""
        tx = Transaction.from_hex(ANCHORING_TX_HEX)
        assert tx.outputs[0].value > 0
        assert isinstance(classify(tx), AnchoringTx)

    def test_zero_value_p2sh_is_other(self) -> None:
        tx = Transaction(
            outputs=[TxOutput(value=0, script_pubkey=p2sh_lock_script(MULTISIG_SCRIPT_HASH))]
        )
        assert isinstance(classify(tx), BitcoinTx)

    def test_p2sh_in_later_output_is_funding(self) -> None:
        tx = Transaction(
            outputs=[
                TxOutput(value=5, script_pubkey=p2pkh_lock_script(b"\x01" * 20)),
                TxOutput(value=0, script_pubkey=op_return_script(b"not a payload")),
                TxOutput(value=7, script_pubkey=p2sh_lock_script(MULTISIG_SCRIPT_HASH)),
            ]
        )
        assert isinstance(classify(tx), FundingTx)

    def test_empty_transaction_is_other(self) -> None:
        assert isinstance(classify(Transaction()), BitcoinTx)

    def test_classify_does_not_hash(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _no_hashing(self) -> bytes:
            raise AssertionError("classification must not compute the txid")

        monkeypatch.setattr(Transaction, "txid_bytes", _no_hashing)
        assert isinstance(classify(Transaction.from_hex(OTHER_TX_HEX)), BitcoinTx)
        assert isinstance(classify(Transaction.from_hex(FUNDING_TX_HEX)), FundingTx)

    def test_kind_from_txid(self) -> None:
        rpc = FakeRpc()
        tx = Transaction.from_hex(ANCHORING_TX_HEX)
        rpc.transactions[tx.txid()] = tx
        assert isinstance(kind_from_txid(rpc, tx.txid()), AnchoringTx)

    def test_kind_from_unknown_txid(self) -> None:
        with pytest.raises(NotFoundError):
            kind_from_txid(FakeRpc(), "00" * 32)


# ---------------------------------------------------------------------------
# Wrappers
# ---------------------------------------------------------------------------


class TestWrappers:
    @pytest.mark.parametrize("cls", [AnchoringTx, FundingTx, BitcoinTx])
    def test_hex_delegation(self, cls) -> None:
        wrapped = cls.from_hex(FUNDING_TX_HEX)
        raw = Transaction.from_hex(FUNDING_TX_HEX)
        assert wrapped.to_hex() == FUNDING_TX_HEX
        assert wrapped.txid() == raw.txid()
        assert wrapped.txid_bytes() == raw.txid_bytes()
        assert wrapped.serialize() == raw.serialize()

    def test_from_hex_decode_error(self) -> None:
        with pytest.raises(DecodeError):
            AnchoringTx.from_hex("0100")

    def test_kinds_are_distinct(self) -> None:
        raw = Transaction.from_hex(FUNDING_TX_HEX)
        assert FundingTx(raw) == FundingTx(raw.copy())
        assert FundingTx(raw) != BitcoinTx(raw)

    def test_reprs(self) -> None:
        anchoring = AnchoringTx.from_hex(ANCHORING_TX_HEX)
        assert "height=0" in repr(anchoring)
        assert anchoring.txid() in repr(anchoring)
        assert repr(FundingTx.from_hex(FUNDING_TX_HEX)).startswith("FundingTx(txid=")
        # never raises, even for a payload-less value
        assert "payload=None" in repr(AnchoringTx.from_hex(FUNDING_TX_HEX))


# ---------------------------------------------------------------------------
# Anchoring accessors
# ---------------------------------------------------------------------------


class TestAnchoringAccessors:
    def test_amount(self) -> None:
        assert AnchoringTx.from_hex(ANCHORING_TX_HEX).amount() == 3000

    def test_output_address(self, redeem_script) -> None:
        tx = AnchoringTx.from_hex(ANCHORING_TX_HEX)
        assert str(tx.output_address(Network.TESTNET)) == str(
            redeem_script.address(Network.TESTNET)
        )

    def test_output_address_requires_address_script(self) -> None:
        tx = AnchoringTx(Transaction(outputs=[TxOutput(value=1, script_pubkey=b"\x6a")]))
        with pytest.raises(ValueError, match="address"):
            tx.output_address(Network.TESTNET)

    def test_inputs(self) -> None:
        assert AnchoringTx.from_hex(ANCHORING_TX_HEX).inputs() == range(1)

    def test_payload(self) -> None:
        payload = AnchoringTx.from_hex(ANCHORING_TX_HEX).payload()
        assert payload.height == 0
        assert payload.block_hash.hex().startswith("f1cb806d")

    def test_payload_missing_is_invariant_violation(self) -> None:
        with pytest.raises(RuntimeError, match="no payload"):
            AnchoringTx.from_hex(FUNDING_TX_HEX).payload()

    def test_previous_id(self) -> None:
        tx = AnchoringTx.from_hex(ANCHORING_TX_HEX)
        internal = bytes.fromhex(
            "4970bd8d76edf52886f62e3073714bddc6c33bccebb6b1d06db8c87fb1103ba0"
        )
        assert tx.previous_id() == internal[::-1].hex()

    def test_fetch_status(self) -> None:
        rpc = FakeRpc()
        tx = AnchoringTx.from_hex(ANCHORING_TX_HEX)
        info = TransactionInfo(txid=tx.txid(), confirmations=3)
        rpc.statuses[tx.txid()] = info
        assert tx.fetch_status(rpc) == info

    def test_fetch_status_not_found(self) -> None:
        assert AnchoringTx.from_hex(ANCHORING_TX_HEX).fetch_status(FakeRpc()) is None

    def test_fetch_status_propagates_other_errors(self) -> None:
        rpc = FakeRpc()
        rpc.fail_with = RpcError("connection refused", retriable=True)
        with pytest.raises(RpcError, match="connection refused") as exc_info:
            AnchoringTx.from_hex(ANCHORING_TX_HEX).fetch_status(rpc)
        assert exc_info.value.retriable is True


# ---------------------------------------------------------------------------
# Funding helpers
# ---------------------------------------------------------------------------


class TestFunding:
    def test_find_output(self, redeem_script) -> None:
        funding = FundingTx.from_hex(FUNDING_TX_HEX)
        assert funding.find_output(redeem_script.address(Network.TESTNET)) == 0

    def test_find_output_by_string(self, redeem_script) -> None:
        funding = FundingTx.from_hex(FUNDING_TX_HEX)
        assert funding.find_output(str(redeem_script.address(Network.TESTNET))) == 0

    def test_find_output_missing(self) -> None:
        from btc_anchoring.btc.address import Address

        funding = FundingTx.from_hex(FUNDING_TX_HEX)
        assert funding.find_output(Address.p2sh(b"\x00" * 20, Network.TESTNET)) is None

    def test_create(self, redeem_script) -> None:
        rpc = FakeRpc()
        rpc.next_payment = Transaction.from_hex(FUNDING_TX_HEX)
        address = redeem_script.address(Network.TESTNET)
        funding = FundingTx.create(rpc, address, 4000)
        assert isinstance(funding, FundingTx)
        assert funding.to_hex() == FUNDING_TX_HEX
        assert rpc.sent == [(str(address), 4000)]

    def test_is_unspent(self, redeem_script) -> None:
        rpc = FakeRpc()
        funding = FundingTx.from_hex(FUNDING_TX_HEX)
        address = str(redeem_script.address(Network.TESTNET))
        entry = UnspentInfo(
            txid=funding.txid(),
            vout=0,
            address=address,
            script_pubkey=p2sh_lock_script(MULTISIG_SCRIPT_HASH).hex(),
            amount=4000,
            confirmations=1,
        )
        other = UnspentInfo(
            txid="ab" * 32,
            vout=1,
            address=address,
            script_pubkey="",
            amount=1,
            confirmations=1,
        )
        rpc.unspent = [other, entry]
        assert funding.is_unspent(rpc, address) == entry

    def test_is_unspent_spent(self, redeem_script) -> None:
        funding = FundingTx.from_hex(FUNDING_TX_HEX)
        address = str(redeem_script.address(Network.TESTNET))
        assert funding.is_unspent(FakeRpc(), address) is None

    def test_is_unspent_min_confirmations(self, redeem_script) -> None:
        rpc = FakeRpc()
        funding = FundingTx.from_hex(FUNDING_TX_HEX)
        address = str(redeem_script.address(Network.TESTNET))
        entry = UnspentInfo(
            txid=funding.txid(),
            vout=0,
            address=address,
            script_pubkey=p2sh_lock_script(MULTISIG_SCRIPT_HASH).hex(),
            amount=4000,
            confirmations=2,
        )
        rpc.unspent = [entry]
        config = AnchoringConfig(utxo_confirmations=6)
        minimum = config.utxo_confirmations
        assert funding.is_unspent(rpc, address, min_confirmations=minimum) is None
        assert funding.is_unspent(rpc, address, min_confirmations=2) == entry


class TestBuiltTransactionClassifies:
    def test_manual_anchoring_shape(self) -> None:
        tx = Transaction(
            inputs=[TxInput(prev_tx_id=b"\x01" * 32, prev_tx_out_index=0)],
            outputs=[
                TxOutput(value=100, script_pubkey=p2sh_lock_script(MULTISIG_SCRIPT_HASH)),
                Payload(height=5, block_hash=BLOCK_HASH).to_output(),
            ],
        )
        assert isinstance(classify(tx), AnchoringTx)
