"""Signing and finalization of anchoring transactions.

Each validator signs every input of the unsigned transaction against the
multisig redeem script.  Signatures are gathered per input, in redeem
script key order, and :func:`finalize` turns them into P2SH unlocking
scripts.  Correctness of the collected signatures is left to the network.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from btc_anchoring.btc.multisig import EcdsaSigner
from btc_anchoring.btc.script import p2sh_multisig_unlock_script

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from btc_anchoring.anchoring.transactions import AnchoringTx
    from btc_anchoring.btc.multisig import RedeemScript, Signer
    from btc_anchoring.rpc.client import BitcoinRpc

logger = logging.getLogger(__name__)

_DEFAULT_SIGNER = EcdsaSigner()


def sign(
    tx: AnchoringTx,
    redeem_script: RedeemScript,
    input_index: int,
    private_key: bytes,
    *,
    signer: Signer | None = None,
) -> bytes:
    """Sign one input of *tx* with *private_key*.

    Returns:
        DER signature with the sighash type byte appended.
    """
    signer = signer or _DEFAULT_SIGNER
    signature = signer.sign_input(tx.tx, input_index, redeem_script, private_key)
    logger.debug("Signed input %d of %s", input_index, tx.txid())
    return signature


def verify(
    tx: AnchoringTx,
    redeem_script: RedeemScript,
    input_index: int,
    public_key: bytes,
    signature: bytes,
    *,
    signer: Signer | None = None,
) -> bool:
    """Check *signature* for one input against *public_key*; never raises."""
    signer = signer or _DEFAULT_SIGNER
    try:
        return signer.verify_input(tx.tx, input_index, redeem_script, public_key, signature)
    except Exception:
        logger.debug("Signature verification errored for input %d", input_index, exc_info=True)
        return False


def finalize(
    tx: AnchoringTx,
    redeem_script: RedeemScript,
    signatures: Mapping[int, Sequence[bytes]],
) -> AnchoringTx:
    """Fill in the unlocking scripts of *tx* in place and return it.

    Each input listed in *signatures* gets
    ``OP_0 <sig...> <redeem script>`` with signatures in the given order,
    which must match the key order of the redeem script.  Inputs absent from
    the mapping keep an empty unlocking script.

    Raises:
        IndexError: If *signatures* names an input *tx* does not have.
    """
    for input_index in signatures:
        if not 0 <= input_index < len(tx.tx.inputs):
            msg = f"Signatures given for missing input {input_index}"
            raise IndexError(msg)

    for input_index, input_signatures in signatures.items():
        tx.tx.inputs[input_index].script_sig = p2sh_multisig_unlock_script(
            input_signatures, redeem_script.script
        )

    unsigned = [i for i in tx.inputs() if i not in signatures]
    if unsigned:
        logger.warning("Transaction %s finalized with unsigned inputs %s", tx.txid(), unsigned)
    logger.info("Finalized anchoring transaction %s (%d inputs signed)", tx.txid(), len(signatures))
    return tx


def send(
    tx: AnchoringTx,
    rpc: BitcoinRpc,
    redeem_script: RedeemScript,
    signatures: Mapping[int, Sequence[bytes]],
) -> AnchoringTx:
    """Finalize *tx* and broadcast it through *rpc*.

    Raises:
        RpcError: If the node rejects or cannot receive the transaction.
    """
    tx = finalize(tx, redeem_script, signatures)
    rpc.broadcast(tx.tx)
    logger.info("Broadcast anchoring transaction %s", tx.txid())
    return tx
