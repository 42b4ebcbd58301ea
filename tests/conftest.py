"""Shared fixtures for the btc-anchoring test suite."""

from __future__ import annotations

import pytest

from btc_anchoring.btc.address import Network, wif_to_privkey
from btc_anchoring.btc.multisig import RedeemScript
from tests.vectors import PRIVATE_KEYS_WIF, PUBLIC_KEYS_HEX


@pytest.fixture
def private_keys() -> list[bytes]:
    return [wif_to_privkey(wif)[0] for wif in PRIVATE_KEYS_WIF]


@pytest.fixture
def public_keys() -> list[bytes]:
    return [bytes.fromhex(pk) for pk in PUBLIC_KEYS_HEX]


@pytest.fixture
def redeem_script(public_keys) -> RedeemScript:
    """The 3-of-4 anchoring multisig."""
    return RedeemScript.from_pubkeys(public_keys, 3)


@pytest.fixture
def network() -> Network:
    return Network.TESTNET
