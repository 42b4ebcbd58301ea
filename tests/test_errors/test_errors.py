"""Tests for the error hierarchy."""

from __future__ import annotations

import pytest

from btc_anchoring.errors import (
    AnchoringError,
    DecodeError,
    NotFoundError,
    PreconditionError,
    RpcError,
)

# ---------------------------------------------------------------------------
# AnchoringError base class
# ---------------------------------------------------------------------------


class TestAnchoringError:
    def test_default_attributes(self) -> None:
        err = AnchoringError("something broke")
        assert str(err) == "something broke"
        assert err.message == "something broke"
        assert err.code == "anchoring-error"

    def test_custom_code(self) -> None:
        assert AnchoringError("x", code="custom").code == "custom"

    def test_is_exception(self) -> None:
        with pytest.raises(AnchoringError, match="boom"):
            raise AnchoringError("boom")


# ---------------------------------------------------------------------------
# Subclasses
# ---------------------------------------------------------------------------


class TestDecodeError:
    def test_defaults(self) -> None:
        err = DecodeError("bad hex")
        assert isinstance(err, AnchoringError)
        assert err.code == "decode-error"
        assert err.message == "bad hex"


class TestPreconditionError:
    def test_defaults(self) -> None:
        err = PreconditionError("fee too high")
        assert isinstance(err, AnchoringError)
        assert err.code == "precondition-failed"
        assert err.missing == ()

    def test_missing_fields(self) -> None:
        err = PreconditionError("missing", missing=("fee", "payload"))
        assert err.missing == ("fee", "payload")


class TestRpcError:
    def test_defaults(self) -> None:
        err = RpcError("node down")
        assert isinstance(err, AnchoringError)
        assert err.code == "rpc-error"
        assert err.rpc_code is None
        assert err.retriable is False

    def test_custom(self) -> None:
        err = RpcError("warming up", rpc_code=-28, retriable=True)
        assert err.rpc_code == -28
        assert err.retriable is True


class TestNotFoundError:
    def test_defaults(self) -> None:
        err = NotFoundError("no such transaction")
        assert isinstance(err, RpcError)
        assert err.code == "not-found"
        assert err.rpc_code == -5
        assert err.retriable is False

    def test_caught_as_rpc_error(self) -> None:
        with pytest.raises(RpcError):
            raise NotFoundError("missing")
