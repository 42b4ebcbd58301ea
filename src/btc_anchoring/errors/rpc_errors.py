"""Bitcoin node RPC errors."""

from __future__ import annotations

from btc_anchoring.errors.anchoring_errors import AnchoringError

# bitcoind: "No such mempool or blockchain transaction", "Invalid address or key"
RPC_INVALID_ADDRESS_OR_KEY = -5


class RpcError(AnchoringError):
    """Failure reported by (or while reaching) the Bitcoin node.

    Attributes:
        rpc_code: JSON-RPC error code returned by the node, if any.
        retriable: True when the failure is transient (node unreachable,
            timeout, HTTP 5xx without an RPC error body).
    """

    def __init__(
        self,
        message: str,
        *,
        rpc_code: int | None = None,
        retriable: bool = False,
        code: str = "rpc-error",
    ) -> None:
        super().__init__(message, code=code)
        self.rpc_code = rpc_code
        self.retriable = retriable


class NotFoundError(RpcError):
    """The node does not know the requested transaction (yet)."""

    def __init__(self, message: str, *, rpc_code: int | None = RPC_INVALID_ADDRESS_OR_KEY) -> None:
        super().__init__(message, rpc_code=rpc_code, retriable=False, code="not-found")
