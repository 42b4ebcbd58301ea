"""Error hierarchy for btc-anchoring."""

from btc_anchoring.errors.anchoring_errors import AnchoringError, DecodeError, PreconditionError
from btc_anchoring.errors.rpc_errors import NotFoundError, RpcError

__all__ = ["AnchoringError", "DecodeError", "NotFoundError", "PreconditionError", "RpcError"]
