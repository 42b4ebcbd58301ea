"""Bitcoin node RPC collaborator."""

from btc_anchoring.rpc.client import BitcoinRpc, BitcoinRpcClient
from btc_anchoring.rpc.models import TransactionInfo, UnspentInfo

__all__ = ["BitcoinRpc", "BitcoinRpcClient", "TransactionInfo", "UnspentInfo"]
