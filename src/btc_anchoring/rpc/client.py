"""Bitcoin Core JSON-RPC client — transactions, unspent outputs, broadcast.

Synchronous HTTP client for the subset of the bitcoind wallet / node RPC
that anchoring relies on:
- ``getrawtransaction`` (raw and verbose)
- ``sendtoaddress``
- ``listunspent``
- ``sendrawtransaction``
"""

from __future__ import annotations

import itertools
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Protocol, Self

import httpx

from btc_anchoring.btc.transaction import Transaction
from btc_anchoring.errors.rpc_errors import RPC_INVALID_ADDRESS_OR_KEY, NotFoundError, RpcError
from btc_anchoring.rpc.models import TransactionInfo, UnspentInfo, satoshis_to_btc

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from btc_anchoring.config.settings import RpcConfig

logger = logging.getLogger(__name__)

# bitcoind is still loading the block index / wallet
_RPC_IN_WARMUP = -28


class BitcoinRpc(Protocol):
    """The node operations anchoring depends on."""

    def get_transaction(self, txid: str) -> Transaction: ...

    def send_to_address(self, address: str, satoshis: int) -> Transaction: ...

    def list_unspent(
        self, min_conf: int, max_conf: int, addresses: Sequence[str]
    ) -> list[UnspentInfo]: ...

    def get_transaction_status(self, txid: str) -> TransactionInfo: ...

    def broadcast(self, tx: Transaction) -> str: ...


class BitcoinRpcClient:
    """JSON-RPC client for a Bitcoin Core node.

    Usage::

        with BitcoinRpcClient(config.rpc) as rpc:
            tx = rpc.get_transaction(txid)
    """

    def __init__(self, config: RpcConfig) -> None:
        """Initialize the RPC client.

        Args:
            config: RPC configuration (url, credentials, timeout).
        """
        self._config = config
        self._client: httpx.Client | None = None
        self._ids = itertools.count(1)

    def connect(self) -> None:
        """Create the underlying HTTP client."""
        auth = None
        if self._config.username or self._config.password:
            auth = httpx.BasicAuth(self._config.username, self._config.password)
        self._client = httpx.Client(
            base_url=self._config.url.rstrip("/"),
            auth=auth,
            headers={"Content-Type": "application/json"},
            timeout=self._config.timeout,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    def __enter__(self) -> Self:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_transaction(self, txid: str) -> Transaction:
        """Fetch and decode a transaction by id.

        Raises:
            NotFoundError: If the node does not know the transaction.
            RpcError: On any other node or transport failure.
        """
        raw_hex = self._get_raw_transaction(txid, verbose=False)
        return Transaction.from_hex(raw_hex)

    def get_transaction_status(self, txid: str) -> TransactionInfo:
        """Fetch confirmation details of a transaction.

        Raises:
            NotFoundError: If the node does not know the transaction.
        """
        data = self._get_raw_transaction(txid, verbose=True)
        return TransactionInfo.from_dict(data)

    def send_to_address(self, address: str, satoshis: int) -> Transaction:
        """Pay *satoshis* from the node wallet to *address*.

        Returns:
            The wallet transaction that was created.
        """
        txid = self._call("sendtoaddress", address, satoshis_to_btc(satoshis))
        logger.info("Sent %d satoshis to %s in %s", satoshis, address, txid)
        return self.get_transaction(txid)

    def list_unspent(
        self,
        min_conf: int,
        max_conf: int,
        addresses: Sequence[str],
    ) -> list[UnspentInfo]:
        """List wallet outputs paying to *addresses*."""
        items: list[dict[str, Any]] = self._call("listunspent", min_conf, max_conf, list(addresses))
        return [UnspentInfo.from_dict(item) for item in items]

    def broadcast(self, tx: Transaction) -> str:
        """Submit a signed transaction to the network.

        Returns:
            The txid reported by the node.
        """
        txid: str = self._call("sendrawtransaction", tx.to_hex())
        return txid

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _get_raw_transaction(self, txid: str, *, verbose: bool) -> Any:
        try:
            return self._call("getrawtransaction", txid, 1 if verbose else 0)
        except RpcError as exc:
            if exc.rpc_code == RPC_INVALID_ADDRESS_OR_KEY:
                raise NotFoundError(f"Transaction {txid} not found: {exc.message}") from exc
            raise

    def _call(self, method: str, *params: Any) -> Any:
        """Perform one JSON-RPC call and return its ``result``.

        Raises:
            RpcError: On transport failures (retriable) or RPC errors.
        """
        client = self._ensure_connected()
        body = {"jsonrpc": "1.0", "id": next(self._ids), "method": method, "params": list(params)}
        logger.debug("RPC %s", method)

        try:
            response = client.post("/", json=body)
        except httpx.HTTPError as exc:
            raise RpcError(f"RPC {method} failed: {exc}", retriable=True) from exc

        try:
            data = response.json(parse_float=Decimal)
        except ValueError:
            data = None

        # bitcoind reports RPC errors with HTTP 500 / 404 and a JSON body
        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            rpc_code = error.get("code")
            message = error.get("message", "")
            raise RpcError(
                f"RPC {method} failed ({rpc_code}): {message}",
                rpc_code=rpc_code,
                retriable=rpc_code == _RPC_IN_WARMUP,
            )

        if response.status_code != 200 or not isinstance(data, dict):
            status = response.status_code
            raise RpcError(
                f"RPC {method} failed ({status}): {response.text[:200]}",
                retriable=status >= 500,
            )

        return data.get("result")

    def _ensure_connected(self) -> httpx.Client:
        if self._client is None:
            msg = "RPC client not connected. Call connect() first."
            raise RpcError(msg)
        return self._client
