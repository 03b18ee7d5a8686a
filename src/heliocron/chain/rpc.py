"""
JSON-RPC client for an EVM chain.

Lightweight alternative to web3.py: uses httpx for HTTP, eth-account for
signing and eth-abi for encoding.  Every failure leaves this module as a
typed error (``NetworkError``, ``RpcError``, ``NonceConflictError``); there
is no retry logic here.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, Optional, Sequence, Union

import httpx
from eth_account.signers.local import LocalAccount
from eth_utils import encode_hex, to_checksum_address

from ..errors import ConfigurationError, NetworkError, NonceConflictError, ReceiptTimeoutError, RpcError
from ..wallet import Account
from .abi import decode_function_result, encode_function_call
from .models import ChainEndpoint, FeeData, Receipt, TransactionRequest

logger = logging.getLogger(__name__)

# Node messages that mean "your nonce is out of step with the chain".
NONCE_CONFLICT_PATTERN = re.compile(r"invalid nonce|nonce too (low|high)|sequence", re.IGNORECASE)

BlockTag = str  # "latest" | "pending"


def classify_rpc_error(error: Any) -> RpcError:
    """Turn a JSON-RPC ``error`` member into a typed error."""
    if isinstance(error, dict):
        message = str(error.get("message", error))
        code = error.get("code")
        data = error.get("data")
    else:
        message, code, data = str(error), None, None

    if NONCE_CONFLICT_PATTERN.search(message):
        return NonceConflictError(message, code=code, data=data)
    return RpcError(message, code=code, data=data)


class ChainClient:
    """
    Thin wrapper over one RPC endpoint.

    Use as a context manager so the HTTP connection pool is released on
    every exit path::

        with ChainClient(settings.rpc_url) as client:
            client.get_balance(address)
    """

    def __init__(
        self,
        endpoint: Union[ChainEndpoint, str],
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.endpoint = endpoint if isinstance(endpoint, ChainEndpoint) else ChainEndpoint(endpoint)
        self._http = httpx.Client(timeout=timeout, transport=transport)
        self._sleep = sleep
        self._clock = clock
        self._signer: Optional[LocalAccount] = None
        self._chain_id: Optional[int] = None
        self._request_id = 0

    def __enter__(self) -> "ChainClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # ---- Signer ----

    def attach_signer(self, account: Account) -> None:
        """Open a fresh signing session for ``account``, dropping the old one."""
        self._signer = account.signer()
        logger.debug("Signer attached for %s", account.address)

    @property
    def signer_address(self) -> Optional[str]:
        return self._signer.address if self._signer else None

    # ---- Transport ----

    def _rpc_call(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            NetworkError: On connectivity failure, timeout or HTTP 5xx/429
            RpcError: If the endpoint rejected the call
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._request_id,
        }
        logger.debug("RPC %s %s", method, params)

        try:
            response = self._http.post(self.endpoint.url, json=payload)
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} failed: {exc}") from exc

        if response.status_code >= 500 or response.status_code == 429:
            raise NetworkError(f"{method} failed: HTTP {response.status_code}")
        if response.status_code >= 400:
            raise RpcError(f"{method} rejected: HTTP {response.status_code}", code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise RpcError(f"{method} returned a non-JSON response") from exc

        if not isinstance(data, dict):
            raise RpcError(f"{method} returned a malformed response")
        if "error" in data and data["error"] is not None:
            raise classify_rpc_error(data["error"])

        return data.get("result")

    def _rpc_quantity(self, method: str, params: list) -> int:
        """Make a JSON-RPC call whose result is a hex quantity."""
        result = self._rpc_call(method, params)
        try:
            return int(result, 16)
        except (TypeError, ValueError):
            raise RpcError(f"{method} returned {result!r}, expected a hex quantity") from None

    # ---- Reads ----

    def get_balance(self, address: str) -> int:
        """Balance in wei."""
        return self._rpc_quantity("eth_getBalance", [address, "latest"])

    def get_transaction_count(self, address: str, tag: BlockTag = "latest") -> int:
        if tag not in ("latest", "pending"):
            raise ValueError(f"Unsupported block tag: {tag}")
        return self._rpc_quantity("eth_getTransactionCount", [address, tag])

    def get_fee_data(self) -> FeeData:
        return FeeData(gas_price=self._rpc_quantity("eth_gasPrice", []))

    def get_code(self, address: str) -> bytes:
        result = self._rpc_call("eth_getCode", [address, "latest"]) or "0x"
        try:
            return bytes.fromhex(result[2:] if result.startswith("0x") else result)
        except (AttributeError, ValueError):
            raise RpcError(f"eth_getCode returned {result!r}, expected hex data") from None

    def get_block_number(self) -> int:
        return self._rpc_quantity("eth_blockNumber", [])

    def get_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = self._rpc_quantity("eth_chainId", [])
        return self._chain_id

    def call(
        self,
        address: str,
        abi: Sequence[dict[str, Any]],
        function_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        """
        Read from a contract (eth_call).

        Returns:
            Decoded return value(s), or None if the call returned no data
        """
        calldata = encode_function_call(abi, function_name, args)
        result = self._rpc_call("eth_call", [{"to": address, "data": calldata}, "latest"])
        if result is None or result == "0x":
            return None
        return decode_function_result(abi, function_name, result)

    # ---- Writes ----

    def estimate_gas(self, request: TransactionRequest) -> int:
        params: dict[str, Any] = {"data": request.data, "value": hex(request.value)}
        if self._signer is not None:
            params["from"] = self._signer.address
        if not request.is_creation:
            params["to"] = request.to
        return self._rpc_quantity("eth_estimateGas", [params])

    def send_transaction(self, request: TransactionRequest) -> str:
        """
        Sign ``request`` with the attached signer and send it.

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        if self._signer is None:
            raise ConfigurationError("No signing key attached to the chain client")

        nonce = request.nonce
        if nonce is None:
            nonce = self.get_transaction_count(self._signer.address, "pending")

        tx: dict[str, Any] = {
            "data": request.data,
            "value": request.value,
            "nonce": nonce,
            "gas": request.gas_limit,
            "gasPrice": request.gas_price,
            "chainId": self.get_chain_id(),
        }
        if not request.is_creation:
            tx["to"] = to_checksum_address(request.to)

        signed = self._signer.sign_transaction(tx)
        tx_hash = self._rpc_call("eth_sendRawTransaction", [encode_hex(bytes(signed.raw_transaction))])
        if not tx_hash:
            raise RpcError("eth_sendRawTransaction returned no transaction hash")
        logger.info("Sent transaction %s (nonce %d)", tx_hash, nonce)
        return tx_hash

    def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: Optional[float] = None,
        poll_interval: float = 2.0,
    ) -> Receipt:
        """
        Wait for a transaction receipt.

        The transaction is already out, so a failed poll is not an error:
        polling carries on until a receipt arrives or ``timeout`` runs out.

        Args:
            tx_hash: Transaction hash
            timeout: Maximum wait in seconds; None waits until the node answers
            poll_interval: Polling interval in seconds

        Raises:
            ReceiptTimeoutError: If no receipt within ``timeout``
        """
        start = self._clock()
        while True:
            try:
                raw = self._rpc_call("eth_getTransactionReceipt", [tx_hash])
                if raw is not None and not isinstance(raw, dict):
                    raise RpcError(f"eth_getTransactionReceipt returned {raw!r}")
            except (NetworkError, RpcError) as exc:
                logger.warning("Receipt poll for %s failed, still waiting: %s", tx_hash, exc)
                raw = None
            if raw is not None:
                receipt = Receipt.from_rpc(raw)
                if not receipt.tx_hash:
                    receipt = Receipt.from_rpc({**raw, "transactionHash": tx_hash})
                return receipt
            if timeout is not None and self._clock() - start >= timeout:
                raise ReceiptTimeoutError(tx_hash, timeout)
            self._sleep(poll_interval)
