"""
Shared fixtures: an in-memory JSON-RPC node behind ``httpx.MockTransport``.

The real ``ChainClient`` talks to it over the httpx stack, so request
encoding, signing and error classification are all exercised offline.
"""

from __future__ import annotations

import json
from collections import defaultdict
from typing import Any, Callable, Optional

import httpx
import pytest
import rlp
from eth_account import Account as EthAccount
from eth_hash.auto import keccak

from heliocron.chain.rpc import ChainClient
from heliocron.config import Settings
from heliocron.wallet import Account

PRIVATE_KEY = "0x" + "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TARGET_CONTRACT = "0x" + "ab" * 20
DEPLOYED_ADDRESS = "0x" + "cd" * 20
GWEI = 10**9
ETHER = 10**18

NONCE_ERROR = {"code": -32000, "message": "invalid nonce; account sequence mismatch"}


class FakeNode:
    """Just enough of an EVM node for the submission layer."""

    def __init__(self, chain_id: int = 42000) -> None:
        self.chain_id = chain_id
        self.balances: dict[str, int] = defaultdict(int)
        self.latest_nonce: dict[str, int] = defaultdict(int)
        self.pending_nonce: dict[str, int] = {}
        self.block_number = 500_000
        self.gas_price = 2 * GWEI
        self.gas_estimate = 150_000
        self.code: dict[str, str] = {}
        self.call_results: dict[str, str] = {}
        self.receipt_status = 1
        self.receipt_polls_before_mined = 0
        self.contract_address: Optional[str] = DEPLOYED_ADDRESS
        self.errors: dict[str, list[Any]] = defaultdict(list)
        self.calls: list[tuple[str, list]] = []
        self.sent: list[dict[str, Any]] = []
        self._receipts: dict[str, dict[str, Any]] = {}
        self._polls: dict[str, int] = defaultdict(int)
        self._senders: dict[str, tuple[str, int]] = {}

    # ---- Inspection ----

    def count(self, method: str, *match: Any) -> int:
        return sum(
            1
            for name, params in self.calls
            if name == method and all(m in params for m in match)
        )

    def fund(self, address: str, wei: int) -> None:
        self.balances[address.lower()] = wei

    # ---- Transport ----

    def handle(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        method, params = payload["method"], payload["params"]
        self.calls.append((method, params))

        if self.errors[method]:
            error = self.errors[method].pop(0)
            if error == "network":
                raise httpx.ConnectError("connection refused", request=request)
            if isinstance(error, int):
                return httpx.Response(error, request=request)
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": payload["id"], "error": error}
            )

        handler: Callable[[list], Any] = getattr(self, "_" + method)
        return httpx.Response(
            200, json={"jsonrpc": "2.0", "id": payload["id"], "result": handler(params)}
        )

    # ---- Methods ----

    def _eth_chainId(self, params: list) -> str:
        return hex(self.chain_id)

    def _eth_blockNumber(self, params: list) -> str:
        return hex(self.block_number)

    def _eth_gasPrice(self, params: list) -> str:
        return hex(self.gas_price)

    def _eth_getBalance(self, params: list) -> str:
        return hex(self.balances[params[0].lower()])

    def _eth_getTransactionCount(self, params: list) -> str:
        address, tag = params[0].lower(), params[1]
        if tag == "pending":
            return hex(self.pending_nonce.get(address, self.latest_nonce[address]))
        return hex(self.latest_nonce[address])

    def _eth_estimateGas(self, params: list) -> str:
        return hex(self.gas_estimate)

    def _eth_getCode(self, params: list) -> str:
        return self.code.get(params[0].lower(), "0x")

    def _eth_call(self, params: list) -> str:
        return self.call_results.get(params[0]["to"].lower(), "0x")

    def _eth_sendRawTransaction(self, params: list) -> str:
        raw = bytes.fromhex(params[0][2:])
        nonce, gas_price, gas, to, value, data, *_ = rlp.decode(raw)
        tx_hash = "0x" + keccak(raw).hex()
        tx = {
            "hash": tx_hash,
            "nonce": int.from_bytes(nonce, "big"),
            "gas_price": int.from_bytes(gas_price, "big"),
            "gas": int.from_bytes(gas, "big"),
            "to": "0x" + to.hex() if to else None,
            "value": int.from_bytes(value, "big"),
            "data": "0x" + data.hex(),
        }
        self.sent.append(tx)
        sender = EthAccount.recover_transaction(raw).lower()
        self._senders[tx_hash] = (sender, tx["nonce"])
        self.pending_nonce[sender] = max(
            self.pending_nonce.get(sender, self.latest_nonce[sender]), tx["nonce"] + 1
        )
        self._receipts[tx_hash] = {
            "transactionHash": tx_hash,
            "status": hex(self.receipt_status),
            "blockNumber": hex(self.block_number + 1),
            "gasUsed": hex(self.gas_estimate),
            "contractAddress": self.contract_address if tx["to"] is None else None,
            "logs": [],
        }
        return tx_hash

    def _eth_getTransactionReceipt(self, params: list) -> Optional[dict]:
        tx_hash = params[0]
        self._polls[tx_hash] += 1
        if self._polls[tx_hash] <= self.receipt_polls_before_mined:
            return None
        if tx_hash in self._senders:
            sender, nonce = self._senders[tx_hash]
            self.latest_nonce[sender] = max(self.latest_nonce[sender], nonce + 1)
        return self._receipts.get(tx_hash)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture()
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def account() -> Account:
    return Account.from_key(PRIVATE_KEY)


@pytest.fixture()
def client(node: FakeNode, sleeps: SleepRecorder):
    with ChainClient(
        "http://node.test",
        transport=httpx.MockTransport(node.handle),
        sleep=sleeps,
    ) as chain_client:
        yield chain_client


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        rpc_url="http://node.test",
        private_key=PRIVATE_KEY,
        target_contract=TARGET_CONTRACT,
        frequency=300,
        gas_limit=300_000,
        gas_price_gwei="2",
        deposit="0.02",
        validity_weeks=2,
        max_retries=3,
        retry_delay_ms=2000,
        pending_grace_seconds=10.0,
        receipt_timeout=30.0,
    )
