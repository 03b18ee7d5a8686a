from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Optional


@dataclass(frozen=True)
class ChainEndpoint:
    url: str


@dataclass(frozen=True)
class FeeData:
    gas_price: int


@dataclass(frozen=True)
class TransactionRequest:
    """
    One transaction to be signed and sent.

    Attributes:
        to: Target address, or None for contract creation
        data: 0x-prefixed calldata or creation bytecode
        gas_limit: Gas limit
        gas_price: Gas price in wei
        value: Value in wei
        nonce: Explicit nonce, or None to use the pending count
    """
    to: Optional[str]
    data: str
    gas_limit: int
    gas_price: int
    value: int = 0
    nonce: Optional[int] = None

    @property
    def is_creation(self) -> bool:
        return self.to is None

    def with_nonce(self, nonce: int) -> "TransactionRequest":
        return replace(self, nonce=nonce)


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    status: int
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    contract_address: Optional[str] = None
    logs: list[dict[str, Any]] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> "Receipt":
        return cls(
            tx_hash=raw.get("transactionHash", ""),
            status=_hex_to_int(raw.get("status")) or 0,
            block_number=_hex_to_int(raw.get("blockNumber")),
            gas_used=_hex_to_int(raw.get("gasUsed")),
            contract_address=raw.get("contractAddress"),
            logs=list(raw.get("logs") or []),
            raw=raw,
        )


class OutcomeStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class TransactionOutcome:
    """Tracks a sent transaction until its receipt settles it."""
    tx_hash: str
    status: OutcomeStatus = OutcomeStatus.PENDING
    receipt: Optional[Receipt] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not OutcomeStatus.PENDING

    def resolve(self, receipt: Receipt) -> "TransactionOutcome":
        if self.is_terminal:
            raise ValueError(f"Outcome for {self.tx_hash} is already {self.status.value}")
        self.receipt = receipt
        self.status = OutcomeStatus.SUCCESS if receipt.succeeded else OutcomeStatus.FAILED
        return self


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    tx_hash: str
    receipt: Optional[Receipt] = None
    contract_address: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: TransactionOutcome) -> "SubmissionResult":
        receipt = outcome.receipt
        return cls(
            success=outcome.status is OutcomeStatus.SUCCESS,
            tx_hash=outcome.tx_hash,
            receipt=receipt,
            contract_address=receipt.contract_address if receipt else None,
        )


def _hex_to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)
