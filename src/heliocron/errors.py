"""
Error taxonomy for heliocron.

Every failure is classified where it is detected and travels upward
unchanged.  The CLI maps each class to an exit code and a remediation
hint; nothing above the chain client looks at error message text.
"""

from __future__ import annotations

from typing import Any, Optional


class HeliocronError(RuntimeError):
    exit_code: int = 1
    hint: Optional[str] = None


class ConfigurationError(HeliocronError):
    hint = (
        "Copy .env.example to .env and set PRIVATE_KEY, TARGET_CONTRACT "
        "and the other values it lists."
    )


# ============ Chain ============


class ChainError(HeliocronError):
    pass


class NetworkError(ChainError):
    hint = "Check your network connection and RPC_URL."


class ReceiptTimeoutError(NetworkError):
    """The transaction was sent but no receipt arrived in time.

    The transaction may still be mined, so this is never retried.
    """

    hint = (
        "The transaction is still out there. Look up its hash in the block "
        "explorer before sending again."
    )

    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(f"Transaction {tx_hash} not confirmed within {timeout:g}s")
        self.tx_hash = tx_hash
        self.timeout = timeout


class RpcError(ChainError):
    hint = "The RPC endpoint rejected the request. Check the parameters and RPC_URL."

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None) -> None:
        super().__init__(f"RPC error {code}: {message}" if code is not None else f"RPC error: {message}")
        self.code = code
        self.rpc_message = message
        self.data = data


class NonceConflictError(RpcError):
    hint = (
        "Nonce mismatch. Pending transactions may not be confirmed yet, or the "
        "wallet was used elsewhere. Wait a few minutes and try again, and check "
        "the wallet in the block explorer for pending transactions."
    )


# ============ Submission ============


class InsufficientBalanceError(HeliocronError):
    hint = "Top up the wallet, or reduce DEPOSIT / GAS_PRICE."

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Insufficient balance: need at least {required} wei, have {available} wei"
        )
        self.required = required
        self.available = available

    @property
    def shortfall(self) -> int:
        return self.required - self.available


class TransactionFailedError(HeliocronError):
    hint = "The transaction was mined but reverted. Check the target contract and job parameters."

    def __init__(self, tx_hash: str, receipt: Any = None) -> None:
        super().__init__(f"Transaction {tx_hash} execution failed")
        self.tx_hash = tx_hash
        self.receipt = receipt


class VerificationError(HeliocronError):
    hint = "Inspect the deployment transaction in the block explorer."

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"Verification of {address} failed: {reason}")
        self.address = address
        self.reason = reason


class RetriesExhaustedError(HeliocronError):
    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"All {attempts} attempts failed. Last error: {last_error}")
        self.attempts = attempts
        self.last_error = last_error

    @property
    def hint(self) -> Optional[str]:  # type: ignore[override]
        return getattr(self.last_error, "hint", None)
