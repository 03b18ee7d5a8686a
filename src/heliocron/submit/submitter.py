"""
Transaction submission - deploy the tick contract or register its cron job.

Each use case is one self-contained attempt: funds, nonce and fees are read
fresh from the chain every time, so the ``*_with_retry`` wrappers can hand
the attempt to ``run_with_retry`` without carrying stale state across.

Flow (deploy):
1. Minimum balance check
2. Wait out any pending-transaction backlog (once)
3. Read nonce, estimate gas, read gas price
4. Send; on a nonce conflict reset the signer and resend once
5. Wait for the receipt

Flow (register job):
1. Read the current block, build the JobSpec
2. Funds pre-flight (deposit + gas), fail fast
3. Send createCron to the scheduler precompile
4. Wait for the receipt and classify it
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Sequence

from ..chain.abi import CRON_ABI, ContractArtifact, encode_deploy_data, encode_function_call
from ..chain.models import SubmissionResult, TransactionOutcome, TransactionRequest
from ..chain.rpc import ChainClient
from ..config import Settings
from ..errors import NonceConflictError, TransactionFailedError
from ..wallet import Account
from .fees import FeeEstimator
from .jobs import JobSpec, build_job_spec
from .nonce import NonceCoordinator
from .retry import run_with_retry

logger = logging.getLogger(__name__)

# Added to the node's estimate for creation transactions.
DEPLOY_GAS_BUFFER = 500_000
# Added to the job gas limit for the createCron call itself.
CRON_CALL_GAS_OVERHEAD = 50_000
RECEIPT_POLL_INTERVAL = 2.0


class TransactionSubmitter:
    def __init__(
        self,
        client: ChainClient,
        account: Account,
        settings: Settings,
        *,
        fees: Optional[FeeEstimator] = None,
        nonces: Optional[NonceCoordinator] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_sent: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.client = client
        self.account = account
        self.settings = settings
        self.fees = fees or FeeEstimator(client)
        self.nonces = nonces or NonceCoordinator(
            client, pending_grace=settings.pending_grace_seconds, sleep=sleep
        )
        self._sleep = sleep
        self._on_sent = on_sent

        if client.signer_address != account.address:
            client.attach_signer(account)

    # ============ Deploy ============

    def deploy(self, artifact: ContractArtifact, constructor_args: Sequence[Any] = ()) -> SubmissionResult:
        """
        Deploy ``artifact`` once.

        Returns:
            SubmissionResult with the new contract address

        Raises:
            InsufficientBalanceError: Below ``deploy_min_balance``
            TransactionFailedError: Creation transaction reverted
        """
        address = self.account.address
        self.fees.require_minimum(address, self.settings.deploy_min_balance_wei)
        self.nonces.detect_pending_backlog(self.account)
        nonce = self.nonces.next_nonce(self.account)

        data = encode_deploy_data(artifact, constructor_args)
        gas_estimate = self.client.estimate_gas(
            TransactionRequest(to=None, data=data, gas_limit=0, gas_price=0)
        )
        gas_price = self.client.get_fee_data().gas_price
        logger.info("Estimated gas %d at %d wei", gas_estimate, gas_price)

        request = TransactionRequest(
            to=None,
            data=data,
            gas_limit=gas_estimate + DEPLOY_GAS_BUFFER,
            gas_price=gas_price,
            nonce=nonce,
        )
        tx_hash = self._send(request, reset_on_conflict=self.settings.deploy_nonce_reset)
        outcome = self._confirm(tx_hash)

        result = SubmissionResult.from_outcome(outcome)
        if not result.success or not result.contract_address:
            raise TransactionFailedError(tx_hash, outcome.receipt)
        logger.info("Contract deployed at %s", result.contract_address)
        return result

    def deploy_with_retry(
        self, artifact: ContractArtifact, constructor_args: Sequence[Any] = ()
    ) -> SubmissionResult:
        return run_with_retry(
            lambda: self.deploy(artifact, constructor_args),
            self.settings.max_retries,
            self.settings.retry_delay_ms,
            sleep=self._sleep,
        )

    # ============ Register job ============

    def prepare_job(self) -> tuple[int, JobSpec]:
        """Read the current block and build the job that expires relative to it."""
        current_block = self.client.get_block_number()
        return current_block, build_job_spec(self.settings, current_block)

    def register_job(self, job: JobSpec) -> SubmissionResult:
        """
        Send one createCron transaction for ``job`` and wait for it.

        A reverted transaction is a normal outcome: the result comes back
        with ``success=False``.

        Raises:
            InsufficientBalanceError: Before anything is sent
        """
        self.fees.preflight(self.account.address, job.deposit, job.gas_limit, job.max_gas_price)

        request = TransactionRequest(
            to=self.settings.cron_address,
            data=encode_function_call(CRON_ABI, "createCron", job.create_cron_args()),
            gas_limit=job.gas_limit + CRON_CALL_GAS_OVERHEAD,
            gas_price=job.max_gas_price,
        )
        tx_hash = self._send(request, reset_on_conflict=self.settings.register_nonce_reset)
        outcome = self._confirm(tx_hash)
        if outcome.receipt is not None and not outcome.receipt.succeeded:
            logger.warning("createCron transaction %s reverted", tx_hash)
        return SubmissionResult.from_outcome(outcome)

    def register_job_with_retry(
        self, on_prepared: Optional[Callable[[JobSpec, int], None]] = None
    ) -> SubmissionResult:
        def attempt() -> SubmissionResult:
            current_block, job = self.prepare_job()
            if on_prepared is not None:
                on_prepared(job, current_block)
            result = self.register_job(job)
            if not result.success:
                raise TransactionFailedError(result.tx_hash, result.receipt)
            return result

        return run_with_retry(
            attempt,
            self.settings.max_retries,
            self.settings.retry_delay_ms,
            sleep=self._sleep,
        )

    # ============ Helpers ============

    def _send(self, request: TransactionRequest, reset_on_conflict: bool) -> str:
        try:
            tx_hash = self.client.send_transaction(request)
        except NonceConflictError as exc:
            if not reset_on_conflict:
                raise
            logger.warning("Nonce error detected (%s), resetting and retrying once", exc.rpc_message)
            nonce = self.nonces.reset_and_refetch(self.account)
            tx_hash = self.client.send_transaction(request.with_nonce(nonce))

        if self._on_sent is not None:
            self._on_sent(tx_hash)
        return tx_hash

    def _confirm(self, tx_hash: str) -> TransactionOutcome:
        outcome = TransactionOutcome(tx_hash=tx_hash)
        receipt = self.client.wait_for_receipt(
            tx_hash,
            timeout=self.settings.receipt_timeout,
            poll_interval=RECEIPT_POLL_INTERVAL,
        )
        return outcome.resolve(receipt)
