"""
Nonce coordination for a single signing account.

The nonce sequence lives on the chain, so nothing is cached here: every
call re-reads it.  With one transaction in flight per run no lock is
needed; concurrent submitters from the same account would have to
serialize through one coordinator.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from ..chain.rpc import ChainClient
from ..wallet import Account

logger = logging.getLogger(__name__)

DEFAULT_PENDING_GRACE = 10.0


class NonceCoordinator:
    def __init__(
        self,
        client: ChainClient,
        *,
        pending_grace: float = DEFAULT_PENDING_GRACE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.pending_grace = pending_grace
        self._sleep = sleep

    def next_nonce(self, account: Account) -> int:
        nonce = self.client.get_transaction_count(account.address, "latest")
        logger.debug("Current nonce for %s: %d", account.address, nonce)
        return nonce

    def detect_pending_backlog(self, account: Account) -> int:
        """
        Look for transactions sent but not yet confirmed.

        If there is a backlog, wait the grace period once and re-read the
        confirmed count.  Does not wait for the backlog to clear.

        Returns:
            Number of pending transactions seen before the wait
        """
        latest = self.next_nonce(account)
        pending = self.client.get_transaction_count(account.address, "pending")
        if pending <= latest:
            logger.debug("No pending transactions for %s", account.address)
            return 0

        backlog = pending - latest
        logger.warning(
            "Found %d pending transaction(s) for %s, waiting %.0fs for confirmation",
            backlog,
            account.address,
            self.pending_grace,
        )
        self._sleep(self.pending_grace)
        logger.info("Nonce after grace period: %d", self.next_nonce(account))
        return backlog

    def reset_and_refetch(self, account: Account) -> int:
        """Start a fresh signing session and re-read the confirmed nonce."""
        logger.warning("Resetting signer nonce state for %s", account.address)
        self.client.attach_signer(account)
        nonce = self.next_nonce(account)
        logger.info("Nonce reset to %d", nonce)
        return nonce
