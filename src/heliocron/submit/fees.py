"""Funds pre-flight: never send a transaction that is known to be underfunded."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..chain.rpc import ChainClient
from ..errors import InsufficientBalanceError
from ..utils import format_native

logger = logging.getLogger(__name__)

# Extra gas budgeted on top of the job's own gas limit.
SAFETY_MARGIN_GAS = 200_000


def estimate_required_funds(deposit: int, gas_limit: int, gas_price: int) -> int:
    """deposit + gas_price * (gas_limit + SAFETY_MARGIN_GAS), all in wei."""
    return deposit + gas_price * (gas_limit + SAFETY_MARGIN_GAS)


def check_sufficient_balance(balance: int, required: int) -> None:
    if balance < required:
        raise InsufficientBalanceError(required=required, available=balance)


@dataclass(frozen=True)
class FundsCheck:
    balance: int
    deposit: int
    gas_cost: int

    @property
    def required(self) -> int:
        return self.deposit + self.gas_cost


class FeeEstimator:
    def __init__(self, client: ChainClient) -> None:
        self.client = client

    def preflight(self, address: str, deposit: int, gas_limit: int, gas_price: int) -> FundsCheck:
        """
        Read the balance of ``address`` and check it covers deposit and gas.

        Raises:
            InsufficientBalanceError: If it does not
        """
        balance = self.client.get_balance(address)
        required = estimate_required_funds(deposit, gas_limit, gas_price)
        check = FundsCheck(balance=balance, deposit=deposit, gas_cost=required - deposit)

        logger.info(
            "Funds check for %s: balance %s, deposit %s, gas %s, required %s",
            address,
            format_native(balance),
            format_native(deposit),
            format_native(check.gas_cost),
            format_native(required),
        )
        check_sufficient_balance(balance, required)
        return check

    def require_minimum(self, address: str, minimum: int) -> int:
        """Check ``address`` holds at least ``minimum`` wei; returns the balance."""
        balance = self.client.get_balance(address)
        logger.info("Balance of %s: %s", address, format_native(balance))
        check_sufficient_balance(balance, minimum)
        return balance
