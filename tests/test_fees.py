"""Tests for the funds pre-flight."""

from __future__ import annotations

import pytest

from heliocron.errors import InsufficientBalanceError
from heliocron.submit.fees import (
    SAFETY_MARGIN_GAS,
    FeeEstimator,
    check_sufficient_balance,
    estimate_required_funds,
)

from conftest import ETHER, GWEI


class TestEstimateRequiredFunds:
    def test_formula(self) -> None:
        assert estimate_required_funds(100, 1_000, 3) == 100 + 3 * (1_000 + SAFETY_MARGIN_GAS)

    def test_default_job_parameters(self) -> None:
        # 0.02 deposit + 2 gwei * 500k gas = 0.021
        required = estimate_required_funds(2 * ETHER // 100, 300_000, 2 * GWEI)
        assert required == 21 * ETHER // 1000

    def test_zero_gas_price_is_just_the_deposit(self) -> None:
        assert estimate_required_funds(5, 300_000, 0) == 5


class TestCheckSufficientBalance:
    @pytest.mark.parametrize(
        "balance, deposit, gas_limit, gas_price",
        [
            (0, 0, 0, 0),
            (10**18, 2 * 10**16, 300_000, 2 * 10**9),
            (21 * 10**15, 2 * 10**16, 300_000, 2 * 10**9),
            (21 * 10**15 - 1, 2 * 10**16, 300_000, 2 * 10**9),
            (10**15, 2 * 10**16, 300_000, 2 * 10**9),
            (1, 0, 0, 1),
            (200_000, 0, 0, 1),
        ],
    )
    def test_fails_iff_balance_below_required(
        self, balance: int, deposit: int, gas_limit: int, gas_price: int
    ) -> None:
        required = deposit + gas_price * (gas_limit + 200_000)
        if balance < required:
            with pytest.raises(InsufficientBalanceError) as excinfo:
                check_sufficient_balance(balance, estimate_required_funds(deposit, gas_limit, gas_price))
            assert excinfo.value.required == required
            assert excinfo.value.available == balance
        else:
            check_sufficient_balance(balance, estimate_required_funds(deposit, gas_limit, gas_price))

    def test_exact_balance_passes(self) -> None:
        check_sufficient_balance(1_000, 1_000)

    def test_error_reports_shortfall(self) -> None:
        with pytest.raises(InsufficientBalanceError) as excinfo:
            check_sufficient_balance(400, 1_000)
        assert excinfo.value.shortfall == 600
        assert excinfo.value.hint


class TestFeeEstimator:
    def test_preflight_passes_and_reports_breakdown(self, node, client, account) -> None:
        node.fund(account.address, ETHER)
        check = FeeEstimator(client).preflight(account.address, 2 * ETHER // 100, 300_000, 2 * GWEI)
        assert check.balance == ETHER
        assert check.gas_cost == 2 * GWEI * 500_000
        assert check.required == 21 * ETHER // 1000

    def test_preflight_rejects_low_balance(self, node, client, account) -> None:
        node.fund(account.address, ETHER // 1000)
        with pytest.raises(InsufficientBalanceError):
            FeeEstimator(client).preflight(account.address, 2 * ETHER // 100, 300_000, 2 * GWEI)

    def test_require_minimum(self, node, client, account) -> None:
        node.fund(account.address, ETHER // 1000)
        with pytest.raises(InsufficientBalanceError) as excinfo:
            FeeEstimator(client).require_minimum(account.address, ETHER // 100)
        assert excinfo.value.available == ETHER // 1000
