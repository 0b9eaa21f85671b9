"""Tests for finance/debt.py – annuity payment and amortization schedule."""

from __future__ import annotations

import math

import numpy_financial as npf
import pytest

from pv_sizing_model.finance.debt import (
    build_amortization_schedule,
    calculate_monthly_payment,
    get_annual_payment,
)


class TestMonthlyPayment:
    def test_matches_numpy_financial(self) -> None:
        expected = -npf.pmt(0.07 / 12, 120, 100_000.0)
        assert math.isclose(calculate_monthly_payment(100_000.0, 7.0, 10), expected)

    def test_zero_rate_equal_instalments(self) -> None:
        assert math.isclose(calculate_monthly_payment(12_000.0, 0.0, 1), 1_000.0)

    def test_nothing_financed(self) -> None:
        assert calculate_monthly_payment(0.0, 7.0, 10) == 0.0
        assert calculate_monthly_payment(100.0, 7.0, 0) == 0.0


class TestAmortizationSchedule:
    @pytest.fixture
    def schedule(self):
        return build_amortization_schedule(140_000.0, 7.0, 10)

    def test_term_length(self, schedule) -> None:
        assert len(schedule.annual_payments) == 10
        assert len(schedule.remaining_balance) == 10

    def test_principal_repaid(self, schedule) -> None:
        assert math.isclose(sum(schedule.principal_payments), 140_000.0, rel_tol=1e-9)
        assert schedule.remaining_balance[-1] == pytest.approx(0.0, abs=1e-6)

    def test_payments_split_into_interest_and_principal(self, schedule) -> None:
        for paid, interest, principal in zip(
            schedule.annual_payments, schedule.interest_payments, schedule.principal_payments
        ):
            assert math.isclose(paid, interest + principal)

    def test_interest_declines(self, schedule) -> None:
        assert schedule.interest_payments[0] > schedule.interest_payments[-1]

    def test_totals(self, schedule) -> None:
        assert math.isclose(schedule.total_paid, schedule.monthly_payment * 120)
        assert math.isclose(schedule.total_interest, schedule.total_paid - 140_000.0, rel_tol=1e-9)

    def test_empty_schedule(self) -> None:
        schedule = build_amortization_schedule(0.0, 7.0, 10)
        assert schedule.annual_payments == []
        assert schedule.total_paid == 0.0


class TestAnnualPayment:
    def test_within_term(self) -> None:
        schedule = build_amortization_schedule(12_000.0, 0.0, 2)
        assert math.isclose(get_annual_payment(schedule, 1), 6_000.0)
        assert math.isclose(get_annual_payment(schedule, 2), 6_000.0)

    def test_outside_term(self) -> None:
        schedule = build_amortization_schedule(12_000.0, 0.0, 2)
        assert get_annual_payment(schedule, 0) == 0.0
        assert get_annual_payment(schedule, 3) == 0.0
