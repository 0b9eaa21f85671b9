"""Tests for finance/financing.py – cash, loan, lease and PPA comparison.

PPA reference: year-1 savings S = 30 000 $, year-1 rate 100 %, later 60 %:
  year 1 payment 30 000 $ → net 0
  year 2 payment 18 000 $ → net 12 000 $
  monthly payment = 30 000 / 12 = 2 500 $
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from pv_sizing_model.errors import InvalidAssumptionsError
from pv_sizing_model.finance.costs import IncentiveSchedule
from pv_sizing_model.finance.financing import (
    METHOD_CASH,
    METHOD_LEASE,
    METHOD_LOAN,
    METHOD_PPA,
    FinancingOptions,
    FinancingScenario,
    capital_lease,
    cash_purchase,
    compare_financing,
    loan_purchase,
    third_party_ppa,
)

HORIZON = 25


def _scenario(incentives: IncentiveSchedule | None = None, savings: float = 30_000.0):
    if incentives is None:
        incentives = IncentiveSchedule(year0=80_000.0, year1=20_000.0, year2=36_000.0)
    lease = IncentiveSchedule(
        year0=incentives.year0 / 2.0,
        year1=incentives.year1 + incentives.year0 / 2.0,
        year2=incentives.year2,
    )
    return FinancingScenario(
        capex_gross=200_000.0,
        capex_net=200_000.0 - incentives.total,
        incentives=incentives,
        lease_incentives=lease,
        annual_savings_year1=savings,
    )


class TestPpa:
    def test_reference_payments(self) -> None:
        outcome = third_party_ppa(_scenario(), FinancingOptions(), HORIZON)
        assert outcome.annual_cashflow[0] == 0.0
        assert math.isclose(outcome.annual_cashflow[1], 0.0, abs_tol=1e-9)
        assert math.isclose(outcome.annual_cashflow[2], 12_000.0)
        assert math.isclose(outcome.monthly_payment, 2_500.0)
        assert outcome.upfront_cost == 0.0

    def test_provider_keeps_incentives(self) -> None:
        options = FinancingOptions()
        rich = third_party_ppa(_scenario(), options, HORIZON)
        poor = third_party_ppa(
            _scenario(IncentiveSchedule(year0=0.0, year1=0.0, year2=0.0)), options, HORIZON
        )
        assert np.array_equal(rich.annual_cashflow, poor.annual_cashflow)

    def test_transfer_after_term(self) -> None:
        options = FinancingOptions(ppa_term_years=16, degradation_rate=0.005)
        outcome = third_party_ppa(_scenario(), options, HORIZON)
        assert math.isclose(outcome.annual_cashflow[17], 30_000.0 * 0.995**16 - 1.0)
        assert math.isclose(outcome.annual_cashflow[18], 30_000.0 * 0.995**17)


class TestOwnedModels:
    def test_cash_year_zero(self) -> None:
        outcome = cash_purchase(_scenario(), HORIZON)
        assert math.isclose(outcome.annual_cashflow[0], -200_000.0 + 80_000.0)
        assert math.isclose(outcome.upfront_cost, 120_000.0)
        assert math.isclose(outcome.annual_cashflow[1], 30_000.0 + 20_000.0)
        assert math.isclose(outcome.annual_cashflow[2], 30_000.0 + 36_000.0)
        assert math.isclose(outcome.annual_cashflow[3], 30_000.0)

    def test_cash_total_cost_is_net_capex(self) -> None:
        scenario = _scenario()
        assert math.isclose(cash_purchase(scenario, HORIZON).total_cost, scenario.capex_net)

    def test_loan_down_payment(self) -> None:
        outcome = loan_purchase(_scenario(), FinancingOptions(down_payment_pct=30.0), HORIZON)
        assert math.isclose(outcome.upfront_cost, 60_000.0)
        assert outcome.monthly_payment > 0.0

    def test_loan_payments_end_with_term(self) -> None:
        outcome = loan_purchase(_scenario(), FinancingOptions(loan_term_years=10), HORIZON)
        assert math.isclose(outcome.annual_cashflow[11], 30_000.0)
        assert outcome.annual_cashflow[10] < 30_000.0

    def test_lease_has_no_upfront(self) -> None:
        outcome = capital_lease(_scenario(), FinancingOptions(), HORIZON)
        assert outcome.upfront_cost == 0.0
        assert math.isclose(outcome.annual_cashflow[0], 40_000.0)

    def test_financing_costs_more_than_cash(self) -> None:
        scenario = _scenario()
        options = FinancingOptions()
        cash = cash_purchase(scenario, HORIZON)
        assert loan_purchase(scenario, options, HORIZON).total_cost > cash.total_cost
        assert capital_lease(scenario, options, HORIZON).total_cost > cash.total_cost


class TestComparison:
    @pytest.fixture
    def comparison(self):
        return compare_financing(_scenario())

    def test_methods(self, comparison) -> None:
        assert [o.method for o in comparison.outcomes()] == [
            METHOD_CASH,
            METHOD_LOAN,
            METHOD_LEASE,
            METHOD_PPA,
        ]

    def test_equal_lengths(self, comparison) -> None:
        for outcome in comparison.outcomes():
            assert len(outcome.annual_cashflow) == comparison.horizon_years + 1
            assert len(outcome.cumulative_cashflow) == comparison.horizon_years + 1

    def test_cumulative_is_running_sum(self, comparison) -> None:
        for outcome in comparison.outcomes():
            assert np.allclose(outcome.cumulative_cashflow, np.cumsum(outcome.annual_cashflow))
            assert math.isclose(outcome.net_savings_over_horizon, outcome.cumulative_cashflow[-1])

    def test_payback_year(self, comparison) -> None:
        """Cash: −120 000, +50 000, +66 000, +30 000 → positive in year 3."""
        assert comparison.cash.payback_year == 3
        assert comparison.ppa.payback_year == 0

    def test_custom_horizon(self) -> None:
        comparison = compare_financing(_scenario(), FinancingOptions(horizon_years=10))
        assert len(comparison.cash.annual_cashflow) == 11


class TestFinancingOptions:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"loan_term_years": -1},
            {"interest_rate_pct": -0.5},
            {"down_payment_pct": 120.0},
            {"degradation_rate": 1.0},
            {"ppa_transfer_cost": -1.0},
        ],
    )
    def test_invalid_options(self, kwargs: dict) -> None:
        with pytest.raises(InvalidAssumptionsError):
            FinancingOptions(**kwargs)
