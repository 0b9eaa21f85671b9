"""Side-by-side comparison of acquisition models for one sizing.

Four ways for the client to acquire the system are modelled over a common
horizon (year 0 to horizon):

- **cash** – the client pays the gross CAPEX less the year-0 incentive
  tranche, then receives the year-1 and year-2 tranches.
- **loan** – the client pays a down payment; the rest is amortized monthly.
  Incentives reach the borrower on the same schedule as for cash.
- **lease** – the full gross CAPEX is amortized monthly at the implicit rate.
  All incentives reach the lessee, with both utility rebates split over
  years 0 and 1.
- **ppa** – a third party owns the system and keeps every incentive. The
  client pays a share of the avoided grid cost (year-1 rate, then the
  year-2 rate until the end of term). After the term the system transfers
  at a nominal price and the client keeps the full, degraded savings.

Owned systems (cash, loan, lease) yield the flat year-1 savings every year.
Every outcome carries year-by-year and cumulative series of equal length.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from pv_sizing_model.config.defaults import (
    DEFAULT_DEGRADATION_RATE,
    DEFAULT_DOWN_PAYMENT_PCT,
    DEFAULT_FINANCING_HORIZON_YEARS,
    DEFAULT_LEASE_IMPLICIT_RATE_PCT,
    DEFAULT_LEASE_TERM_YEARS,
    DEFAULT_LOAN_INTEREST_RATE_PCT,
    DEFAULT_LOAN_TERM_YEARS,
    DEFAULT_PPA_TERM_YEARS,
    DEFAULT_PPA_TRANSFER_COST,
    DEFAULT_PPA_YEAR1_RATE_PCT,
    DEFAULT_PPA_YEAR2_RATE_PCT,
    MONTHS_PER_YEAR_PAYMENTS,
)
from pv_sizing_model.errors import InvalidAssumptionsError
from pv_sizing_model.finance.costs import FinancialBreakdown, IncentiveSchedule
from pv_sizing_model.finance.debt import build_amortization_schedule, get_annual_payment
from pv_sizing_model.finance.inflation import escalate_value

logger = logging.getLogger(__name__)

METHOD_CASH = "cash"
METHOD_LOAN = "loan"
METHOD_LEASE = "lease"
METHOD_PPA = "ppa"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FinancingOptions:
    """Terms of the financing alternatives.

    Rates are in percent (7.0 = 7 %), terms and horizon in years.
    """

    loan_term_years: int = DEFAULT_LOAN_TERM_YEARS
    interest_rate_pct: float = DEFAULT_LOAN_INTEREST_RATE_PCT
    down_payment_pct: float = DEFAULT_DOWN_PAYMENT_PCT
    lease_term_years: int = DEFAULT_LEASE_TERM_YEARS
    lease_implicit_rate_pct: float = DEFAULT_LEASE_IMPLICIT_RATE_PCT
    ppa_term_years: int = DEFAULT_PPA_TERM_YEARS
    ppa_year1_rate_pct: float = DEFAULT_PPA_YEAR1_RATE_PCT
    ppa_year2_rate_pct: float = DEFAULT_PPA_YEAR2_RATE_PCT
    ppa_transfer_cost: float = DEFAULT_PPA_TRANSFER_COST
    horizon_years: int = DEFAULT_FINANCING_HORIZON_YEARS
    degradation_rate: float = DEFAULT_DEGRADATION_RATE

    def __post_init__(self) -> None:
        for name in ("loan_term_years", "lease_term_years", "ppa_term_years", "horizon_years"):
            if getattr(self, name) < 0:
                raise InvalidAssumptionsError(f"'{name}' must be >= 0, got {getattr(self, name)}")
        for name in (
            "interest_rate_pct",
            "lease_implicit_rate_pct",
            "ppa_year1_rate_pct",
            "ppa_year2_rate_pct",
            "ppa_transfer_cost",
        ):
            if getattr(self, name) < 0.0:
                raise InvalidAssumptionsError(f"'{name}' must be >= 0, got {getattr(self, name)}")
        if not 0.0 <= self.down_payment_pct <= 100.0:
            raise InvalidAssumptionsError(
                f"'down_payment_pct' must be in [0, 100], got {self.down_payment_pct}"
            )
        if not 0.0 <= self.degradation_rate < 1.0:
            raise InvalidAssumptionsError(
                f"'degradation_rate' must be in [0, 1), got {self.degradation_rate}"
            )


@dataclass(frozen=True)
class FinancingScenario:
    """The sizing to finance: CAPEX, incentive timing and year-1 savings."""

    capex_gross: float
    capex_net: float
    incentives: IncentiveSchedule
    lease_incentives: IncentiveSchedule
    annual_savings_year1: float

    @classmethod
    def from_breakdown(
        cls, breakdown: FinancialBreakdown, annual_savings_year1: float
    ) -> FinancingScenario:
        """Build a scenario from a breakdown and its year-1 savings."""
        return cls(
            capex_gross=breakdown.capex_gross,
            capex_net=breakdown.capex_net,
            incentives=breakdown.incentive_schedule(),
            lease_incentives=breakdown.lease_incentive_schedule(),
            annual_savings_year1=annual_savings_year1,
        )


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class FinancingOutcome:
    """Cash position of the client under one acquisition model.

    Attributes:
        method: ``"cash"``, ``"loan"``, ``"lease"`` or ``"ppa"``.
        upfront_cost: Cash paid by the client at year 0.
        monthly_payment: Loan, lease or year-1 PPA payment per month.
        total_cost: Everything paid for the system less incentives received.
        net_savings_over_horizon: Cumulative position at the horizon.
        annual_cashflow: Net cashflow of years 0..horizon.
        cumulative_cashflow: Running sum of ``annual_cashflow``.
    """

    method: str
    upfront_cost: float
    monthly_payment: float
    total_cost: float
    net_savings_over_horizon: float
    annual_cashflow: np.ndarray
    cumulative_cashflow: np.ndarray

    @property
    def payback_year(self) -> int | None:
        """First year with a non-negative cumulative position, or None."""
        positive = np.where(self.cumulative_cashflow >= 0.0)[0]
        if len(positive) == 0:
            return None
        return int(positive[0])


@dataclass(frozen=True, eq=False)
class FinancingComparison:
    """The four acquisition models over a common horizon."""

    horizon_years: int
    cash: FinancingOutcome
    loan: FinancingOutcome
    lease: FinancingOutcome
    ppa: FinancingOutcome

    def outcomes(self) -> list[FinancingOutcome]:
        return [self.cash, self.loan, self.lease, self.ppa]


def _outcome(
    method: str,
    upfront_cost: float,
    monthly_payment: float,
    total_cost: float,
    annual: np.ndarray,
) -> FinancingOutcome:
    cumulative = np.cumsum(annual)
    return FinancingOutcome(
        method=method,
        upfront_cost=upfront_cost,
        monthly_payment=monthly_payment,
        total_cost=total_cost,
        net_savings_over_horizon=float(cumulative[-1]),
        annual_cashflow=annual,
        cumulative_cashflow=cumulative,
    )


# ---------------------------------------------------------------------------
# Acquisition models
# ---------------------------------------------------------------------------


def _owned_savings(scenario: FinancingScenario, horizon: int) -> np.ndarray:
    savings = np.full(horizon + 1, scenario.annual_savings_year1)
    savings[0] = 0.0
    return savings


def _incentive_series(schedule: IncentiveSchedule, horizon: int) -> np.ndarray:
    return np.array([schedule.for_year(y) for y in range(horizon + 1)])


def cash_purchase(scenario: FinancingScenario, horizon: int) -> FinancingOutcome:
    """Outright purchase with incentives received over years 0–2."""
    incentives = _incentive_series(scenario.incentives, horizon)
    annual = _owned_savings(scenario, horizon) + incentives
    annual[0] -= scenario.capex_gross
    return _outcome(
        METHOD_CASH,
        upfront_cost=scenario.capex_gross - scenario.incentives.year0,
        monthly_payment=0.0,
        total_cost=scenario.capex_gross - float(incentives.sum()),
        annual=annual,
    )


def loan_purchase(
    scenario: FinancingScenario, options: FinancingOptions, horizon: int
) -> FinancingOutcome:
    """Down payment plus monthly amortization of the remainder."""
    down_payment = scenario.capex_gross * options.down_payment_pct / 100.0
    schedule = build_amortization_schedule(
        scenario.capex_gross - down_payment,
        options.interest_rate_pct,
        options.loan_term_years,
    )
    payments = np.array([get_annual_payment(schedule, y) for y in range(horizon + 1)])
    incentives = _incentive_series(scenario.incentives, horizon)

    annual = _owned_savings(scenario, horizon) + incentives - payments
    annual[0] -= down_payment
    return _outcome(
        METHOD_LOAN,
        upfront_cost=down_payment,
        monthly_payment=schedule.monthly_payment,
        total_cost=down_payment + float(payments.sum()) - float(incentives.sum()),
        annual=annual,
    )


def capital_lease(
    scenario: FinancingScenario, options: FinancingOptions, horizon: int
) -> FinancingOutcome:
    """Full gross CAPEX financed; rebates routed through the lessee."""
    schedule = build_amortization_schedule(
        scenario.capex_gross,
        options.lease_implicit_rate_pct,
        options.lease_term_years,
    )
    payments = np.array([get_annual_payment(schedule, y) for y in range(horizon + 1)])
    incentives = _incentive_series(scenario.lease_incentives, horizon)

    annual = _owned_savings(scenario, horizon) + incentives - payments
    return _outcome(
        METHOD_LEASE,
        upfront_cost=0.0,
        monthly_payment=schedule.monthly_payment,
        total_cost=float(payments.sum()) - float(incentives.sum()),
        annual=annual,
    )


def third_party_ppa(
    scenario: FinancingScenario, options: FinancingOptions, horizon: int
) -> FinancingOutcome:
    """Provider-owned system; the client buys the output at a discount.

    During the term the client avoids the grid-equivalent cost ``S`` and pays
    ``rate × S``, so the net saving is ``(1 − rate) × S``. After the term the
    system transfers at ``ppa_transfer_cost`` and the client saves
    ``S × (1 − degradation)^(y − 1)``.
    """
    savings = scenario.annual_savings_year1
    annual = np.zeros(horizon + 1)
    payments = np.zeros(horizon + 1)
    for y in range(1, horizon + 1):
        if y <= options.ppa_term_years:
            rate = options.ppa_year1_rate_pct if y == 1 else options.ppa_year2_rate_pct
            payments[y] = savings * rate / 100.0
            annual[y] = savings - payments[y]
        else:
            annual[y] = escalate_value(savings, -options.degradation_rate, y)
            if y == options.ppa_term_years + 1:
                payments[y] = options.ppa_transfer_cost
                annual[y] -= options.ppa_transfer_cost

    return _outcome(
        METHOD_PPA,
        upfront_cost=0.0,
        monthly_payment=savings * options.ppa_year1_rate_pct / 100.0 / MONTHS_PER_YEAR_PAYMENTS,
        total_cost=float(payments.sum()),
        annual=annual,
    )


def compare_financing(
    scenario: FinancingScenario,
    options: FinancingOptions | None = None,
) -> FinancingComparison:
    """Express one sizing under cash, loan, lease and PPA acquisition.

    Args:
        scenario: CAPEX, incentive timing and savings of the sizing.
        options: Financing terms. Defaults to :class:`FinancingOptions`.

    Returns:
        :class:`FinancingComparison` whose four outcomes share the same
        ``horizon + 1`` length.
    """
    if options is None:
        options = FinancingOptions()
    horizon = options.horizon_years

    comparison = FinancingComparison(
        horizon_years=horizon,
        cash=cash_purchase(scenario, horizon),
        loan=loan_purchase(scenario, options, horizon),
        lease=capital_lease(scenario, options, horizon),
        ppa=third_party_ppa(scenario, options, horizon),
    )
    for outcome in comparison.outcomes():
        logger.debug(
            "Financing %-5s: upfront %.0f, total cost %.0f, net savings %.0f over %d y.",
            outcome.method,
            outcome.upfront_cost,
            outcome.total_cost,
            outcome.net_savings_over_horizon,
            horizon,
        )
    return comparison
