"""Amortizing loan and lease model: monthly payments aggregated per year.

Implements a standard annuity where the monthly payment is constant over the
term. Each monthly payment is split into interest and principal; the yearly
view sums the twelve months of each project year.

    payment = principal × r × (1 + r)^n / ((1 + r)^n − 1),  r = rate / 12

With a zero rate the principal is repaid in equal instalments.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy_financial as npf

from pv_sizing_model.config.defaults import MONTHS_PER_YEAR_PAYMENTS


@dataclass(frozen=True)
class AmortizationSchedule:
    """Full amortization schedule, aggregated per project year.

    Attributes:
        principal: Initial amount financed in dollars.
        monthly_payment: Constant monthly payment (positive = outflow).
        annual_payments: Payments per year (list, length = term).
        interest_payments: Interest portion per year (list, length = term).
        principal_payments: Principal portion per year (list, length = term).
        remaining_balance: Outstanding balance at end of each year (list, length = term).
    """

    principal: float
    monthly_payment: float
    annual_payments: list[float]
    interest_payments: list[float]
    principal_payments: list[float]
    remaining_balance: list[float]

    @property
    def total_paid(self) -> float:
        return sum(self.annual_payments)

    @property
    def total_interest(self) -> float:
        return sum(self.interest_payments)


def calculate_monthly_payment(
    principal: float,
    annual_rate_pct: float,
    term_years: int,
) -> float:
    """Calculate the constant monthly payment of an amortizing loan.

    Args:
        principal: Amount financed in dollars.
        annual_rate_pct: Nominal annual interest rate in percent (e.g. 7.0).
        term_years: Term in years.

    Returns:
        Monthly payment as a positive value (cash outflow).
    """
    if principal <= 0.0 or term_years <= 0:
        return 0.0
    n_payments = term_years * MONTHS_PER_YEAR_PAYMENTS
    monthly_rate = annual_rate_pct / 100.0 / MONTHS_PER_YEAR_PAYMENTS
    if monthly_rate <= 0.0:
        return principal / n_payments
    return abs(float(npf.pmt(monthly_rate, n_payments, principal)))


def build_amortization_schedule(
    principal: float,
    annual_rate_pct: float,
    term_years: int,
) -> AmortizationSchedule:
    """Build the year-by-year amortization schedule.

    Args:
        principal: Amount financed in dollars.
        annual_rate_pct: Nominal annual interest rate in percent.
        term_years: Term in years.

    Returns:
        :class:`AmortizationSchedule` with per-year interest/principal split.
    """
    if principal <= 0.0 or term_years <= 0:
        return AmortizationSchedule(
            principal=0.0,
            monthly_payment=0.0,
            annual_payments=[],
            interest_payments=[],
            principal_payments=[],
            remaining_balance=[],
        )

    monthly_payment = calculate_monthly_payment(principal, annual_rate_pct, term_years)
    monthly_rate = annual_rate_pct / 100.0 / MONTHS_PER_YEAR_PAYMENTS

    annual_payments: list[float] = []
    interest_payments: list[float] = []
    principal_payments: list[float] = []
    remaining_balance: list[float] = []
    balance = principal

    for _ in range(term_years):
        year_interest = 0.0
        year_principal = 0.0
        for _ in range(MONTHS_PER_YEAR_PAYMENTS):
            interest = balance * monthly_rate
            repaid = monthly_payment - interest
            balance -= repaid
            year_interest += interest
            year_principal += repaid

        annual_payments.append(monthly_payment * MONTHS_PER_YEAR_PAYMENTS)
        interest_payments.append(year_interest)
        principal_payments.append(year_principal)
        remaining_balance.append(max(balance, 0.0))

    return AmortizationSchedule(
        principal=principal,
        monthly_payment=monthly_payment,
        annual_payments=annual_payments,
        interest_payments=interest_payments,
        principal_payments=principal_payments,
        remaining_balance=remaining_balance,
    )


def get_annual_payment(schedule: AmortizationSchedule, year: int) -> float:
    """Return the payments of a given project year (1-indexed).

    Args:
        schedule: The amortization schedule.
        year: Project year (1-indexed). Year 0 carries no payment.

    Returns:
        Annual payment (0.0 if *year* is outside the term).
    """
    if year < 1 or year > len(schedule.annual_payments):
        return 0.0
    return schedule.annual_payments[year - 1]
