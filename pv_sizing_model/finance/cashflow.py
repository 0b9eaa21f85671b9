"""Annual cashflow projection: savings, O&M, battery replacement, incentives.

Builds a year-by-year cashflow table for the analysis horizon. Year 0 carries
the investment. Years 1..N carry operating cashflows:

    revenue[y] = savings_y1 × (1 + inflation)^(y−1) × (1 − degradation)^(y−1)
                 + surplus_y1 × (1 + inflation)^(y−1) × (1 − degradation)^(y−1)
                                                          (y ≥ surplus start)
    opex[y]    = om_y1 × (1 + om_escalation)^(y−1) + battery replacement
    net[y]     = revenue[y] − opex[y] + incentives[y]

Without an incentive schedule the investment is the net CAPEX, booked in full
at year 0. With one, year 0 carries the gross investment less the year-0
tranche and the year-1/year-2 tranches are received in those years, so the
undiscounted total is unchanged.

Only the hourly year-1 simulation feeds this table: longer horizons extend
the escalation and degradation curves, never the hourly simulation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from pv_sizing_model.bess.replacement import BatteryReplacement
from pv_sizing_model.config.defaults import DEFAULT_SURPLUS_COMPENSATION_START_YEAR
from pv_sizing_model.finance.costs import IncentiveSchedule
from pv_sizing_model.finance.inflation import build_escalation_factors
from pv_sizing_model.pv.degradation import degradation_factors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CashflowEntry:
    """Cashflow breakdown for a single project year (dollars).

    ``cumulative`` is the running sum of ``net_cashflow`` from year 0.
    """

    year: int
    revenue: float
    opex: float
    investment: float
    incentives: float
    net_cashflow: float
    cumulative: float


def net_cashflows(cashflows: list[CashflowEntry]) -> np.ndarray:
    """Extract the net cashflow of every year as an array (year 0 first)."""
    return np.array([entry.net_cashflow for entry in cashflows], dtype=float)


def build_cashflows(
    annual_savings_year1: float,
    capex_net: float,
    om_annual_year1: float,
    om_escalation: float,
    battery_replacement: BatteryReplacement | None,
    inflation_rate: float,
    horizon_years: int,
    *,
    battery_capex: float = 0.0,
    degradation_rate: float = 0.0,
    incentives: IncentiveSchedule | None = None,
    surplus_revenue_year1: float = 0.0,
    surplus_start_year: int = DEFAULT_SURPLUS_COMPENSATION_START_YEAR,
) -> list[CashflowEntry]:
    """Build the annual cashflow table for years 0..*horizon_years*.

    Args:
        annual_savings_year1: Bill savings in year 1 in dollars.
        capex_net: Net CAPEX after all incentives in dollars.
        om_annual_year1: O&M cost in year 1 in dollars.
        om_escalation: Annual O&M escalation as a decimal.
        battery_replacement: Replacement schedule, or None for no
            replacement.
        inflation_rate: Annual tariff inflation as a decimal.
        horizon_years: Number of operating years.
        battery_capex: Original battery CAPEX, the basis of the replacement
            cost.
        degradation_rate: Annual PV degradation applied to savings and
            surplus revenue.
        incentives: Disbursement schedule of the incentives included in
            *capex_net*, or None to book the net CAPEX at year 0.
        surplus_revenue_year1: Compensation for exported surplus in year 1
            terms in dollars.
        surplus_start_year: First project year in which surplus is paid.

    Returns:
        List of ``horizon_years + 1`` :class:`CashflowEntry`, year 0 first.

    Raises:
        ValueError: If *horizon_years* is negative.
    """
    if horizon_years < 0:
        raise ValueError(f"horizon_years must be >= 0, got {horizon_years}")

    inflation = build_escalation_factors(inflation_rate, horizon_years)
    om_factors = build_escalation_factors(om_escalation, horizon_years)
    degradation = degradation_factors(degradation_rate, horizon_years)
    replacement_years = (
        set(battery_replacement.replacement_years(horizon_years))
        if battery_replacement is not None
        else set()
    )

    if incentives is None:
        investment = capex_net
        incentive_y0 = 0.0
    else:
        investment = capex_net + incentives.total
        incentive_y0 = incentives.year0

    net0 = -investment + incentive_y0
    entries = [
        CashflowEntry(
            year=0,
            revenue=0.0,
            opex=0.0,
            investment=investment,
            incentives=incentive_y0,
            net_cashflow=net0,
            cumulative=net0,
        )
    ]
    cumulative = net0

    for y in range(1, horizon_years + 1):
        revenue = annual_savings_year1 * inflation[y - 1] * degradation[y - 1]
        if y >= surplus_start_year:
            revenue += surplus_revenue_year1 * inflation[y - 1] * degradation[y - 1]

        opex = om_annual_year1 * om_factors[y - 1]
        if y in replacement_years:
            replacement = battery_replacement.cost(battery_capex, y, inflation_rate)
            if replacement > 0.0:
                logger.debug("Battery replacement in year %d: %.0f $.", y, replacement)
            opex += replacement

        received = incentives.for_year(y) if incentives is not None else 0.0
        net = revenue - opex + received
        cumulative += net
        entries.append(
            CashflowEntry(
                year=y,
                revenue=revenue,
                opex=opex,
                investment=0.0,
                incentives=received,
                net_cashflow=net,
                cumulative=cumulative,
            )
        )

    return entries
