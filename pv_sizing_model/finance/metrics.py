"""Financial metrics: NPV, IRR, simple payback and LCOE over several horizons.

NPV uses ``numpy_financial``. IRR is solved with Newton's method
(``scipy.optimize.newton``) from a 10 % guess and falls back to Brent's method
on a bracket when Newton fails; both run under a hard iteration cap.
:func:`irr` raises :class:`~pv_sizing_model.errors.NoIRRError` when no root
exists, :func:`safe_irr` returns ``None`` instead.

All functions accept either a list of :class:`CashflowEntry` or a plain
array of net cashflows (year 0 first).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
import numpy_financial as npf
from scipy import optimize

from pv_sizing_model.config.defaults import (
    DEFAULT_DISCOUNT_RATE,
    IRR_INITIAL_GUESS,
    IRR_LOWER_BOUND,
    IRR_MAX_ITERATIONS,
    IRR_RATE_TOLERANCE,
    IRR_UPPER_BOUND,
    METRIC_HORIZONS,
)
from pv_sizing_model.errors import NoIRRError
from pv_sizing_model.finance.cashflow import CashflowEntry, net_cashflows

logger = logging.getLogger(__name__)

Cashflows = Union[Sequence[CashflowEntry], np.ndarray]


def _as_array(cashflows: Cashflows) -> np.ndarray:
    if len(cashflows) > 0 and isinstance(cashflows[0], CashflowEntry):
        return net_cashflows(list(cashflows))
    return np.asarray(cashflows, dtype=float)


# ---------------------------------------------------------------------------
# NPV / IRR
# ---------------------------------------------------------------------------


def npv(cashflows: Cashflows, discount_rate: float = DEFAULT_DISCOUNT_RATE) -> float:
    """Net present value with year 0 undiscounted.

    Args:
        cashflows: Cashflows of years 0..N.
        discount_rate: Annual discount rate as decimal (> −1).

    Returns:
        NPV in dollars.

    Raises:
        ValueError: If *discount_rate* is not greater than −1.
    """
    if discount_rate <= -1.0:
        raise ValueError(f"discount_rate must be > -1, got {discount_rate}")
    return float(npf.npv(discount_rate, _as_array(cashflows)))


def _npv_and_derivative(values: np.ndarray):
    t = np.arange(len(values))

    def f(rate: float) -> float:
        return float(np.sum(values / (1.0 + rate) ** t))

    def fprime(rate: float) -> float:
        return float(np.sum(-t * values / (1.0 + rate) ** (t + 1)))

    return f, fprime


def irr(cashflows: Cashflows) -> float:
    """Internal rate of return: the rate at which NPV is zero.

    Newton's method starts at 10 %. If it does not converge within the
    iteration cap, or leaves the admissible range, Brent's method is run on
    ``[−0.99, 10]``.

    Args:
        cashflows: Cashflows of years 0..N.

    Returns:
        IRR as a decimal.

    Raises:
        NoIRRError: If the cashflows never change sign or no root is found.
    """
    values = _as_array(cashflows)
    if len(values) < 2 or not (np.any(values > 0.0) and np.any(values < 0.0)):
        raise NoIRRError("Cashflows never change sign; IRR is undefined.")

    f, fprime = _npv_and_derivative(values)

    try:
        rate = float(
            optimize.newton(
                f,
                IRR_INITIAL_GUESS,
                fprime=fprime,
                tol=IRR_RATE_TOLERANCE,
                maxiter=IRR_MAX_ITERATIONS,
            )
        )
        if np.isfinite(rate) and IRR_LOWER_BOUND <= rate <= IRR_UPPER_BOUND:
            return rate
        logger.debug("Newton IRR %.6f outside bracket; falling back to Brent.", rate)
    except (RuntimeError, ZeroDivisionError, OverflowError, FloatingPointError) as exc:
        logger.debug("Newton IRR did not converge (%s); falling back to Brent.", exc)

    low, high = f(IRR_LOWER_BOUND), f(IRR_UPPER_BOUND)
    if not (np.isfinite(low) and np.isfinite(high)) or low * high > 0.0:
        raise NoIRRError("No IRR within [-99 %, 1000 %].")
    try:
        return float(
            optimize.brentq(
                f,
                IRR_LOWER_BOUND,
                IRR_UPPER_BOUND,
                xtol=IRR_RATE_TOLERANCE,
                maxiter=IRR_MAX_ITERATIONS,
            )
        )
    except (RuntimeError, ValueError) as exc:
        raise NoIRRError(f"IRR solver did not converge: {exc}") from exc


def safe_irr(cashflows: Cashflows) -> float | None:
    """Compute IRR, returning None when it is undefined.

    Args:
        cashflows: Cashflows of years 0..N.

    Returns:
        IRR as a decimal, or None.
    """
    try:
        return irr(cashflows)
    except NoIRRError:
        return None


# ---------------------------------------------------------------------------
# Payback / LCOE
# ---------------------------------------------------------------------------


def simple_payback(cashflows: Cashflows) -> float | None:
    """Years until the cumulative cashflow first reaches zero.

    The crossing is interpolated linearly within the year:
    ``(y − 1) + (−cumulative[y−1]) / cashflow[y]``. When the cumulative
    cashflow dips below zero again later (e.g. a battery replacement) the
    first crossing is still reported.

    Args:
        cashflows: Cashflows of years 0..N.

    Returns:
        Payback in years (0.0 if year 0 is already non-negative), or None if
        the investment is never recovered within the horizon.
    """
    values = _as_array(cashflows)
    if len(values) == 0:
        return None
    cumulative = np.cumsum(values)
    if cumulative[0] >= 0.0:
        return 0.0
    for y in range(1, len(values)):
        if cumulative[y] >= 0.0:
            return (y - 1) + (-cumulative[y - 1]) / values[y]
    return None


def lcoe(
    capex_net: float,
    cashflows: Sequence[CashflowEntry],
    annual_energy_kwh: float,
    discount_rate: float = DEFAULT_DISCOUNT_RATE,
    degradation_rate: float = 0.0,
) -> float | None:
    """Levelized cost of energy over the horizon of *cashflows*.

    ``LCOE = (capex_net + PV(O&M)) / PV(energy)``, where energy in year *y*
    is ``annual_energy_kwh × (1 − degradation)^(y−1)``.

    Args:
        capex_net: Net CAPEX in dollars.
        cashflows: Cashflow table of years 0..N (its ``opex`` is used).
        annual_energy_kwh: Year-1 energy production in kWh.
        discount_rate: Annual discount rate as decimal.
        degradation_rate: Annual production degradation as decimal.

    Returns:
        LCOE in $/kWh, or None if there is no production.
    """
    years = np.array([entry.year for entry in cashflows if entry.year >= 1])
    if annual_energy_kwh <= 0.0 or len(years) == 0:
        return None
    opex = np.array([entry.opex for entry in cashflows if entry.year >= 1])
    discount = (1.0 + discount_rate) ** years
    energy = annual_energy_kwh * (1.0 - degradation_rate) ** (years - 1)
    pv_costs = capex_net + float(np.sum(opex / discount))
    pv_energy = float(np.sum(energy / discount))
    return pv_costs / pv_energy


# ---------------------------------------------------------------------------
# Horizon metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HorizonMetrics:
    """Return metrics of one analysis horizon.

    Attributes:
        horizon_years: Number of operating years.
        npv: Net present value in dollars.
        irr: IRR as decimal, or None if undefined.
        simple_payback_years: Payback in years, or None if never reached.
        lcoe: LCOE in $/kWh, or None without production.
    """

    horizon_years: int
    npv: float
    irr: float | None
    simple_payback_years: float | None
    lcoe: float | None


def compute_horizon_metrics(
    cashflows: list[CashflowEntry],
    capex_net: float,
    annual_energy_kwh: float,
    discount_rate: float = DEFAULT_DISCOUNT_RATE,
    degradation_rate: float = 0.0,
    horizons: Sequence[int] = METRIC_HORIZONS,
) -> dict[int, HorizonMetrics]:
    """Derive metrics for several horizons from one long cashflow table.

    Each horizon uses the first ``horizon + 1`` entries of *cashflows*, so the
    table must cover the longest horizon.

    Raises:
        ValueError: If a horizon exceeds the length of *cashflows*.
    """
    result: dict[int, HorizonMetrics] = {}
    for horizon in horizons:
        if horizon + 1 > len(cashflows):
            raise ValueError(
                f"Cashflows cover {len(cashflows) - 1} years, horizon {horizon} requested."
            )
        window = cashflows[: horizon + 1]
        result[horizon] = HorizonMetrics(
            horizon_years=horizon,
            npv=npv(window, discount_rate),
            irr=safe_irr(window),
            simple_payback_years=simple_payback(window),
            lcoe=lcoe(capex_net, window, annual_energy_kwh, discount_rate, degradation_rate),
        )
    return result
