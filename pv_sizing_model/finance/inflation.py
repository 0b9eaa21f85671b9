"""Price escalation for tariff savings, O&M and equipment price curves.

Two conventions are used:

- Operating values (bill savings, O&M) take project year 1 as the base year,
  so the factor of year *y* is ``(1 + rate) ^ (y − 1)``.
- Equipment prices quoted at commissioning (battery replacement) compound
  from year 0: ``(1 + rate) ^ y``.

An equipment price curve nets general inflation against a technology price
decline, see :func:`net_price_rate`. A negative rate models decay, e.g. PV
degradation applied to savings.
"""

from __future__ import annotations

import numpy as np


def _check_rate(rate: float) -> None:
    if rate <= -1.0:
        raise ValueError(f"Escalation rate must be > -1, got {rate}")


def net_price_rate(inflation_rate: float, decline_rate: float) -> float:
    """Annual growth of a price that inflates but also declines with technology."""
    return inflation_rate - decline_rate


def compound(base_value: float, rate: float, periods: int) -> float:
    """Grow *base_value* at *rate* over *periods* whole years.

    Raises:
        ValueError: If *rate* is not greater than −1.
    """
    _check_rate(rate)
    return base_value * (1.0 + rate) ** periods


def escalate_value(base_value: float, rate: float, year: int) -> float:
    """Value of project year *year* (1-indexed) for a year-1 base value.

    Year 1 returns *base_value* unchanged; year 2 returns
    ``base × (1 + rate)``.
    """
    return compound(base_value, rate, max(0, year - 1))


def build_escalation_factors(rate: float, n_years: int) -> np.ndarray:
    """Factors of project years 1..*n_years*; element ``i`` is ``(1 + rate) ** i``."""
    _check_rate(rate)
    return (1.0 + rate) ** np.arange(n_years)
