"""Annual PV production degradation.

For project year *Y* (1-indexed, Y = 1 is the first operating year):

    production[Y] = year_one_production × (1 − degradation_rate) ^ (Y − 1)

Year 1 is the reference year of the hourly simulation, so its factor is 1.0.
Multi-year horizons extend this curve; the hourly simulation itself is never
repeated per year.

Typical usage::

    from pv_sizing_model.pv.degradation import degradation_factors
    factors = degradation_factors(0.005, 25)
    # factors[0] == 1.0 (year 1), factors[24] is the year-25 factor
"""

from __future__ import annotations

import numpy as np


def _check_rate(degradation_rate: float) -> None:
    if not 0.0 <= degradation_rate < 1.0:
        raise ValueError(
            f"degradation_rate must be in [0, 1), got {degradation_rate}. "
            "For a 0.5 %/year rate pass 0.005, not 0.5."
        )


def degradation_factor(degradation_rate: float, year: int) -> float:
    """Return the production multiplier for a single project year.

    Parameters
    ----------
    degradation_rate:
        Annual degradation fraction (e.g. ``0.005``).
    year:
        1-indexed project year (year 1 = first operating year).

    Returns
    -------
    float
        ``(1 − degradation_rate) ^ (year − 1)``

    Raises
    ------
    ValueError
        When *degradation_rate* is outside [0, 1) or *year* < 1.
    """
    _check_rate(degradation_rate)
    if year < 1:
        raise ValueError(f"year must be ≥ 1, got {year}.")
    return (1.0 - degradation_rate) ** (year - 1)


def degradation_factors(degradation_rate: float, n_years: int) -> np.ndarray:
    """Return the multipliers for years 1..*n_years* as an array.

    Element ``i`` is the factor of project year ``i + 1``.

    Raises
    ------
    ValueError
        When *degradation_rate* is outside [0, 1) or *n_years* is negative.
    """
    _check_rate(degradation_rate)
    if n_years < 0:
        raise ValueError(f"n_years must be ≥ 0, got {n_years}.")
    return (1.0 - degradation_rate) ** np.arange(n_years)
