"""Accelerated capital cost allowance (CCA) and its depreciation tax shield.

Clean-energy equipment is depreciated on a declining balance at ``rate``.
The first year may be accelerated (``first_year_factor`` > 1) or restricted
by the half-year rule (``first_year_factor`` = 0.5):

    deduction[1] = basis × min(1, rate × first_year_factor)
    deduction[y] = UCC[y−1] × rate                   (y ≥ 2)

where UCC is the undepreciated capital cost. The tax shield is the present
value, discounted to year 1, of ``tax_rate × deduction[y]`` over the infinite
schedule. The closed form of the tail is used, so the value does not depend
on the analysis horizon.
"""

from __future__ import annotations

import numpy as np

from pv_sizing_model.config.defaults import (
    DEFAULT_CCA_FIRST_YEAR_FACTOR,
    DEFAULT_CCA_RATE,
)
from pv_sizing_model.errors import InvalidAssumptionsError


def _cca_schedule(
    basis: float,
    n_years: int,
    rate: float = DEFAULT_CCA_RATE,
    first_year_factor: float = DEFAULT_CCA_FIRST_YEAR_FACTOR,
) -> np.ndarray:
    """Return the yearly CCA deductions for years 1..*n_years*.

    Args:
        basis: Depreciable basis in dollars.
        n_years: Number of years to tabulate.
        rate: Declining-balance rate as a decimal.
        first_year_factor: Multiplier on the first-year rate.

    Returns:
        Array of shape ``(n_years,)``; element ``i`` is the deduction of year
        ``i + 1``.
    """
    deductions = np.zeros(n_years)
    if n_years <= 0 or basis <= 0.0:
        return deductions

    ucc = basis
    for i in range(n_years):
        if i == 0:
            deduction = basis * min(1.0, rate * first_year_factor)
        else:
            deduction = ucc * rate
        deductions[i] = deduction
        ucc -= deduction
    return deductions


def cca_present_value_factor(
    discount_rate: float,
    rate: float = DEFAULT_CCA_RATE,
    first_year_factor: float = DEFAULT_CCA_FIRST_YEAR_FACTOR,
) -> float:
    """Present value (at year 1) of the full CCA schedule per dollar of basis.

    With ``a = min(1, rate × first_year_factor)`` the first year deducts ``a``
    and the remaining ``1 − a`` decays geometrically, giving

        factor = a + (1 − a) × rate / (discount_rate + rate)

    Args:
        discount_rate: Discount rate as a decimal (> −rate).
        rate: Declining-balance rate as a decimal.
        first_year_factor: Multiplier on the first-year rate.

    Returns:
        PV factor in [0, 1].

    Raises:
        InvalidAssumptionsError: If ``discount_rate + rate`` is not positive.
    """
    if discount_rate + rate <= 0.0:
        raise InvalidAssumptionsError(
            f"discount_rate + CCA rate must be > 0, got {discount_rate} + {rate}"
        )
    first = min(1.0, rate * first_year_factor)
    return first + (1.0 - first) * rate / (discount_rate + rate)


def depreciation_tax_shield(
    depreciable_basis: float,
    tax_rate: float,
    discount_rate: float,
    rate: float = DEFAULT_CCA_RATE,
    first_year_factor: float = DEFAULT_CCA_FIRST_YEAR_FACTOR,
) -> float:
    """Present value of the tax saved by the CCA deductions.

    Returns 0.0 for a non-positive basis.
    """
    if depreciable_basis <= 0.0:
        return 0.0
    factor = cca_present_value_factor(discount_rate, rate, first_year_factor)
    return tax_rate * depreciable_basis * factor
