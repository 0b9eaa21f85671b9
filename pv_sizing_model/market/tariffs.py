"""Utility rate classes: simplified energy/demand rates and rate-class detection.

Each rate class is reduced to the two numbers the savings model needs:

- ``energy_rate`` – first-tier energy charge in $/kWh (most commercial
  consumption falls in the first tier).
- ``demand_rate`` – monthly power premium in $/kW (0 for classes without a
  demand charge).

Public API
----------
TariffRates       – Simplified (energy, demand) rate pair.
TariffDetection   – Result of rate-class detection from a load profile.
resolve_rates     – Look up the simplified rates for a rate-class code.
detect_tariff     – Infer the most likely rate class from peak demand.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pv_sizing_model.config.defaults import HOURS_PER_MONTH, MONTHS_PER_YEAR

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Rate table
# ---------------------------------------------------------------------------

_RATE_TABLE: dict[str, tuple[float, float]] = {
    "D": (0.06905, 0.0),
    "G": (0.11933, 21.261),
    "M": (0.06061, 17.573),
    "L": (0.03681, 14.476),
    "G9": (0.12148, 5.098),
    "GD": (0.0753, 6.39),
    "BR": (0.127, 0.0),
}
"""code → (first-tier energy rate $/kWh, demand rate $/kW-month)."""

_FALLBACK_RATES: tuple[float, float] = (0.057, 17.57)
"""Rates applied to unknown codes (close to rate M)."""

_RESIDENTIAL_PEAK_KW: float = 10.0
_SMALL_POWER_PEAK_KW: float = 65.0
_MEDIUM_POWER_PEAK_KW: float = 5000.0
_LOW_LOAD_FACTOR: float = 0.3


@dataclass(frozen=True)
class TariffRates:
    """Simplified rates of one utility rate class.

    Attributes:
        code: Rate-class code (e.g. ``"M"``).
        energy_rate: Energy charge in $/kWh.
        demand_rate: Demand charge in $/kW per month.
    """

    code: str
    energy_rate: float
    demand_rate: float


@dataclass(frozen=True)
class TariffDetection:
    """Rate class inferred from a consumption profile.

    Attributes:
        code: Most likely rate class.
        load_factor: Average load divided by peak load, or None without a peak.
        suggested: Candidate rate classes in order of preference.
    """

    code: str
    load_factor: float | None
    suggested: tuple[str, ...]


def known_tariff_codes() -> list[str]:
    """Return the rate-class codes with tabulated rates."""
    return sorted(_RATE_TABLE)


def resolve_rates(code: str) -> TariffRates:
    """Return the simplified energy and demand rates for *code*.

    Unknown codes fall back to rates close to the medium-power class and a
    warning is logged.

    Args:
        code: Rate-class code, case-sensitive (``"D"``, ``"G"``, ``"M"`` …).

    Returns:
        :class:`TariffRates` for the rate class.
    """
    rates = _RATE_TABLE.get(code)
    if rates is None:
        logger.warning(
            "Unknown tariff code '%s' (known: %s); using fallback rates %.5f $/kWh, %.3f $/kW.",
            code,
            ", ".join(known_tariff_codes()),
            _FALLBACK_RATES[0],
            _FALLBACK_RATES[1],
        )
        rates = _FALLBACK_RATES
    return TariffRates(code=code, energy_rate=rates[0], demand_rate=rates[1])


def detect_tariff(
    peak_demand_kw: float,
    annual_consumption_kwh: float,
    has_power_data: bool = True,
) -> TariffDetection:
    """Infer the utility rate class from peak demand.

    Thresholds: no power data or peak below 10 kW is residential (D), below
    65 kW small power (G), below 5 MW medium power (M, with G9 suggested first
    for low load factors), otherwise large power (L).

    Args:
        peak_demand_kw: Annual peak demand in kW.
        annual_consumption_kwh: Annual consumption in kWh.
        has_power_data: False when the meter export has no demand column.

    Returns:
        :class:`TariffDetection` with the detected code and suggestions.
    """
    load_factor: float | None = None
    if peak_demand_kw > 0.0:
        load_factor = (annual_consumption_kwh / MONTHS_PER_YEAR) / (
            peak_demand_kw * HOURS_PER_MONTH
        )

    if not has_power_data or peak_demand_kw < _RESIDENTIAL_PEAK_KW:
        return TariffDetection("D", load_factor, ("D",))
    if peak_demand_kw < _SMALL_POWER_PEAK_KW:
        return TariffDetection("G", load_factor, ("G",))
    if peak_demand_kw < _MEDIUM_POWER_PEAK_KW:
        if load_factor is not None and load_factor < _LOW_LOAD_FACTOR:
            return TariffDetection("M", load_factor, ("G9", "M"))
        return TariffDetection("M", load_factor, ("M", "G9"))
    return TariffDetection("L", load_factor, ("L",))
