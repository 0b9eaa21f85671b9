"""Synthetic hourly PV production from a normalised per-kWp shape.

The shape combines a Gaussian diurnal bell centred on solar noon with a
seasonal cosine peaking in June, restricted to daylight hours:

    bell   = exp(−(hour − 13)² / 8)
    season = 1 + 0.4 × cos((month − 6) × 2π / 12)
    dc_kwh_per_kwp = bell × season × 0.645 × (yield / 1150)

The baseline capacity factor 0.645 calibrates the shape to 1 150 kWh/kWp per
year before losses. The DC energy is then corrected for cell temperature,
system losses and snow, scaled by orientation, bifacial gain and
degradation, and clipped at the inverter AC rating (``pv_size / ILR``).

Unit conventions
----------------
========  ======  ==============================================
Quantity  Unit    Notes
========  ======  ==============================================
Energy    kWh     per hourly row
Size      kW      DC nameplate
Temp.     °C      monthly ambient, cell temperature
========  ======  ==============================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from pv_sizing_model.config.assumptions import AnalysisAssumptions
from pv_sizing_model.config.defaults import (
    BASELINE_CAPACITY_FACTOR,
    BASELINE_YIELD_KWH_PER_KWP,
    CELL_TEMPERATURE_RISE_C,
    DAYLIGHT_FIRST_HOUR,
    DAYLIGHT_LAST_HOUR,
    DIURNAL_SPREAD,
    LID_LOSS_PERCENT,
    MISMATCH_LOSS_PERCENT,
    MISMATCH_STRINGS_LOSS_PERCENT,
    MODULE_QUALITY_GAIN_PERCENT,
    MONTHLY_AMBIENT_TEMPERATURES_C,
    SEASONAL_AMPLITUDE,
    SEASONAL_PEAK_MONTH,
    SNOW_LOSS_PROFILES,
    SOLAR_NOON_HOUR,
    STC_CELL_TEMPERATURE_C,
)
from pv_sizing_model.pv.degradation import degradation_factor

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ProductionResult:
    """AC production of one PV array over a profile.

    Attributes:
        ac_kwh: Hourly AC production after clipping in kWh.
        clipping_loss_kwh: DC energy lost to inverter clipping in kWh.
    """

    ac_kwh: np.ndarray
    clipping_loss_kwh: float

    @property
    def total_kwh(self) -> float:
        """Sum of hourly AC production in kWh."""
        return float(self.ac_kwh.sum())


def diurnal_bell(hour: np.ndarray) -> np.ndarray:
    """Relative irradiance by hour of day (1.0 at solar noon, 0 at night)."""
    hour = np.asarray(hour, dtype=float)
    bell = np.exp(-((hour - SOLAR_NOON_HOUR) ** 2) / DIURNAL_SPREAD)
    daylight = (hour >= DAYLIGHT_FIRST_HOUR) & (hour <= DAYLIGHT_LAST_HOUR)
    return np.where(daylight, bell, 0.0)


def seasonal_factor(month: np.ndarray) -> np.ndarray:
    """Relative irradiance by calendar month (1.4 in June, 0.6 in December)."""
    month = np.asarray(month, dtype=float)
    return 1.0 + SEASONAL_AMPLITUDE * np.cos((month - SEASONAL_PEAK_MONTH) * 2.0 * np.pi / 12.0)


def temperature_factor(
    hour: np.ndarray,
    month: np.ndarray,
    temperature_coefficient: float,
) -> np.ndarray:
    """Power correction for cell temperature relative to STC.

    Cell temperature = monthly ambient + 25 °C × diurnal bell; the factor is
    ``1 + coefficient × (cell − 25)``, so cold months gain and hot months lose.
    """
    ambient = np.asarray(MONTHLY_AMBIENT_TEMPERATURES_C)[np.asarray(month, dtype=int) - 1]
    cell = ambient + CELL_TEMPERATURE_RISE_C * diurnal_bell(hour)
    return 1.0 + temperature_coefficient * (cell - STC_CELL_TEMPERATURE_C)


def system_loss_factor(wire_loss_percent: float) -> float:
    """Combined multiplier of wiring, LID, mismatch and module tolerance."""
    return (
        (1.0 - wire_loss_percent)
        * (1.0 - LID_LOSS_PERCENT)
        * (1.0 - MISMATCH_LOSS_PERCENT)
        * (1.0 - MISMATCH_STRINGS_LOSS_PERCENT)
        * (1.0 + MODULE_QUALITY_GAIN_PERCENT)
    )


def snow_loss_factor(month: np.ndarray, profile: str) -> np.ndarray:
    """Fraction of production surviving snow cover in each row's month."""
    losses = np.asarray(SNOW_LOSS_PROFILES[profile])
    return 1.0 - losses[np.asarray(month, dtype=int) - 1]


def dc_production_per_kwp(
    hour: np.ndarray,
    month: np.ndarray,
    assumptions: AnalysisAssumptions,
    year: int = 1,
) -> np.ndarray:
    """Hourly DC production of 1 kWp before inverter clipping (kWh).

    Parameters
    ----------
    hour, month:
        Calendar annotation of each row.
    assumptions:
        Yield, orientation, bifacial, temperature, loss and degradation inputs.
    year:
        1-indexed project year for the degradation factor.

    Returns
    -------
    numpy.ndarray
        Production per kWp, same shape as *hour*.
    """
    yield_factor = assumptions.solar_yield_kwh_per_kwp / BASELINE_YIELD_KWH_PER_KWP
    shape = diurnal_bell(hour) * seasonal_factor(month) * BASELINE_CAPACITY_FACTOR * yield_factor
    shape = shape * temperature_factor(hour, month, assumptions.temperature_coefficient)
    shape = shape * system_loss_factor(assumptions.wire_loss_percent)
    shape = shape * snow_loss_factor(month, assumptions.snow_loss_profile)

    scale = (
        assumptions.orientation_factor
        * assumptions.bifacial_boost
        * degradation_factor(assumptions.degradation_rate, year)
    )
    return np.maximum(shape * scale, 0.0)


def simulate_production(
    pv_size_kw: float,
    hour: np.ndarray,
    month: np.ndarray,
    assumptions: AnalysisAssumptions,
    year: int = 1,
) -> ProductionResult:
    """Scale the per-kWp profile to *pv_size_kw* and apply inverter clipping.

    The inverter AC rating is ``pv_size_kw / inverter_load_ratio``; hourly
    DC energy above it is lost and reported as clipping loss.

    Parameters
    ----------
    pv_size_kw:
        DC nameplate of the array in kW (≥ 0).
    hour, month:
        Calendar annotation of each row.
    assumptions:
        Analysis assumptions.
    year:
        1-indexed project year.

    Returns
    -------
    ProductionResult
        Hourly AC production and the clipped energy.
    """
    dc = pv_size_kw * dc_production_per_kwp(hour, month, assumptions, year)
    inverter_kw = pv_size_kw / assumptions.inverter_load_ratio
    ac = np.minimum(dc, inverter_kw)
    clipping = float((dc - ac).sum())

    if clipping > 0.0:
        logger.debug(
            "Inverter clipping at %.1f kW AC: %.0f kWh lost (%.2f %% of DC).",
            inverter_kw,
            clipping,
            clipping / float(dc.sum()) * 100.0,
        )
    return ProductionResult(ac_kwh=ac, clipping_loss_kwh=clipping)
