"""Hourly simulation engine: PV production, battery dispatch and peak demand.

The engine simulates one representative year of a solar + battery system
behind the meter of a commercial load. For every hourly row of the load
profile it:

1. takes the AC production of the array (see :mod:`pv_sizing_model.pv.production`),
2. serves the load directly from production,
3. dispatches the battery on the remaining net load (self-consumption or
   peak-shaving strategy), exporting any surplus the battery cannot absorb,
4. derives the demand after intervention:
   ``peak_after = max(0, peak_before − (load − grid_import))``.

Battery state of charge is carried across the whole profile, starting at
50 % of capacity. Round-trip losses are applied on discharge only.

When no battery is present the dispatch reduces to element-wise array math
and the hourly loop is skipped.

Unit conventions
----------------
========  ======  ====================================================
Quantity  Unit    Notes
========  ======  ====================================================
Energy    kWh     consumption, production, charge/discharge, SoC
Power     kW      battery power, demand before/after
RTE       frac    Round-trip efficiency in (0, 1]
========  ======  ====================================================

Public API
----------
HourlyProfileEntry  - One row of the per-hour result.
HourOfDayAverage    - Average of one hour of day across the profile.
MonthlyPeak         - Billing-period demand before/after.
SimulationResult    - Full simulation output with annual aggregates.
simulate            - Run the hourly simulation for one sizing.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from pv_sizing_model.bess.battery import BatteryState
from pv_sizing_model.config.assumptions import AnalysisAssumptions
from pv_sizing_model.config.defaults import (
    DISPATCH_PEAK_SHAVING,
    GRID_CHARGING_START_HOUR,
    HOURS_PER_DAY,
    MONTHS_PER_YEAR,
    PEAK_SHAVING_SETPOINT_FRACTION,
    PEAK_WEEK_HALF_WINDOW_HOURS,
)
from pv_sizing_model.errors import InvalidAssumptionsError
from pv_sizing_model.load.profile import LoadProfile
from pv_sizing_model.pv.production import simulate_production

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HourlyProfileEntry:
    """One hourly row of the simulation.

    Attributes:
        hour: Hour of day (0–23).
        month: Calendar month (1–12).
        consumption: Load in kWh.
        production: AC production in kWh.
        peak_before: Demand without the system in kW.
        peak_after: Demand with the system in kW.
    """

    hour: int
    month: int
    consumption: float
    production: float
    peak_before: float
    peak_after: float


@dataclass(frozen=True)
class HourOfDayAverage:
    """Average consumption, production and demand for one hour of day."""

    hour: int
    consumption: float
    production: float
    peak_before: float
    peak_after: float


@dataclass(frozen=True)
class MonthlyPeak:
    """Highest demand of one billing month before and after the system."""

    month: int
    peak_before_kw: float
    peak_after_kw: float

    @property
    def reduction_kw(self) -> float:
        """Billable demand reduction (never negative)."""
        return max(0.0, self.peak_before_kw - self.peak_after_kw)


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """Hourly series and annual aggregates of one simulated sizing.

    Every array has one element per profile row. Energy aggregates are
    scaled to one year with the profile's annualization factor.

    Attributes:
        pv_size_kw: Simulated DC nameplate in kW.
        batt_energy_kwh: Simulated battery capacity in kWh.
        batt_power_kw: Simulated battery power in kW.
        hour: Hour of day of each row.
        month: Calendar month of each row.
        consumption: Load in kWh.
        production: AC production in kWh.
        self_consumed: Load served by production or battery in kWh.
        exported: Surplus fed to the grid in kWh.
        grid_import: Energy drawn from the grid in kWh (incl. grid charging).
        grid_charging: Energy charged into the battery from the grid in kWh.
        battery_soc: Battery SoC at the end of each row in kWh.
        peak_before: Demand without the system in kW.
        peak_after: Demand with the system in kW.
        clipping_loss_kwh: Annualized inverter clipping loss in kWh.
        annualization_factor: Multiplier from profile totals to one year.
    """

    pv_size_kw: float
    batt_energy_kwh: float
    batt_power_kw: float
    hour: np.ndarray
    month: np.ndarray
    consumption: np.ndarray
    production: np.ndarray
    self_consumed: np.ndarray
    exported: np.ndarray
    grid_import: np.ndarray
    grid_charging: np.ndarray
    battery_soc: np.ndarray
    peak_before: np.ndarray
    peak_after: np.ndarray
    clipping_loss_kwh: float
    annualization_factor: float

    # ------------------------------------------------------------------
    # Annual aggregates
    # ------------------------------------------------------------------

    def _annual(self, series: np.ndarray) -> float:
        return float(series.sum()) * self.annualization_factor

    @property
    def annual_consumption_kwh(self) -> float:
        return self._annual(self.consumption)

    @property
    def total_production_kwh(self) -> float:
        return self._annual(self.production)

    @property
    def self_consumption_kwh(self) -> float:
        return self._annual(self.self_consumed)

    @property
    def total_exported_kwh(self) -> float:
        return self._annual(self.exported)

    @property
    def grid_charging_kwh(self) -> float:
        return self._annual(self.grid_charging)

    @property
    def peak_demand_kw(self) -> float:
        """Highest demand before the system over the profile in kW."""
        return float(self.peak_before.max())

    @property
    def self_sufficiency_percent(self) -> float:
        """Share of the load served on site, net of grid-charged energy."""
        consumption = float(self.consumption.sum())
        if consumption <= 0.0:
            return 0.0
        on_site = float(self.self_consumed.sum() - self.grid_charging.sum())
        return max(0.0, on_site) / consumption * 100.0

    @property
    def annual_demand_reduction_kw(self) -> float:
        """Sum of monthly billable demand reductions, scaled to twelve months.

        Multiplied by the demand rate ($/kW-month) this gives the annual
        demand-charge saving.
        """
        peaks = self.monthly_peaks()
        total = sum(p.reduction_kw for p in peaks)
        return total * MONTHS_PER_YEAR / len(peaks)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def monthly_peaks(self) -> list[MonthlyPeak]:
        """Billing-period peaks for every month present in the profile."""
        result = []
        for m in np.unique(self.month):
            mask = self.month == m
            result.append(
                MonthlyPeak(
                    month=int(m),
                    peak_before_kw=float(self.peak_before[mask].max()),
                    peak_after_kw=float(self.peak_after[mask].max()),
                )
            )
        return result

    def hourly_profile(self) -> list[HourlyProfileEntry]:
        """Per-row records of the simulation."""
        return [
            HourlyProfileEntry(
                hour=int(h),
                month=int(m),
                consumption=float(c),
                production=float(p),
                peak_before=float(b),
                peak_after=float(a),
            )
            for h, m, c, p, b, a in zip(
                self.hour,
                self.month,
                self.consumption,
                self.production,
                self.peak_before,
                self.peak_after,
            )
        ]

    def hourly_summary(self) -> list[HourOfDayAverage]:
        """Average day: mean of every series per hour of day."""
        result = []
        for h in range(HOURS_PER_DAY):
            mask = self.hour == h
            if not mask.any():
                continue
            result.append(
                HourOfDayAverage(
                    hour=h,
                    consumption=float(self.consumption[mask].mean()),
                    production=float(self.production[mask].mean()),
                    peak_before=float(self.peak_before[mask].mean()),
                    peak_after=float(self.peak_after[mask].mean()),
                )
            )
        return result

    def peak_week(self) -> list[HourlyProfileEntry]:
        """Rows within ±40 h of the highest demand before the system."""
        idx = int(np.argmax(self.peak_before))
        start = max(0, idx - PEAK_WEEK_HALF_WINDOW_HOURS)
        stop = min(len(self.peak_before), idx + PEAK_WEEK_HALF_WINDOW_HOURS)
        return self.hourly_profile()[start:stop]


# ---------------------------------------------------------------------------
# Dispatch strategies
# ---------------------------------------------------------------------------


def _dispatch_self_consumption(
    battery: BatteryState,
    surplus: np.ndarray,
    deficit: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Charge from every surplus, discharge into every deficit.

    Returns:
        Tuple of (charged_from_surplus, delivered, soc) arrays in kWh.
    """
    n = len(surplus)
    charged = np.zeros(n)
    delivered = np.zeros(n)
    soc = np.zeros(n)
    for t in range(n):
        if surplus[t] > 0.0:
            charged[t] = battery.charge(float(surplus[t]))
        elif deficit[t] > 0.0:
            delivered[t] = battery.discharge(float(deficit[t]))
        soc[t] = battery.current_soc_kwh
    return charged, delivered, soc


def _dispatch_peak_shaving(
    battery: BatteryState,
    surplus: np.ndarray,
    deficit: np.ndarray,
    demand_after_solar: np.ndarray,
    hour: np.ndarray,
    setpoint_kw: float,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Hold demand at or below *setpoint_kw*.

    The battery discharges only the part of the demand above the setpoint.
    It charges from solar surplus at any time, and from the grid from
    ``GRID_CHARGING_START_HOUR`` until midnight as long as the extra draw
    keeps demand at or below the setpoint.

    Returns:
        Tuple of (charged_from_surplus, delivered, grid_charged, soc) arrays.
    """
    n = len(surplus)
    charged = np.zeros(n)
    delivered = np.zeros(n)
    grid_charged = np.zeros(n)
    soc = np.zeros(n)
    for t in range(n):
        if surplus[t] > 0.0:
            charged[t] = battery.charge(float(surplus[t]))

        excess = demand_after_solar[t] - setpoint_kw
        if excess > 0.0 and deficit[t] > 0.0:
            delivered[t] = battery.discharge(float(min(deficit[t], excess)))
        elif hour[t] >= GRID_CHARGING_START_HOUR:
            room = setpoint_kw - demand_after_solar[t]
            if room > 0.0:
                grid_charged[t] = battery.charge(
                    float(min(room, battery.power_kw - charged[t]))
                )
        soc[t] = battery.current_soc_kwh
    return charged, delivered, grid_charged, soc


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


def _check_size(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0.0:
        raise InvalidAssumptionsError(f"'{name}' must be a finite value >= 0, got {value}")
    return value


def simulate(
    profile: LoadProfile | Sequence[float] | np.ndarray,
    pv_size_kw: float,
    batt_energy_kwh: float,
    batt_power_kw: float,
    assumptions: AnalysisAssumptions,
    year: int = 1,
) -> SimulationResult:
    """Simulate one year of hourly operation for a solar + battery sizing.

    Parameters
    ----------
    profile:
        The load profile. A bare sequence of hourly kWh values is wrapped with
        :meth:`LoadProfile.from_hourly` (calendar starting 1 January).
    pv_size_kw:
        PV DC nameplate in kW.
    batt_energy_kwh:
        Battery capacity in kWh.
    batt_power_kw:
        Battery charge/discharge power in kW.
    assumptions:
        Analysis assumptions (production model, RTE, dispatch strategy).
    year:
        1-indexed project year for PV degradation.

    Returns
    -------
    SimulationResult
        Hourly series and annual aggregates.

    Raises
    ------
    InvalidProfileError
        When the profile holds negative or non-finite values.
    InvalidAssumptionsError
        When any size is negative or non-finite.
    """
    if not isinstance(profile, LoadProfile):
        profile = LoadProfile.from_hourly(profile)

    pv_size_kw = _check_size("pv_size_kw", pv_size_kw)
    batt_energy_kwh = _check_size("batt_energy_kwh", batt_energy_kwh)
    batt_power_kw = _check_size("batt_power_kw", batt_power_kw)

    load = profile.consumption_kwh
    peak_before = profile.demand_kw
    n = profile.n_hours

    pv = simulate_production(pv_size_kw, profile.hour, profile.month, assumptions, year)
    production = pv.ac_kwh

    direct = np.minimum(load, production)
    surplus = production - direct
    deficit = load - direct

    grid_charged = np.zeros(n)
    if batt_energy_kwh > 0.0 and batt_power_kw > 0.0:
        battery = BatteryState(
            capacity_kwh=batt_energy_kwh,
            power_kw=batt_power_kw,
            round_trip_efficiency=assumptions.battery_round_trip_efficiency,
        )
        if assumptions.dispatch_strategy == DISPATCH_PEAK_SHAVING:
            setpoint = PEAK_SHAVING_SETPOINT_FRACTION * float(peak_before.max())
            charged, delivered, grid_charged, soc = _dispatch_peak_shaving(
                battery, surplus, deficit, peak_before - direct, profile.hour, setpoint
            )
        else:
            charged, delivered, soc = _dispatch_self_consumption(battery, surplus, deficit)
        logger.debug(
            "Battery %.0f kWh / %.0f kW: throughput %.0f kWh, final SoC %.1f kWh.",
            batt_energy_kwh,
            batt_power_kw,
            battery.cumulative_throughput_kwh,
            battery.current_soc_kwh,
        )
    else:
        charged = np.zeros(n)
        delivered = np.zeros(n)
        soc = np.zeros(n)

    exported = surplus - charged
    grid_import = deficit - delivered + grid_charged
    self_consumed = direct + delivered
    peak_after = np.maximum(0.0, peak_before - (load - grid_import))

    result = SimulationResult(
        pv_size_kw=pv_size_kw,
        batt_energy_kwh=batt_energy_kwh,
        batt_power_kw=batt_power_kw,
        hour=profile.hour,
        month=profile.month,
        consumption=load,
        production=production,
        self_consumed=self_consumed,
        exported=exported,
        grid_import=grid_import,
        grid_charging=grid_charged,
        battery_soc=soc,
        peak_before=peak_before,
        peak_after=peak_after,
        clipping_loss_kwh=pv.clipping_loss_kwh * profile.annualization_factor,
        annualization_factor=profile.annualization_factor,
    )
    logger.debug(
        "Simulated PV %.1f kW, battery %.1f kWh / %.1f kW: production %.0f kWh, "
        "self-consumption %.0f kWh, export %.0f kWh.",
        pv_size_kw,
        batt_energy_kwh,
        batt_power_kw,
        result.total_production_kwh,
        result.self_consumption_kwh,
        result.total_exported_kwh,
    )
    return result
