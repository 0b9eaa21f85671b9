"""Run orchestration: one sizing pass from load profile to SimulationRun.

:func:`run_analysis` validates every run-level input before any sweep work
starts, then either

- sweeps the sizing space and recommends the best-NPV configuration
  (falling back to the reference sizing when nothing is profitable), or
- evaluates a forced sizing as a *variant* run, without a sweep.

The recommended sizing is re-evaluated in full and compared across the
financing alternatives. The returned :class:`SimulationRun` is immutable; a
new analysis always produces a new record.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import numpy as np

from pv_sizing_model.config.assumptions import (
    AnalysisAssumptions,
    check_discount_rate,
    merge_assumptions,
)
from pv_sizing_model.config.defaults import BATTERY_ENERGY_TO_POWER_HOURS, METRIC_HORIZONS
from pv_sizing_model.dispatch.engine import HourlyProfileEntry, HourOfDayAverage, MonthlyPeak
from pv_sizing_model.errors import InvalidAssumptionsError
from pv_sizing_model.finance.cashflow import CashflowEntry
from pv_sizing_model.finance.costs import DEFAULT_INCENTIVES, FinancialBreakdown, IncentiveRules
from pv_sizing_model.finance.financing import (
    FinancingComparison,
    FinancingOptions,
    FinancingScenario,
    compare_financing,
)
from pv_sizing_model.finance.metrics import HorizonMetrics, lcoe, npv
from pv_sizing_model.load.profile import LoadProfile
from pv_sizing_model.optimization.evaluation import (
    ReferenceSizing,
    Savings,
    evaluate_scenario,
    reference_sizing,
)
from pv_sizing_model.optimization.sweep import SweepResult, sweep
from pv_sizing_model.pv.roof import roof_capacity_kw

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForcedSizing:
    """Explicit sizing for a variant run.

    Unset dimensions fall back to the reference sizing. A forced battery
    energy without a forced power gets a two-hour power rating.
    """

    pv_size_kw: float | None = None
    batt_energy_kwh: float | None = None
    batt_power_kw: float | None = None

    def resolve(self, reference: ReferenceSizing) -> tuple[float, float, float]:
        """Return ``(pv_kw, energy_kwh, power_kw)`` with fallbacks applied."""
        pv = self.pv_size_kw if self.pv_size_kw is not None else reference.pv_size_kw
        if self.batt_energy_kwh is not None:
            energy = self.batt_energy_kwh
            default_power = energy / BATTERY_ENERGY_TO_POWER_HOURS
        else:
            energy = reference.batt_energy_kwh
            default_power = reference.batt_power_kw
        power = self.batt_power_kw if self.batt_power_kw is not None else default_power
        return pv, energy, power


@dataclass(frozen=True, eq=False)
class SimulationRun:
    """Immutable result of one analysis run.

    Attributes:
        assumptions: Assumptions the run used.
        pv_size_kw: Recommended (or forced) PV size in kW.
        batt_energy_kwh: Recommended (or forced) battery capacity in kWh.
        batt_power_kw: Recommended (or forced) battery power in kW.
        forced: True for a variant run with forced sizes.
        roof_constraint_kw: PV ceiling of the run.
        cashflows: Cashflow table over ``assumptions.analysis_years``.
        breakdown: Gross-to-net CAPEX walk of the recommended sizing.
        savings: Year-1 savings of the recommended sizing.
        sensitivity: Sweep result, or None for a variant run.
        horizon_metrics: NPV, IRR, payback and LCOE per horizon.
        lcoe: LCOE over the analysis horizon in $/kWh, or None.
        co2_avoided_tonnes_per_year: Avoided emissions in t CO2.
        self_sufficiency_percent: Share of load served on site in %.
        annual_production_kwh: Year-1 AC production in kWh.
        interpolated_months: Months of the load profile filled from neighbours.
        hourly_summary: Average day of the recommended sizing.
        monthly_peaks: Demand before/after per billing month.
        peak_week: Hourly rows around the annual demand peak.
        financing: Cash, loan, lease and PPA comparison.
    """

    assumptions: AnalysisAssumptions
    pv_size_kw: float
    batt_energy_kwh: float
    batt_power_kw: float
    forced: bool
    roof_constraint_kw: float
    cashflows: tuple[CashflowEntry, ...]
    breakdown: FinancialBreakdown
    savings: Savings
    sensitivity: SweepResult | None
    horizon_metrics: dict[int, HorizonMetrics]
    lcoe: float | None
    co2_avoided_tonnes_per_year: float
    self_sufficiency_percent: float
    annual_production_kwh: float
    interpolated_months: tuple[int, ...]
    hourly_summary: tuple[HourOfDayAverage, ...]
    monthly_peaks: tuple[MonthlyPeak, ...]
    peak_week: tuple[HourlyProfileEntry, ...]
    financing: FinancingComparison

    def npv(self, horizon_years: int) -> float:
        """NPV of a metric horizon (10, 20, 25 or 30 years)."""
        return self.horizon_metrics[horizon_years].npv

    def irr(self, horizon_years: int) -> float | None:
        """IRR of a metric horizon, or None when undefined."""
        return self.horizon_metrics[horizon_years].irr


_NO_SYSTEM = ReferenceSizing(pv_size_kw=0.0, batt_energy_kwh=0.0, batt_power_kw=0.0)


def _check_sizing(kind: str, pv: float, energy: float, power: float) -> None:
    for name, value in (("pv_size_kw", pv), ("batt_energy_kwh", energy), ("batt_power_kw", power)):
        if not (math.isfinite(value) and value >= 0.0):
            raise InvalidAssumptionsError(f"{kind} '{name}' must be >= 0, got {value}")


def _resolve_assumptions(
    assumptions: AnalysisAssumptions | Mapping[str, Any] | None,
) -> AnalysisAssumptions:
    if assumptions is None:
        return AnalysisAssumptions()
    if isinstance(assumptions, AnalysisAssumptions):
        return assumptions
    return merge_assumptions(assumptions)


def run_analysis(
    profile: LoadProfile | Sequence[float] | np.ndarray,
    assumptions: AnalysisAssumptions | Mapping[str, Any] | None = None,
    *,
    roof_constraint_kw: float | None = None,
    forced: ForcedSizing | None = None,
    incentives: IncentiveRules = DEFAULT_INCENTIVES,
    financing_options: FinancingOptions | None = None,
    sweep_steps: int | None = None,
    max_workers: int | None = None,
    current: ForcedSizing | None = None,
) -> SimulationRun:
    """Size a solar + battery system for a load profile.

    Parameters
    ----------
    profile:
        Load profile, or bare hourly kWh values starting on 1 January.
    assumptions:
        Complete assumptions, a partial override merged onto the defaults,
        or None for the defaults.
    roof_constraint_kw:
        PV ceiling in kW. Derived from the roof area and utilization ratio
        when omitted.
    forced:
        Forced sizing for a variant run; skips the sweep.
    incentives:
        Rebate, ITC and CCA rate tables.
    financing_options:
        Terms of the financing comparison.
    sweep_steps:
        Target number of points per sub-sweep (default from config).
    max_workers:
        Worker processes of the sweep; ``1`` runs inline.
    current:
        Installed or proposed sizing added to the sweep frontier so it can
        be compared with the recommendation. Unset dimensions mean no PV or
        no battery. Ignored by a variant run.

    Returns
    -------
    SimulationRun
        The complete, immutable run record.

    Raises
    ------
    InvalidProfileError
        When the load profile is malformed.
    InvalidAssumptionsError
        When assumptions, roof ceiling or forced sizes are invalid.
    """
    if not isinstance(profile, LoadProfile):
        profile = LoadProfile.from_hourly(profile)
    assumptions = _resolve_assumptions(assumptions)
    check_discount_rate(assumptions.discount_rate, incentives.cca_rate)

    if roof_constraint_kw is None:
        roof_constraint_kw = roof_capacity_kw(
            assumptions.roof_area_sq_ft, assumptions.roof_utilization_ratio
        )
    if not (math.isfinite(roof_constraint_kw) and roof_constraint_kw >= 0.0):
        raise InvalidAssumptionsError(
            f"'roof_constraint_kw' must be a finite value >= 0, got {roof_constraint_kw}"
        )

    reference = reference_sizing(profile, roof_constraint_kw, assumptions)

    sensitivity: SweepResult | None = None
    if forced is not None:
        pv, energy, power = forced.resolve(reference)
        _check_sizing("Forced", pv, energy, power)
        logger.info(
            "Variant run with forced sizing: PV %.1f kW, battery %.1f kWh / %.1f kW.",
            pv,
            energy,
            power,
        )
    else:
        sweep_kwargs: dict[str, Any] = {"reference": reference, "incentives": incentives}
        if sweep_steps is not None:
            sweep_kwargs["steps"] = sweep_steps
        if current is not None:
            current_sizing = ReferenceSizing(*current.resolve(_NO_SYSTEM))
            _check_sizing(
                "Current",
                current_sizing.pv_size_kw,
                current_sizing.batt_energy_kwh,
                current_sizing.batt_power_kw,
            )
            sweep_kwargs["current"] = current_sizing
        sensitivity = sweep(
            profile, roof_constraint_kw, assumptions, max_workers=max_workers, **sweep_kwargs
        )
        best = sensitivity.optimal_scenarios.best_npv
        if best is not None:
            pv, energy, power = best.pv_size_kw, best.batt_energy_kwh, best.batt_power_kw
        else:
            pv, energy, power = (
                reference.pv_size_kw,
                reference.batt_energy_kwh,
                reference.batt_power_kw,
            )
            logger.warning(
                "No profitable configuration; reporting the reference sizing "
                "(PV %.1f kW, battery %.1f kWh).",
                pv,
                energy,
            )

    evaluation = evaluate_scenario(profile, pv, energy, power, assumptions, incentives)
    simulation = evaluation.simulation
    horizon = assumptions.analysis_years
    cashflows = tuple(evaluation.cashflows[: horizon + 1])

    financing = compare_financing(
        FinancingScenario.from_breakdown(evaluation.breakdown, evaluation.savings.annual_savings),
        financing_options,
    )

    run = SimulationRun(
        assumptions=assumptions,
        pv_size_kw=pv,
        batt_energy_kwh=energy,
        batt_power_kw=power,
        forced=forced is not None,
        roof_constraint_kw=roof_constraint_kw,
        cashflows=cashflows,
        breakdown=evaluation.breakdown,
        savings=evaluation.savings,
        sensitivity=sensitivity,
        horizon_metrics={h: evaluation.metrics[h] for h in METRIC_HORIZONS},
        lcoe=lcoe(
            evaluation.breakdown.capex_net,
            list(cashflows),
            simulation.total_production_kwh,
            assumptions.discount_rate,
            assumptions.degradation_rate,
        ),
        co2_avoided_tonnes_per_year=evaluation.savings.co2_avoided_tonnes,
        self_sufficiency_percent=simulation.self_sufficiency_percent,
        annual_production_kwh=simulation.total_production_kwh,
        interpolated_months=profile.interpolated_months,
        hourly_summary=tuple(simulation.hourly_summary()),
        monthly_peaks=tuple(simulation.monthly_peaks()),
        peak_week=tuple(simulation.peak_week()),
        financing=financing,
    )
    logger.info(
        "Analysis complete: PV %.1f kW, battery %.1f kWh / %.1f kW, NPV%d %.0f $, "
        "self-sufficiency %.1f %%.",
        pv,
        energy,
        power,
        horizon,
        npv(list(cashflows), assumptions.discount_rate),
        run.self_sufficiency_percent,
    )
    if profile.interpolated_months:
        logger.warning(
            "Results rely on interpolated load data for month(s) %s.",
            list(profile.interpolated_months),
        )
    return run
