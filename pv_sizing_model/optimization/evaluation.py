"""Full evaluation of one sizing: simulate → breakdown → cashflow → metrics.

Also provides the reference sizing the sweep is anchored on: the PV size
that covers the annual consumption with some oversizing (capped at the roof)
and a battery sized on the peak demand.

Bill savings of year 1:

    energy_savings = (self_consumption − grid_charging) × energy_rate
    demand_savings = Σ_months max(0, peak_before − peak_after) × demand_rate
    surplus_revenue = exported × surplus_compensation_rate

Surplus revenue is paid from ``surplus_compensation_start_year`` on and is
kept apart from the bill savings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pv_sizing_model.bess.replacement import replacement_from_assumptions
from pv_sizing_model.config.assumptions import AnalysisAssumptions
from pv_sizing_model.config.defaults import (
    BATTERY_ENERGY_TO_POWER_HOURS,
    BIFACIAL_SIZING_BOOST,
    FRONTIER_HORIZON_YEARS,
    GRID_EMISSION_FACTOR_KG_PER_KWH,
    KG_PER_TONNE,
    METRIC_HORIZONS,
    ORIENTATION_FACTOR_MIN,
    REFERENCE_BATTERY_POWER_FRACTION,
    REFERENCE_PV_OVERSIZE_FACTOR,
)
from pv_sizing_model.dispatch.engine import SimulationResult, simulate
from pv_sizing_model.finance.cashflow import CashflowEntry, build_cashflows
from pv_sizing_model.finance.costs import (
    DEFAULT_INCENTIVES,
    FinancialBreakdown,
    IncentiveRules,
    compute_breakdown,
)
from pv_sizing_model.finance.metrics import HorizonMetrics, compute_horizon_metrics
from pv_sizing_model.load.profile import LoadProfile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Savings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Savings:
    """Year-1 savings and environmental benefit of one sizing.

    Attributes:
        energy_savings: Avoided energy charges in dollars.
        demand_savings: Avoided demand charges in dollars.
        surplus_revenue: Compensation for exported energy in dollars.
        co2_avoided_tonnes: Avoided grid emissions in tonnes CO2 per year.
    """

    energy_savings: float
    demand_savings: float
    surplus_revenue: float
    co2_avoided_tonnes: float

    @property
    def annual_savings(self) -> float:
        """Bill savings (energy + demand) in dollars."""
        return self.energy_savings + self.demand_savings


def compute_savings(simulation: SimulationResult, assumptions: AnalysisAssumptions) -> Savings:
    """Price the simulated energy balance with the tariff."""
    solar_served_kwh = max(0.0, simulation.self_consumption_kwh - simulation.grid_charging_kwh)
    return Savings(
        energy_savings=solar_served_kwh * assumptions.tariff_energy,
        demand_savings=simulation.annual_demand_reduction_kw * assumptions.tariff_power,
        surplus_revenue=simulation.total_exported_kwh * assumptions.surplus_compensation_rate,
        co2_avoided_tonnes=solar_served_kwh * GRID_EMISSION_FACTOR_KG_PER_KWH / KG_PER_TONNE,
    )


# ---------------------------------------------------------------------------
# Reference sizing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReferenceSizing:
    """Anchor sizing of the sweep and fallback recommendation."""

    pv_size_kw: float
    batt_energy_kwh: float
    batt_power_kw: float


def reference_sizing(
    profile: LoadProfile,
    roof_constraint_kw: float,
    assumptions: AnalysisAssumptions,
) -> ReferenceSizing:
    """Default sizing derived from consumption, yield and peak demand.

    ``pv = min(annual_kwh / effective_yield × 1.2, roof)`` where the
    effective yield is the specific yield scaled by the orientation factor
    (clamped to [0.6, 1]) and a flat bifacial gain. The battery delivers 30 %
    of the peak demand for two hours.
    """
    orientation = min(max(assumptions.orientation_factor, ORIENTATION_FACTOR_MIN), 1.0)
    effective_yield = assumptions.solar_yield_kwh_per_kwp * orientation
    if assumptions.bifacial_enabled:
        effective_yield *= BIFACIAL_SIZING_BOOST

    if effective_yield > 0.0:
        pv = profile.annual_consumption_kwh / effective_yield * REFERENCE_PV_OVERSIZE_FACTOR
    else:
        pv = 0.0
    pv = min(pv, roof_constraint_kw)

    power = REFERENCE_BATTERY_POWER_FRACTION * profile.peak_demand_kw
    energy = power * BATTERY_ENERGY_TO_POWER_HOURS

    logger.debug(
        "Reference sizing: PV %.1f kW (roof %.1f kW), battery %.1f kWh / %.1f kW.",
        pv,
        roof_constraint_kw,
        energy,
        power,
    )
    return ReferenceSizing(pv_size_kw=pv, batt_energy_kwh=energy, batt_power_kw=power)


# ---------------------------------------------------------------------------
# Scenario evaluation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class ScenarioEvaluation:
    """Everything computed for one sizing.

    ``cashflows`` covers the longest metric horizon (at least 30 years);
    ``metrics`` maps each horizon to its :class:`HorizonMetrics`.
    """

    pv_size_kw: float
    batt_energy_kwh: float
    batt_power_kw: float
    simulation: SimulationResult
    breakdown: FinancialBreakdown
    savings: Savings
    om_annual_year1: float
    cashflows: list[CashflowEntry]
    metrics: dict[int, HorizonMetrics]

    @property
    def frontier_metrics(self) -> HorizonMetrics:
        """Metrics of the horizon used to rank sweep points."""
        return self.metrics[FRONTIER_HORIZON_YEARS]

    @property
    def npv25(self) -> float:
        return self.frontier_metrics.npv

    @property
    def irr25(self) -> float | None:
        return self.frontier_metrics.irr

    @property
    def simple_payback_years(self) -> float | None:
        return self.frontier_metrics.simple_payback_years


def evaluate_scenario(
    profile: LoadProfile,
    pv_size_kw: float,
    batt_energy_kwh: float,
    batt_power_kw: float,
    assumptions: AnalysisAssumptions,
    incentives: IncentiveRules = DEFAULT_INCENTIVES,
) -> ScenarioEvaluation:
    """Run the complete pipeline for one sizing.

    Parameters
    ----------
    profile:
        Validated load profile.
    pv_size_kw, batt_energy_kwh, batt_power_kw:
        The sizing to evaluate.
    assumptions:
        Analysis assumptions.
    incentives:
        Rebate, ITC and CCA rate tables.

    Returns
    -------
    ScenarioEvaluation
        Simulation, breakdown, savings, cashflows and horizon metrics.

    Raises
    ------
    InvalidAssumptionsError
        When a size is negative or non-finite.
    """
    simulation = simulate(profile, pv_size_kw, batt_energy_kwh, batt_power_kw, assumptions)
    breakdown = compute_breakdown(
        pv_size_kw, batt_energy_kwh, batt_power_kw, assumptions, incentives
    )
    savings = compute_savings(simulation, assumptions)

    om_annual_year1 = (
        assumptions.om_solar_percent * breakdown.capex_solar
        + assumptions.om_battery_percent * breakdown.capex_battery
    )
    horizon = max(max(METRIC_HORIZONS), assumptions.analysis_years)
    cashflows = build_cashflows(
        annual_savings_year1=savings.annual_savings,
        capex_net=breakdown.capex_net,
        om_annual_year1=om_annual_year1,
        om_escalation=assumptions.om_escalation,
        battery_replacement=replacement_from_assumptions(assumptions),
        inflation_rate=assumptions.inflation_rate,
        horizon_years=horizon,
        battery_capex=breakdown.capex_battery,
        degradation_rate=assumptions.degradation_rate,
        incentives=breakdown.incentive_schedule(),
        surplus_revenue_year1=savings.surplus_revenue,
        surplus_start_year=assumptions.surplus_compensation_start_year,
    )
    metrics = compute_horizon_metrics(
        cashflows,
        capex_net=breakdown.capex_net,
        annual_energy_kwh=simulation.total_production_kwh,
        discount_rate=assumptions.discount_rate,
        degradation_rate=assumptions.degradation_rate,
    )

    evaluation = ScenarioEvaluation(
        pv_size_kw=float(pv_size_kw),
        batt_energy_kwh=float(batt_energy_kwh),
        batt_power_kw=float(batt_power_kw),
        simulation=simulation,
        breakdown=breakdown,
        savings=savings,
        om_annual_year1=om_annual_year1,
        cashflows=cashflows,
        metrics=metrics,
    )
    logger.debug(
        "Evaluated PV %.1f kW, battery %.1f kWh: savings %.0f $/y, net capex %.0f, NPV25 %.0f.",
        pv_size_kw,
        batt_energy_kwh,
        savings.annual_savings,
        breakdown.capex_net,
        evaluation.npv25,
    )
    return evaluation
