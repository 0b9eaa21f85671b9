"""Sizing sweep over solar and battery sizes to build the NPV frontier.

Five sub-sweeps enumerate the candidates:

1. **Solar only** (``solarSweep``): PV from one step up to the roof ceiling,
   no battery.
2. **Battery only** (``batterySweep``): battery energy from one step up to a
   bounded maximum, no PV.
3. **PV at the reference battery** (``pvSweep``, hybrid).
4. **Battery at the reference PV** (``battSweep``, hybrid).
5. **PV × battery grid** (``hybridGrid``, hybrid): a coarse two-dimensional
   grid. Sizings already produced by the other sub-sweeps are skipped, and
   only grid points with a positive NPV enter the frontier.

Step sizes:

    solar_step   = max(5, round(roof / steps / 5) × 5)                kW
    battery_max  = max(2 × reference energy, 2 × peak demand)
    battery_step = max(10, round(battery_max / steps / 10) × 10)      kWh

    grid_pv_step   = max(10, round(roof / 5 / 10) × 10)               kW
    grid_batt_max  = max(2 × peak demand, 2 × current energy, 200)    kWh
    grid_batt_step = max(20, round(grid_batt_max / 5 / 20) × 20)      kWh

Battery power is half the energy (two-hour duration). PV sizes above the
roof ceiling are never generated. An optional current configuration (the
installed or proposed system) is evaluated first and competes with the
sweep points under the ``current`` source.

All candidates are evaluated in parallel. A candidate that fails is logged
and left out of the frontier; it never aborts the sweep. Once every candidate
is in, the single global NPV optimum is flagged and the named optimal
scenarios are selected.

Public API
----------
SweepResult       – Frontier, convenience sweeps and optimal scenarios.
sweep             – Main entry point.
solar_step_kw     – PV increment of the 1-D sweeps.
battery_range_kwh – Battery increment and ceiling of the 1-D sweeps.
hybrid_grid_axes  – PV and battery sizes of the hybrid grid.
"""

from __future__ import annotations

import concurrent.futures
import dataclasses
import logging
from dataclasses import dataclass

import numpy as np

from pv_sizing_model.config.assumptions import AnalysisAssumptions
from pv_sizing_model.config.defaults import (
    BATTERY_ENERGY_TO_POWER_HOURS,
    BATTERY_STEP_MIN_KWH,
    BATTERY_SWEEP_MAX_MULTIPLE,
    HYBRID_GRID_BATT_MAX_FLOOR_KWH,
    HYBRID_GRID_BATT_STEP_MIN_KWH,
    HYBRID_GRID_PV_STEP_MIN_KW,
    HYBRID_GRID_STEPS,
    SOLAR_STEP_MIN_KW,
    SWEEP_STEPS,
)
from pv_sizing_model.errors import InvalidAssumptionsError, SizingEngineError
from pv_sizing_model.finance.costs import DEFAULT_INCENTIVES, IncentiveRules
from pv_sizing_model.load.profile import LoadProfile
from pv_sizing_model.optimization.evaluation import (
    ReferenceSizing,
    evaluate_scenario,
    reference_sizing,
)
from pv_sizing_model.optimization.points import (
    SOURCE_BATT,
    SOURCE_BATTERY,
    SOURCE_CURRENT,
    SOURCE_GRID,
    SOURCE_PV,
    SOURCE_SOLAR,
    TYPE_BATTERY,
    TYPE_HYBRID,
    TYPE_SOLAR,
    BatterySweepPoint,
    FrontierPoint,
    SolarSweepPoint,
    point_label,
    sizing_type,
)
from pv_sizing_model.optimization.selector import (
    OptimalScenarios,
    global_optimum,
    select_optimal_scenarios,
)

logger = logging.getLogger(__name__)

_POINT_ERRORS = (SizingEngineError, ValueError, ArithmeticError)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SweepResult:
    """Complete result of one sizing sweep.

    Attributes
    ----------
    frontier:
        Every successfully evaluated point, in evaluation order.
    solar_sweep:
        The solar-only subset as (size, NPV) points.
    battery_sweep:
        The battery-only subset as (size, NPV) points.
    optimal_scenarios:
        Named winners, computed once from *frontier*.
    reference:
        Anchor sizing of the hybrid sub-sweeps.
    roof_constraint_kw:
        PV ceiling of the sweep.
    failed_points:
        Number of candidates excluded because their evaluation failed.
    """

    frontier: tuple[FrontierPoint, ...]
    solar_sweep: tuple[SolarSweepPoint, ...]
    battery_sweep: tuple[BatterySweepPoint, ...]
    optimal_scenarios: OptimalScenarios
    reference: ReferenceSizing
    roof_constraint_kw: float
    failed_points: int = 0

    @property
    def optimum(self) -> FrontierPoint | None:
        """The frontier point flagged ``is_optimal``, if any."""
        for point in self.frontier:
            if point.is_optimal:
                return point
        return None

    @property
    def has_profitable_configuration(self) -> bool:
        """True when at least one sizing has a positive NPV."""
        return self.optimal_scenarios.best_npv is not None


# ---------------------------------------------------------------------------
# Candidate generation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _SweepPointArgs:
    """All parameters needed to evaluate one candidate (pickle-safe)."""

    order: int
    type: str
    sweep_source: str
    pv_size_kw: float
    batt_energy_kwh: float
    batt_power_kw: float
    profile: LoadProfile
    assumptions: AnalysisAssumptions
    incentives: IncentiveRules


def solar_step_kw(roof_constraint_kw: float, steps: int = SWEEP_STEPS) -> float:
    """PV increment of the sweep in kW."""
    return max(SOLAR_STEP_MIN_KW, round(roof_constraint_kw / steps / 5.0) * 5.0)


def battery_range_kwh(
    reference_energy_kwh: float,
    peak_demand_kw: float,
    steps: int = SWEEP_STEPS,
) -> tuple[float, float]:
    """Return ``(step, maximum)`` of the battery-energy sweep in kWh."""
    maximum = max(
        BATTERY_SWEEP_MAX_MULTIPLE * reference_energy_kwh,
        BATTERY_SWEEP_MAX_MULTIPLE * peak_demand_kw,
    )
    step = max(BATTERY_STEP_MIN_KWH, round(maximum / steps / 10.0) * 10.0)
    return step, maximum


def hybrid_grid_axes(
    roof_constraint_kw: float,
    peak_demand_kw: float,
    current_energy_kwh: float = 0.0,
) -> tuple[list[float], list[float]]:
    """Return the PV sizes (kW) and battery energies (kWh) of the hybrid grid.

    Both axes start at one step; the PV axis stops at the roof ceiling.
    """
    pv_step = max(
        HYBRID_GRID_PV_STEP_MIN_KW,
        round(roof_constraint_kw / HYBRID_GRID_STEPS / 10.0) * 10.0,
    )
    batt_max = max(
        BATTERY_SWEEP_MAX_MULTIPLE * peak_demand_kw,
        BATTERY_SWEEP_MAX_MULTIPLE * current_energy_kwh,
        HYBRID_GRID_BATT_MAX_FLOOR_KWH,
    )
    batt_step = max(
        HYBRID_GRID_BATT_STEP_MIN_KWH,
        round(batt_max / HYBRID_GRID_STEPS / 20.0) * 20.0,
    )
    return _grid_sizes(pv_step, roof_constraint_kw), _grid_sizes(batt_step, batt_max)


def _grid_sizes(step: float, maximum: float) -> list[float]:
    """Multiples of *step* up to *maximum*; empty when one step does not fit."""
    count = int(np.floor(maximum / step + 1e-9)) if maximum > 0.0 else 0
    return [step * k for k in range(1, count + 1)]


def _sizes(step: float, maximum: float) -> list[float]:
    """Multiples of *step* up to and including *maximum*."""
    if maximum <= 0.0:
        return []
    count = int(np.floor(maximum / step + 1e-9))
    sizes = [step * k for k in range(1, count + 1)]
    return sizes if sizes else [maximum]


def _build_candidates(
    profile: LoadProfile,
    roof_constraint_kw: float,
    reference: ReferenceSizing,
    assumptions: AnalysisAssumptions,
    incentives: IncentiveRules,
    steps: int,
    hybrid_grid: bool = True,
    current: ReferenceSizing | None = None,
) -> list[_SweepPointArgs]:
    pv_sizes = _sizes(solar_step_kw(roof_constraint_kw, steps), roof_constraint_kw)
    batt_step, batt_max = battery_range_kwh(
        reference.batt_energy_kwh, profile.peak_demand_kw, steps
    )
    batt_sizes = _sizes(batt_step, batt_max)

    specs: list[tuple[str, str, float, float, float]] = []
    if current is not None:
        specs.append(
            (
                sizing_type(current.pv_size_kw, current.batt_energy_kwh),
                SOURCE_CURRENT,
                current.pv_size_kw,
                current.batt_energy_kwh,
                current.batt_power_kw,
            )
        )
    for pv in pv_sizes:
        specs.append((TYPE_SOLAR, SOURCE_SOLAR, pv, 0.0, 0.0))
    for energy in batt_sizes:
        specs.append(
            (TYPE_BATTERY, SOURCE_BATTERY, 0.0, energy, energy / BATTERY_ENERGY_TO_POWER_HOURS)
        )
    if reference.batt_energy_kwh > 0.0:
        for pv in pv_sizes:
            specs.append(
                (
                    TYPE_HYBRID,
                    SOURCE_PV,
                    pv,
                    reference.batt_energy_kwh,
                    reference.batt_power_kw,
                )
            )
    if reference.pv_size_kw > 0.0:
        for energy in batt_sizes:
            specs.append(
                (
                    TYPE_HYBRID,
                    SOURCE_BATT,
                    reference.pv_size_kw,
                    energy,
                    energy / BATTERY_ENERGY_TO_POWER_HOURS,
                )
            )
    if hybrid_grid:
        seen = {(pv, energy) for _, _, pv, energy, _ in specs}
        grid_pv, grid_batt = hybrid_grid_axes(
            roof_constraint_kw,
            profile.peak_demand_kw,
            current.batt_energy_kwh if current is not None else 0.0,
        )
        for pv in grid_pv:
            for energy in grid_batt:
                if (pv, energy) in seen:
                    continue
                seen.add((pv, energy))
                specs.append(
                    (
                        TYPE_HYBRID,
                        SOURCE_GRID,
                        pv,
                        energy,
                        energy / BATTERY_ENERGY_TO_POWER_HOURS,
                    )
                )

    return [
        _SweepPointArgs(
            order=i,
            type=point_type,
            sweep_source=source,
            pv_size_kw=pv,
            batt_energy_kwh=energy,
            batt_power_kw=power,
            profile=profile,
            assumptions=assumptions,
            incentives=incentives,
        )
        for i, (point_type, source, pv, energy, power) in enumerate(specs)
    ]


# ---------------------------------------------------------------------------
# Worker
# ---------------------------------------------------------------------------


def _evaluate_point(args: _SweepPointArgs) -> FrontierPoint:
    """Evaluate a single sweep candidate.

    This is a module-level function so it can be pickled and sent to worker
    processes. All necessary data is contained in *args*.
    """
    evaluation = evaluate_scenario(
        args.profile,
        args.pv_size_kw,
        args.batt_energy_kwh,
        args.batt_power_kw,
        args.assumptions,
        args.incentives,
    )
    return FrontierPoint(
        type=args.type,
        pv_size_kw=args.pv_size_kw,
        batt_energy_kwh=args.batt_energy_kwh,
        batt_power_kw=args.batt_power_kw,
        capex_net=evaluation.breakdown.capex_net,
        npv25=evaluation.npv25,
        irr25=evaluation.irr25,
        self_sufficiency_percent=evaluation.simulation.self_sufficiency_percent,
        simple_payback_years=evaluation.simple_payback_years,
        annual_savings=evaluation.savings.annual_savings,
        sweep_source=args.sweep_source,
        label=_label(args),
        order=args.order,
    )


def _label(args: _SweepPointArgs) -> str:
    label = point_label(args.type, args.pv_size_kw, args.batt_energy_kwh)
    return f"{label} (Current)" if args.sweep_source == SOURCE_CURRENT else label


def _log_failure(args: _SweepPointArgs, exc: Exception) -> None:
    logger.warning(
        "Skipping sweep point %s (PV %.1f kW, battery %.1f kWh): %s",
        args.sweep_source,
        args.pv_size_kw,
        args.batt_energy_kwh,
        exc,
    )


def _evaluate_all(
    worker_args: list[_SweepPointArgs],
    max_workers: int | None,
) -> tuple[list[FrontierPoint], int]:
    points: list[FrontierPoint] = []
    failed = 0
    if max_workers == 1:
        # Single-process execution (simpler for debugging / unit tests)
        for a in worker_args:
            try:
                points.append(_evaluate_point(a))
            except _POINT_ERRORS as exc:
                _log_failure(a, exc)
                failed += 1
    else:
        with concurrent.futures.ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(_evaluate_point, a): a for a in worker_args}
            for future in concurrent.futures.as_completed(futures):
                try:
                    points.append(future.result())
                except _POINT_ERRORS as exc:
                    _log_failure(futures[future], exc)
                    failed += 1

    # Completion order is arbitrary; restore evaluation order
    points.sort(key=lambda p: p.order)
    return points, failed


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def sweep(
    profile: LoadProfile,
    roof_constraint_kw: float,
    assumptions: AnalysisAssumptions,
    *,
    reference: ReferenceSizing | None = None,
    incentives: IncentiveRules = DEFAULT_INCENTIVES,
    steps: int = SWEEP_STEPS,
    max_workers: int | None = None,
    hybrid_grid: bool = True,
    current: ReferenceSizing | None = None,
) -> SweepResult:
    """Sweep solar and battery sizes and select the optimal configurations.

    Parameters
    ----------
    profile:
        Validated load profile.
    roof_constraint_kw:
        PV capacity ceiling in kW; no candidate exceeds it.
    assumptions:
        Analysis assumptions shared by every candidate.
    reference:
        Anchor sizing of the hybrid sub-sweeps. Derived with
        :func:`reference_sizing` when omitted.
    incentives:
        Rebate, ITC and CCA rate tables.
    steps:
        Target number of points per sub-sweep.
    max_workers:
        Number of worker processes. ``1`` evaluates inline, None uses
        ``os.cpu_count()``.
    hybrid_grid:
        Add the two-dimensional PV × battery grid. Only its points with a
        positive NPV are kept.
    current:
        Installed or proposed sizing placed on the frontier as the first
        point. Its PV is clamped to the roof ceiling. A sizing with neither
        PV nor battery is ignored.

    Returns
    -------
    SweepResult
        Frontier with the global optimum flagged, the solar-only and
        battery-only subsets and the named optimal scenarios.

    Raises
    ------
    InvalidAssumptionsError
        When the roof ceiling is negative or *steps* is not positive.
    """
    if not roof_constraint_kw >= 0.0:
        raise InvalidAssumptionsError(
            f"'roof_constraint_kw' must be >= 0, got {roof_constraint_kw}"
        )
    if steps < 1:
        raise InvalidAssumptionsError(f"'steps' must be >= 1, got {steps}")

    if reference is None:
        reference = reference_sizing(profile, roof_constraint_kw, assumptions)
    elif reference.pv_size_kw > roof_constraint_kw:
        reference = dataclasses.replace(reference, pv_size_kw=roof_constraint_kw)

    if current is not None:
        if current.pv_size_kw <= 0.0 and current.batt_energy_kwh <= 0.0:
            current = None
        elif current.pv_size_kw > roof_constraint_kw:
            logger.warning(
                "Current PV %.1f kW exceeds the roof ceiling; clamped to %.1f kW.",
                current.pv_size_kw,
                roof_constraint_kw,
            )
            current = dataclasses.replace(current, pv_size_kw=roof_constraint_kw)

    worker_args = _build_candidates(
        profile,
        roof_constraint_kw,
        reference,
        assumptions,
        incentives,
        steps,
        hybrid_grid=hybrid_grid,
        current=current,
    )
    logger.info(
        "Sizing sweep: %d candidates (roof %.1f kW, reference PV %.1f kW, battery %.1f kWh).",
        len(worker_args),
        roof_constraint_kw,
        reference.pv_size_kw,
        reference.batt_energy_kwh,
    )

    points, failed = _evaluate_all(worker_args, max_workers)
    if failed:
        logger.warning("%d of %d sweep candidates failed and were excluded.", failed, len(worker_args))

    kept = [p for p in points if p.sweep_source != SOURCE_GRID or p.npv25 > 0.0]
    if len(kept) < len(points):
        logger.debug("Dropped %d hybrid grid point(s) without a positive NPV.", len(points) - len(kept))
    points = kept

    optimum = global_optimum(points)
    frontier = tuple(
        dataclasses.replace(p, is_optimal=True) if p is optimum else p for p in points
    )

    solar_sweep = tuple(
        SolarSweepPoint(pv_size_kw=p.pv_size_kw, npv25=p.npv25, is_optimal=p.is_optimal)
        for p in frontier
        if p.sweep_source == SOURCE_SOLAR
    )
    battery_sweep = tuple(
        BatterySweepPoint(
            batt_energy_kwh=p.batt_energy_kwh, npv25=p.npv25, is_optimal=p.is_optimal
        )
        for p in frontier
        if p.sweep_source == SOURCE_BATTERY
    )

    scenarios = select_optimal_scenarios(frontier)
    result = SweepResult(
        frontier=frontier,
        solar_sweep=solar_sweep,
        battery_sweep=battery_sweep,
        optimal_scenarios=scenarios,
        reference=reference,
        roof_constraint_kw=roof_constraint_kw,
        failed_points=failed,
    )

    best = result.optimum
    if best is not None:
        logger.info("Sweep optimum: %s, NPV25 %.0f $.", best.label, best.npv25)
    if not result.has_profitable_configuration:
        logger.warning("Sizing sweep found no configuration with a positive NPV.")
    return result
