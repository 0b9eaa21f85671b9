"""Tests for optimization/sweep.py.

Sweeps run inline (``max_workers=1``) on the two-week summer profile with a
100 kW roof and four steps per sub-sweep:

  solar step   = max(5, round(100 / 4 / 5) × 5)        = 25 kW  → 25..100 kW
  reference    = 0.3 × 84 kW peak = 25.2 kW, 50.4 kWh
  battery max  = 2 × max(50.4, 84)                      = 168 kWh
  battery step = max(10, round(168 / 4 / 10) × 10)      = 40 kWh → 40..160 kWh

The fixture sweep leaves out the hybrid grid so the candidate count is exact.
Hybrid grid tests replace the scenario evaluation with a synthetic NPV surface
peaking at 60 kW PV and 120 kWh of storage, a sizing no 1-D sub-sweep visits:

  npv(pv, kwh) = 1000 − (pv − 60)² − (kwh − 120)²
"""

from __future__ import annotations

import pytest

from pv_sizing_model.config.assumptions import AnalysisAssumptions
from pv_sizing_model.errors import InvalidAssumptionsError
from pv_sizing_model.load.profile import LoadProfile
import pv_sizing_model.optimization.sweep as sweep_module
from pv_sizing_model.optimization.evaluation import ReferenceSizing
from pv_sizing_model.optimization.points import (
    SOURCE_BATT,
    SOURCE_CURRENT,
    SOURCE_GRID,
    SOURCE_PV,
    TYPE_BATTERY,
    TYPE_HYBRID,
    TYPE_SOLAR,
    FrontierPoint,
)
from pv_sizing_model.optimization.selector import OBJECTIVES
from pv_sizing_model.optimization.sweep import (
    SweepResult,
    battery_range_kwh,
    hybrid_grid_axes,
    solar_step_kw,
    sweep,
)

ROOF_KW = 100.0
STEPS = 4


@pytest.fixture
def result(summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions) -> SweepResult:
    return sweep(
        summer_profile,
        ROOF_KW,
        default_assumptions,
        steps=STEPS,
        max_workers=1,
        hybrid_grid=False,
    )


# ---------------------------------------------------------------------------
# Step sizes
# ---------------------------------------------------------------------------


class TestStepSizes:
    def test_solar_step(self) -> None:
        assert solar_step_kw(100.0, 4) == 25.0
        assert solar_step_kw(1000.0, 20) == 50.0

    def test_solar_step_floor(self) -> None:
        assert solar_step_kw(10.0, 20) == 5.0

    def test_battery_range(self) -> None:
        assert battery_range_kwh(50.4, 84.0, 4) == (40.0, 168.0)

    def test_battery_step_floor(self) -> None:
        step, maximum = battery_range_kwh(5.0, 10.0, 20)
        assert step == 10.0
        assert maximum == 20.0


# ---------------------------------------------------------------------------
# Frontier
# ---------------------------------------------------------------------------


class TestFrontier:
    def test_candidate_count(self, result: SweepResult) -> None:
        assert len(result.frontier) == 16
        assert result.failed_points == 0

    def test_roof_enforced(self, result: SweepResult) -> None:
        assert all(p.pv_size_kw <= ROOF_KW for p in result.frontier)

    def test_types_and_sources(self, result: SweepResult) -> None:
        types = {p.type for p in result.frontier}
        assert types == {TYPE_SOLAR, TYPE_BATTERY, TYPE_HYBRID}
        for p in result.frontier:
            if p.type == TYPE_SOLAR:
                assert p.batt_energy_kwh == 0.0
            elif p.type == TYPE_BATTERY:
                assert p.pv_size_kw == 0.0
                assert p.batt_power_kw == p.batt_energy_kwh / 2.0
            else:
                assert p.sweep_source in (SOURCE_PV, SOURCE_BATT)
        assert all(p.sweep_source != SOURCE_GRID for p in result.frontier)

    def test_hybrid_sweeps_anchor_on_reference(self, result: SweepResult) -> None:
        ref = result.reference
        assert ref.pv_size_kw == ROOF_KW
        for p in result.frontier:
            if p.sweep_source == SOURCE_PV:
                assert p.batt_energy_kwh == pytest.approx(ref.batt_energy_kwh)
            elif p.sweep_source == SOURCE_BATT:
                assert p.pv_size_kw == ref.pv_size_kw

    def test_evaluation_order_kept(self, result: SweepResult) -> None:
        orders = [p.order for p in result.frontier]
        assert orders == sorted(orders)

    def test_single_optimum_with_max_npv(self, result: SweepResult) -> None:
        flagged = [p for p in result.frontier if p.is_optimal]
        assert len(flagged) == 1
        assert flagged[0].npv25 == max(p.npv25 for p in result.frontier)
        assert result.optimum is flagged[0]

    def test_subsets(self, result: SweepResult) -> None:
        assert len(result.solar_sweep) == sum(p.type == TYPE_SOLAR for p in result.frontier)
        assert len(result.battery_sweep) == sum(p.type == TYPE_BATTERY for p in result.frontier)
        assert [s.pv_size_kw for s in result.solar_sweep] == [25.0, 50.0, 75.0, 100.0]

    def test_winners_come_from_frontier(self, result: SweepResult) -> None:
        for name in OBJECTIVES:
            winner = result.optimal_scenarios.get(name)
            if winner is not None:
                assert any(winner is p for p in result.frontier)


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------


class TestEdgeCases:
    def test_zero_roof_sweeps_battery_only(
        self, summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions
    ) -> None:
        result = sweep(summer_profile, 0.0, default_assumptions, steps=STEPS, max_workers=1)
        assert result.frontier
        assert all(p.type == TYPE_BATTERY for p in result.frontier)
        assert result.solar_sweep == ()

    def test_reference_clamped_to_roof(
        self, summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions
    ) -> None:
        reference = ReferenceSizing(pv_size_kw=500.0, batt_energy_kwh=40.0, batt_power_kw=20.0)
        result = sweep(
            summer_profile, 50.0, default_assumptions, reference=reference, steps=2, max_workers=1
        )
        assert result.reference.pv_size_kw == 50.0
        assert all(p.pv_size_kw <= 50.0 for p in result.frontier)

    def test_unprofitable_sweep_is_soft(
        self, summer_profile: LoadProfile, no_tariff_assumptions: AnalysisAssumptions
    ) -> None:
        result = sweep(summer_profile, ROOF_KW, no_tariff_assumptions, steps=STEPS, max_workers=1)
        assert not result.has_profitable_configuration
        assert result.optimal_scenarios.best_npv is None
        assert result.optimal_scenarios.best_irr is None
        assert result.optimum is not None

    def test_negative_roof_rejected(
        self, summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions
    ) -> None:
        with pytest.raises(InvalidAssumptionsError):
            sweep(summer_profile, -1.0, default_assumptions, max_workers=1)

    def test_invalid_steps_rejected(
        self, summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions
    ) -> None:
        with pytest.raises(InvalidAssumptionsError):
            sweep(summer_profile, ROOF_KW, default_assumptions, steps=0, max_workers=1)


# ---------------------------------------------------------------------------
# Hybrid grid
# ---------------------------------------------------------------------------

ANCHOR = ReferenceSizing(pv_size_kw=100.0, batt_energy_kwh=40.0, batt_power_kw=20.0)


def _synthetic_point(args) -> FrontierPoint:
    npv = 1000.0 - (args.pv_size_kw - 60.0) ** 2 - (args.batt_energy_kwh - 120.0) ** 2
    return FrontierPoint(
        type=args.type,
        pv_size_kw=args.pv_size_kw,
        batt_energy_kwh=args.batt_energy_kwh,
        batt_power_kw=args.batt_power_kw,
        capex_net=1_000.0,
        npv25=npv,
        irr25=None,
        self_sufficiency_percent=0.0,
        simple_payback_years=None,
        annual_savings=0.0,
        sweep_source=args.sweep_source,
        order=args.order,
    )


@pytest.fixture
def synthetic(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sweep_module, "_evaluate_point", _synthetic_point)


class TestHybridGridAxes:
    def test_axes(self) -> None:
        """pv step = max(10, round(100 / 5 / 10) × 10) = 20; battery max 200, step 40."""
        pv, batt = hybrid_grid_axes(100.0, 84.0)
        assert pv == [20.0, 40.0, 60.0, 80.0, 100.0]
        assert batt == [40.0, 80.0, 120.0, 160.0, 200.0]

    def test_current_energy_widens_battery_axis(self) -> None:
        _, batt = hybrid_grid_axes(100.0, 84.0, current_energy_kwh=150.0)
        assert batt == [60.0, 120.0, 180.0, 240.0, 300.0]

    def test_no_roof_no_grid(self) -> None:
        pv, _ = hybrid_grid_axes(0.0, 84.0)
        assert pv == []


@pytest.mark.usefixtures("synthetic")
class TestHybridGrid:
    @pytest.fixture
    def grid_result(
        self, summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions
    ) -> SweepResult:
        return sweep(
            summer_profile,
            ROOF_KW,
            default_assumptions,
            reference=ANCHOR,
            steps=STEPS,
            max_workers=1,
        )

    def test_only_profitable_grid_points_kept(self, grid_result: SweepResult) -> None:
        grid = [p for p in grid_result.frontier if p.sweep_source == SOURCE_GRID]
        assert [(p.pv_size_kw, p.batt_energy_kwh) for p in grid] == [
            (40.0, 120.0),
            (60.0, 120.0),
            (80.0, 120.0),
        ]
        assert all(p.type == TYPE_HYBRID and p.batt_power_kw == 60.0 for p in grid)

    def test_grid_point_wins_selection(self, grid_result: SweepResult) -> None:
        best = grid_result.optimum
        assert best is not None
        assert best.sweep_source == SOURCE_GRID
        assert (best.pv_size_kw, best.batt_energy_kwh) == (60.0, 120.0)
        assert grid_result.optimal_scenarios.best_npv is best
        assert best.label == "60kW PV + 120kWh"

    def test_grid_skips_sizings_of_other_sub_sweeps(self, grid_result: SweepResult) -> None:
        others = {
            (p.pv_size_kw, p.batt_energy_kwh)
            for p in grid_result.frontier
            if p.sweep_source != SOURCE_GRID
        }
        grid = [
            (p.pv_size_kw, p.batt_energy_kwh)
            for p in grid_result.frontier
            if p.sweep_source == SOURCE_GRID
        ]
        assert not others.intersection(grid)
        assert len(grid) == len(set(grid))

    def test_grid_disabled(
        self, summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions
    ) -> None:
        result = sweep(
            summer_profile,
            ROOF_KW,
            default_assumptions,
            reference=ANCHOR,
            steps=STEPS,
            max_workers=1,
            hybrid_grid=False,
        )
        assert all(p.sweep_source != SOURCE_GRID for p in result.frontier)
        assert not result.has_profitable_configuration


# ---------------------------------------------------------------------------
# Current configuration
# ---------------------------------------------------------------------------


class TestCurrentConfiguration:
    def _sweep(self, profile: LoadProfile, assumptions: AnalysisAssumptions, current):
        return sweep(
            profile,
            ROOF_KW,
            assumptions,
            steps=2,
            max_workers=1,
            hybrid_grid=False,
            current=current,
        )

    def test_current_point_evaluated_first(
        self, summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions
    ) -> None:
        current = ReferenceSizing(pv_size_kw=30.0, batt_energy_kwh=0.0, batt_power_kw=0.0)
        result = self._sweep(summer_profile, default_assumptions, current)
        first = result.frontier[0]
        assert first.sweep_source == SOURCE_CURRENT
        assert first.type == TYPE_SOLAR
        assert first.label == "30kW solar only (Current)"
        assert 30.0 not in [s.pv_size_kw for s in result.solar_sweep]

    def test_current_pv_clamped_to_roof(
        self, summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions
    ) -> None:
        current = ReferenceSizing(pv_size_kw=500.0, batt_energy_kwh=80.0, batt_power_kw=40.0)
        first = self._sweep(summer_profile, default_assumptions, current).frontier[0]
        assert first.type == TYPE_HYBRID
        assert first.pv_size_kw == ROOF_KW

    def test_empty_current_ignored(
        self, summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions
    ) -> None:
        current = ReferenceSizing(pv_size_kw=0.0, batt_energy_kwh=0.0, batt_power_kw=0.0)
        result = self._sweep(summer_profile, default_assumptions, current)
        assert all(p.sweep_source != SOURCE_CURRENT for p in result.frontier)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


class TestFailureIsolation:
    def test_failing_point_is_counted_and_excluded(
        self,
        monkeypatch: pytest.MonkeyPatch,
        summer_profile: LoadProfile,
        default_assumptions: AnalysisAssumptions,
    ) -> None:
        def flaky(args) -> FrontierPoint:
            if args.type == TYPE_SOLAR and args.pv_size_kw == 50.0:
                raise InvalidAssumptionsError("cannot evaluate")
            return _synthetic_point(args)

        monkeypatch.setattr(sweep_module, "_evaluate_point", flaky)
        result = sweep(
            summer_profile,
            ROOF_KW,
            default_assumptions,
            reference=ANCHOR,
            steps=STEPS,
            max_workers=1,
            hybrid_grid=False,
        )
        assert result.failed_points == 1
        assert len(result.frontier) == 15
        assert [s.pv_size_kw for s in result.solar_sweep] == [25.0, 75.0, 100.0]
        assert result.optimum is not None

    def test_unexpected_error_propagates(
        self,
        monkeypatch: pytest.MonkeyPatch,
        summer_profile: LoadProfile,
        default_assumptions: AnalysisAssumptions,
    ) -> None:
        def broken(args) -> FrontierPoint:
            raise RuntimeError("bug")

        monkeypatch.setattr(sweep_module, "_evaluate_point", broken)
        with pytest.raises(RuntimeError):
            sweep(summer_profile, ROOF_KW, default_assumptions, steps=2, max_workers=1)


class TestProcessPool:
    def test_parallel_matches_inline(
        self, summer_profile: LoadProfile, default_assumptions: AnalysisAssumptions
    ) -> None:
        kwargs = {"steps": 2, "hybrid_grid": False}
        inline = sweep(summer_profile, 50.0, default_assumptions, max_workers=1, **kwargs)
        parallel = sweep(summer_profile, 50.0, default_assumptions, max_workers=2, **kwargs)
        assert parallel.frontier == inline.frontier
        assert parallel.failed_points == inline.failed_points == 0
        assert parallel.optimum == inline.optimum
