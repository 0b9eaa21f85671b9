"""Tests for pv/production.py – synthetic PV production and clipping."""

from __future__ import annotations

import math

import numpy as np
import pytest

from pv_sizing_model.config.assumptions import AnalysisAssumptions
from pv_sizing_model.pv.production import (
    diurnal_bell,
    dc_production_per_kwp,
    seasonal_factor,
    simulate_production,
    snow_loss_factor,
    system_loss_factor,
)

HOURS = np.tile(np.arange(24), 7)


def _months(month: int) -> np.ndarray:
    return np.full(len(HOURS), month)


# ---------------------------------------------------------------------------
# Shape factors
# ---------------------------------------------------------------------------


class TestShapeFactors:
    def test_bell_peaks_at_solar_noon(self) -> None:
        bell = diurnal_bell(np.arange(24))
        assert int(np.argmax(bell)) == 13
        assert bell[13] == 1.0

    def test_bell_zero_at_night(self) -> None:
        bell = diurnal_bell(np.arange(24))
        assert np.all(bell[:5] == 0.0)
        assert np.all(bell[21:] == 0.0)

    def test_seasonal_extremes(self) -> None:
        assert math.isclose(float(seasonal_factor(np.array([6]))[0]), 1.4)
        assert math.isclose(float(seasonal_factor(np.array([12]))[0]), 0.6)

    def test_system_losses_below_one(self) -> None:
        assert 0.9 < system_loss_factor(0.02) < 1.0

    def test_snow_profile_none(self) -> None:
        assert np.all(snow_loss_factor(np.arange(1, 13), "none") == 1.0)

    def test_snow_profile_flat_roof_january(self) -> None:
        assert math.isclose(float(snow_loss_factor(np.array([1]), "flat_roof")[0]), 0.45)


# ---------------------------------------------------------------------------
# Production
# ---------------------------------------------------------------------------


class TestSimulateProduction:
    def test_zero_size_produces_nothing(self, default_assumptions: AnalysisAssumptions) -> None:
        result = simulate_production(0.0, HOURS, _months(6), default_assumptions)
        assert result.total_kwh == 0.0
        assert result.clipping_loss_kwh == 0.0

    def test_night_hours_zero(self, default_assumptions: AnalysisAssumptions) -> None:
        result = simulate_production(100.0, HOURS, _months(6), default_assumptions)
        night = (HOURS < 5) | (HOURS > 20)
        assert np.all(result.ac_kwh[night] == 0.0)

    def test_linear_in_size(self, default_assumptions: AnalysisAssumptions) -> None:
        """The inverter scales with the array, so clipping keeps production linear."""
        small = simulate_production(50.0, HOURS, _months(6), default_assumptions)
        large = simulate_production(200.0, HOURS, _months(6), default_assumptions)
        assert np.allclose(large.ac_kwh, 4.0 * small.ac_kwh)

    def test_summer_exceeds_winter(self, default_assumptions: AnalysisAssumptions) -> None:
        june = simulate_production(100.0, HOURS, _months(6), default_assumptions)
        december = simulate_production(100.0, HOURS, _months(12), default_assumptions)
        assert june.total_kwh > december.total_kwh

    def test_clipping_at_inverter_rating(self) -> None:
        a = AnalysisAssumptions(inverter_load_ratio=2.0)
        result = simulate_production(100.0, HOURS, _months(6), a)
        assert result.ac_kwh.max() <= 50.0 + 1e-9
        assert result.clipping_loss_kwh > 0.0
        dc = 100.0 * dc_production_per_kwp(HOURS, _months(6), a)
        assert math.isclose(result.total_kwh + result.clipping_loss_kwh, float(dc.sum()))

    def test_no_clipping_with_oversized_inverter(self) -> None:
        a = AnalysisAssumptions(inverter_load_ratio=0.5)
        result = simulate_production(100.0, HOURS, _months(6), a)
        assert result.clipping_loss_kwh == 0.0

    def test_degradation_applies_per_year(self) -> None:
        a = AnalysisAssumptions(inverter_load_ratio=0.5, degradation_rate=0.01)
        year1 = simulate_production(100.0, HOURS, _months(6), a, year=1)
        year3 = simulate_production(100.0, HOURS, _months(6), a, year=3)
        assert math.isclose(year3.total_kwh, year1.total_kwh * 0.99**2)

    def test_bifacial_gain(self) -> None:
        mono = AnalysisAssumptions(inverter_load_ratio=0.5)
        bifacial = AnalysisAssumptions(inverter_load_ratio=0.5, bifacial_enabled=True)
        base = simulate_production(100.0, HOURS, _months(6), mono).total_kwh
        boosted = simulate_production(100.0, HOURS, _months(6), bifacial).total_kwh
        assert math.isclose(boosted, base * bifacial.bifacial_boost)

    def test_yield_scales_production(self) -> None:
        low = AnalysisAssumptions(inverter_load_ratio=0.5, solar_yield_kwh_per_kwp=575.0)
        high = AnalysisAssumptions(inverter_load_ratio=0.5)
        assert math.isclose(
            simulate_production(10.0, HOURS, _months(3), low).total_kwh * 2.0,
            simulate_production(10.0, HOURS, _months(3), high).total_kwh,
        )

    @pytest.mark.parametrize("month", [1, 4, 7, 10])
    def test_non_negative(self, default_assumptions: AnalysisAssumptions, month: int) -> None:
        result = simulate_production(100.0, HOURS, _months(month), default_assumptions)
        assert np.all(result.ac_kwh >= 0.0)
