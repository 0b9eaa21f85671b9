"""Tests for config/assumptions.py – defaults record and merge."""

from __future__ import annotations

import dataclasses
import math

import pytest

from pv_sizing_model.config.assumptions import AnalysisAssumptions, merge_assumptions
from pv_sizing_model.config.defaults import (
    DEFAULT_DISCOUNT_RATE,
    DEFAULT_SOLAR_COST_PER_W,
    DEFAULT_TARIFF_CODE,
)
from pv_sizing_model.errors import InvalidAssumptionsError


class TestDefaults:
    def test_defaults_construct(self, default_assumptions: AnalysisAssumptions) -> None:
        assert default_assumptions.tariff_code == DEFAULT_TARIFF_CODE
        assert default_assumptions.discount_rate == DEFAULT_DISCOUNT_RATE

    def test_record_is_frozen(self, default_assumptions: AnalysisAssumptions) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            default_assumptions.discount_rate = 0.1  # type: ignore[misc]

    def test_out_of_range_value_rejected_on_construction(self) -> None:
        with pytest.raises(InvalidAssumptionsError, match="tax_rate"):
            AnalysisAssumptions(tax_rate=1.5)

    def test_to_dict_has_every_field(self, default_assumptions: AnalysisAssumptions) -> None:
        data = default_assumptions.to_dict()
        assert set(data) == {f.name for f in dataclasses.fields(AnalysisAssumptions)}


class TestMergeAssumptions:
    """merge_assumptions yields a total record equal to the override where given."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {},
            {"discount_rate": 0.06},
            {"analysis_years": 30, "om_escalation": 0.03},
            {"roof_area_sq_ft": 20_000.0, "bifacial_enabled": True, "snow_loss_profile": "tilted"},
        ],
    )
    def test_merge_totality(self, overrides: dict) -> None:
        defaults = AnalysisAssumptions()
        merged = merge_assumptions(overrides)
        for field in dataclasses.fields(AnalysisAssumptions):
            expected = overrides.get(field.name, getattr(defaults, field.name))
            assert getattr(merged, field.name) == expected, field.name

    def test_none_returns_base(self) -> None:
        base = AnalysisAssumptions(discount_rate=0.05)
        assert merge_assumptions(None, base) is base

    def test_base_not_modified(self) -> None:
        base = AnalysisAssumptions()
        merge_assumptions({"solar_cost_per_w": 1.5}, base)
        assert base.solar_cost_per_w == DEFAULT_SOLAR_COST_PER_W

    def test_tariff_code_resolves_rates(self) -> None:
        merged = merge_assumptions({"tariff_code": "G"})
        assert merged.tariff_code == "G"
        assert math.isclose(merged.tariff_energy, 0.11933)
        assert math.isclose(merged.tariff_power, 21.261)

    def test_explicit_rate_wins_over_code(self) -> None:
        merged = merge_assumptions({"tariff_code": "G", "tariff_energy": 0.09})
        assert merged.tariff_energy == 0.09

    def test_unknown_tariff_code_uses_fallback(self) -> None:
        merged = merge_assumptions({"tariff_code": "XYZ"})
        assert math.isclose(merged.tariff_energy, 0.057)
        assert math.isclose(merged.tariff_power, 17.57)

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(InvalidAssumptionsError):
            merge_assumptions({"not_a_field": 1})

    def test_invalid_value_rejected(self) -> None:
        with pytest.raises(InvalidAssumptionsError, match="discount_rate"):
            merge_assumptions({"discount_rate": -2.0})


class TestNonFiniteValues:
    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("tariff_energy", float("nan")),
            ("discount_rate", float("nan")),
            ("solar_cost_per_w", float("inf")),
            ("inflation_rate", float("-inf")),
        ],
    )
    def test_merge_rejects(self, field: str, value: float) -> None:
        with pytest.raises(InvalidAssumptionsError, match=field):
            merge_assumptions({field: value})

    def test_construction_rejects_nan(self) -> None:
        with pytest.raises(InvalidAssumptionsError, match="tariff_energy"):
            AnalysisAssumptions(tariff_energy=float("nan"))


class TestDiscountRateAgainstCCA:
    """The tax shield needs discount_rate + CCA rate (0.50) > 0."""

    def test_rate_at_minus_cca_rejected(self) -> None:
        with pytest.raises(InvalidAssumptionsError, match="discount_rate"):
            merge_assumptions({"discount_rate": -0.6})

    def test_boundary_rejected(self) -> None:
        with pytest.raises(InvalidAssumptionsError):
            AnalysisAssumptions(discount_rate=-0.5)

    def test_small_negative_rate_accepted(self) -> None:
        assert merge_assumptions({"discount_rate": -0.01}).discount_rate == -0.01


class TestDerivedValues:
    def test_bifacial_boost_disabled(self, default_assumptions: AnalysisAssumptions) -> None:
        assert default_assumptions.bifacial_boost == 1.0

    def test_bifacial_boost_enabled(self) -> None:
        """1 + 0.85 bifaciality × 0.70 albedo × 0.25 rear ratio = 1.14875."""
        a = AnalysisAssumptions(bifacial_enabled=True)
        assert math.isclose(a.bifacial_boost, 1.14875)

    def test_bifacial_cost_premium(self) -> None:
        a = AnalysisAssumptions(bifacial_enabled=True, solar_cost_per_w=2.0)
        assert math.isclose(a.effective_solar_cost_per_w, 2.10)
