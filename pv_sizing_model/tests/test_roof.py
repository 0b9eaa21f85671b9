"""Tests for pv/roof.py – roof-derived capacity ceiling."""

from __future__ import annotations

import math

import pytest

from pv_sizing_model.pv.roof import roof_capacity_kw, sq_ft_to_sq_m


class TestRoofCapacity:
    def test_unit_conversion(self) -> None:
        assert math.isclose(sq_ft_to_sq_m(10.764), 1.0)

    def test_capacity_formula(self) -> None:
        """100 000 ft² × 80 % / 10.764 / 3.71 m² × 0.660 kW ≈ 1 322 kW."""
        expected = 100_000.0 / 10.764 * 0.8 / 3.71 * 0.660
        assert math.isclose(roof_capacity_kw(100_000.0, 0.8), expected)
        assert 1300.0 < expected < 1350.0

    def test_scales_linearly_with_area(self) -> None:
        assert math.isclose(
            roof_capacity_kw(20_000.0, 0.5), 2.0 * roof_capacity_kw(10_000.0, 0.5)
        )

    def test_zero_area(self) -> None:
        assert roof_capacity_kw(0.0, 0.8) == 0.0

    def test_negative_area_rejected(self) -> None:
        with pytest.raises(ValueError):
            roof_capacity_kw(-1.0, 0.8)

    def test_ratio_above_one_rejected(self) -> None:
        with pytest.raises(ValueError):
            roof_capacity_kw(1000.0, 1.2)
