"""Tests for config/loader.py – assumptions JSON and load profile CSV."""

from __future__ import annotations

import json
import math
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from pv_sizing_model.config.loader import (
    load_assumptions,
    load_assumptions_dict,
    load_profile_csv,
)
from pv_sizing_model.errors import InvalidAssumptionsError, InvalidProfileError


def _write_json(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def _write_profile(path: Path, hours: int = 48, kwh: float = 10.0, with_kw: bool = False) -> Path:
    index = pd.date_range("2023-01-01", periods=hours, freq="h")
    frame = pd.DataFrame({"timestamp": index.strftime("%Y-%m-%d %H:%M"), "kwh": kwh})
    if with_kw:
        frame["kw"] = kwh * 1.5
    frame.to_csv(path, index=False)
    return path


# ---------------------------------------------------------------------------
# Assumptions JSON
# ---------------------------------------------------------------------------


class TestLoadAssumptions:
    def test_partial_file_merged_with_defaults(self, tmp_path: Path) -> None:
        path = _write_json(tmp_path / "a.json", {"discount_rate": 0.06, "tariff_code": "L"})
        a = load_assumptions(path)
        assert a.discount_rate == 0.06
        assert a.tariff_code == "L"
        assert math.isclose(a.tariff_energy, 0.03681)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_assumptions(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError, match="bad.json"):
            load_assumptions(path)

    def test_top_level_must_be_object(self, tmp_path: Path) -> None:
        path = _write_json(tmp_path / "list.json", [1, 2, 3])
        with pytest.raises(InvalidAssumptionsError, match="JSON object"):
            load_assumptions(path)

    def test_schema_violation_surfaces(self) -> None:
        with pytest.raises(InvalidAssumptionsError, match="tax_rate"):
            load_assumptions_dict({"tax_rate": -0.1})


# ---------------------------------------------------------------------------
# Load profile CSV
# ---------------------------------------------------------------------------


class TestLoadProfileCsv:
    def test_two_january_days(self, tmp_path: Path) -> None:
        """48 hourly readings in January; the other eleven months are filled."""
        profile = load_profile_csv(_write_profile(tmp_path / "p.csv"))
        assert profile.interpolated_months == tuple(range(2, 13))
        assert np.all(profile.month[:48] == 1)
        assert math.isclose(float(profile.consumption_kwh[:48].sum()), 480.0)
        # Synthesised months repeat the flat 10 kWh shape
        assert np.allclose(profile.consumption_kwh, 10.0)
        assert profile.n_hours == 48 + (8760 - 31 * 24)

    def test_without_demand_column(self, tmp_path: Path) -> None:
        """Demand falls back to the hourly energy over a one-hour interval."""
        profile = load_profile_csv(_write_profile(tmp_path / "p.csv"))
        assert math.isclose(profile.peak_demand_kw, 10.0)

    def test_with_demand_column(self, tmp_path: Path) -> None:
        profile = load_profile_csv(_write_profile(tmp_path / "p.csv", with_kw=True))
        assert math.isclose(profile.peak_demand_kw, 15.0)

    def test_column_names_case_insensitive(self, tmp_path: Path) -> None:
        path = tmp_path / "p.csv"
        path.write_text("Timestamp,KWh\n2023-01-01 00:00,1.0\n2023-01-01 01:00,2.0\n")
        profile = load_profile_csv(path)
        assert math.isclose(float(profile.consumption_kwh[:2].sum()), 3.0)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_profile_csv(tmp_path / "missing.csv")

    def test_missing_energy_column(self, tmp_path: Path) -> None:
        path = tmp_path / "p.csv"
        path.write_text("timestamp,load\n2023-01-01 00:00,1.0\n")
        with pytest.raises(InvalidProfileError, match="kwh"):
            load_profile_csv(path)

    def test_negative_reading_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "p.csv"
        path.write_text("timestamp,kwh\n2023-01-01 00:00,1.0\n2023-01-01 01:00,-2.0\n")
        with pytest.raises(InvalidProfileError, match="negative"):
            load_profile_csv(path)

    def test_non_numeric_reading_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "p.csv"
        path.write_text("timestamp,kwh\n2023-01-01 00:00,1.0\n2023-01-01 01:00,abc\n")
        with pytest.raises(InvalidProfileError):
            load_profile_csv(path)
