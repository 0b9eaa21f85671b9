"""Tests for main.py – CLI orchestration and exit codes."""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from pv_sizing_model.main import _build_parser, _current_sizing, _forced_sizing, run


def _write_profile(path: Path, hours: int = 24 * 7) -> Path:
    index = pd.date_range("2023-06-01", periods=hours, freq="h")
    frame = pd.DataFrame({"timestamp": index.strftime("%Y-%m-%d %H:%M"), "kwh": 25.0})
    frame.to_csv(path, index=False)
    return path


def _args(*argv: str):
    return _build_parser().parse_args(list(argv))


class TestParser:
    def test_profile_required(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args([])

    def test_no_forced_sizing_by_default(self) -> None:
        assert _forced_sizing(_args("--profile", "p.csv")) is None

    def test_forced_sizing_from_flags(self) -> None:
        forced = _forced_sizing(_args("--profile", "p.csv", "--battery-kwh", "100"))
        assert forced.batt_energy_kwh == 100.0
        assert forced.pv_size_kw is None

    def test_current_sizing_from_flags(self) -> None:
        assert _current_sizing(_args("--profile", "p.csv")) is None
        current = _current_sizing(_args("--profile", "p.csv", "--current-pv-kw", "40"))
        assert current.pv_size_kw == 40.0
        assert current.batt_energy_kwh is None

    def test_print_schema_exits_without_profile(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _build_parser().parse_args(["--print-schema"])
        assert exc_info.value.code == 0
        schema = json.loads(capsys.readouterr().out)
        assert "discount_rate" in schema["properties"]


class TestRun:
    def test_dry_run(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        profile = _write_profile(tmp_path / "site.csv")
        code = run(_args("--profile", str(profile), "--dry-run"))
        assert code == 0
        assert "validated successfully" in capsys.readouterr().out

    def test_missing_profile(self, tmp_path: Path) -> None:
        assert run(_args("--profile", str(tmp_path / "missing.csv"))) == 1

    def test_invalid_assumptions(self, tmp_path: Path) -> None:
        profile = _write_profile(tmp_path / "site.csv")
        assumptions = tmp_path / "a.json"
        assumptions.write_text(json.dumps({"discount_rate": -5}), encoding="utf-8")
        assert run(_args("--profile", str(profile), "--assumptions", str(assumptions))) == 1

    def test_discount_rate_below_cca_rate_fails(self, tmp_path: Path) -> None:
        profile = _write_profile(tmp_path / "site.csv")
        assumptions = tmp_path / "a.json"
        assumptions.write_text(json.dumps({"discount_rate": -0.6}), encoding="utf-8")
        assert run(_args("--profile", str(profile), "--assumptions", str(assumptions))) == 1

    def test_negative_forced_size_fails(self, tmp_path: Path) -> None:
        profile = _write_profile(tmp_path / "site.csv")
        code = run(
            _args("--profile", str(profile), "--pv-kw", "-10", "--output", str(tmp_path / "out"))
        )
        assert code == 1

    def test_forced_run_writes_outputs(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        profile = _write_profile(tmp_path / "site.csv")
        out = tmp_path / "out"
        code = run(
            _args(
                "--profile", str(profile),
                "--pv-kw", "50",
                "--battery-kwh", "0",
                "--name", "demo",
                "--output", str(out),
            )
        )
        assert code == 0
        assert (out / "demo_summary.csv").exists()
        assert not (out / "demo_frontier.csv").exists()
        assert "Run: demo (variant)" in capsys.readouterr().out
