"""Write analysis results to CSV files.

Output files produced per run (``{name}`` is the run name):

1. ``{name}_summary.csv``            – Single row: sizing + key financial results.
2. ``{name}_cashflows.csv``          – One row per analysis year.
3. ``{name}_frontier.csv``           – One row per evaluated sweep point (sweep runs only).
4. ``{name}_financing.csv``          – One row per financing method.
5. ``{name}_financing_cashflows.csv`` – Cumulative position per year and method.
6. ``{name}_hourly_profile.csv``     – Average day of the recommended sizing.
7. ``{name}_monthly_peaks.csv``      – Billing demand before/after per month.

Monetary values are in dollars, energy in kWh, demand in kW. None values are
written as empty strings.

Public API
----------
write_summary_csv              – Write the single-row summary file.
write_cashflows_csv            – Write the per-year cashflow table.
write_frontier_csv             – Write the sweep frontier.
write_financing_csv            – Write the financing comparison.
write_financing_cashflows_csv  – Write the per-year financing positions.
write_hourly_profile_csv       – Write the average-day profile.
write_monthly_peaks_csv        – Write the monthly demand peaks.
write_run_outputs              – Write every file of one run.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Sequence

import pandas as pd

from pv_sizing_model.analysis import SimulationRun
from pv_sizing_model.config.defaults import CSV_DELIMITER, CURRENCY_PRECISION, METRIC_HORIZONS
from pv_sizing_model.dispatch.engine import HourOfDayAverage, MonthlyPeak
from pv_sizing_model.finance.cashflow import CashflowEntry
from pv_sizing_model.finance.financing import FinancingComparison
from pv_sizing_model.optimization.selector import OBJECTIVES
from pv_sizing_model.optimization.sweep import SweepResult
from pv_sizing_model.output.formatting import fmt_currency, fmt_float, fmt_pct

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Summary CSV
# ---------------------------------------------------------------------------


def write_summary_csv(path: Path | str, run_name: str, run: SimulationRun) -> None:
    """Write the single-row run summary CSV.

    Parameters
    ----------
    path:
        Destination file path.
    run_name:
        Human-readable run name.
    run:
        Completed analysis run.
    """
    a = run.assumptions
    b = run.breakdown
    row = {
        "run_name": run_name,
        "variant": str(run.forced),
        "tariff_code": a.tariff_code,
        "roof_constraint_kw": fmt_float(run.roof_constraint_kw),
        "pv_size_kw": fmt_float(run.pv_size_kw),
        "batt_energy_kwh": fmt_float(run.batt_energy_kwh),
        "batt_power_kw": fmt_float(run.batt_power_kw),
        "capex_gross": fmt_currency(b.capex_gross),
        "total_hq_rebate": fmt_currency(b.total_hq),
        "itc_amount": fmt_currency(b.itc_amount),
        "tax_shield": fmt_currency(b.tax_shield),
        "capex_net": fmt_currency(b.capex_net),
        "annual_savings": fmt_currency(run.savings.annual_savings),
        "energy_savings": fmt_currency(run.savings.energy_savings),
        "demand_savings": fmt_currency(run.savings.demand_savings),
        "surplus_revenue": fmt_currency(run.savings.surplus_revenue),
        "annual_production_kwh": fmt_float(run.annual_production_kwh),
        "self_sufficiency_pct": fmt_pct(run.self_sufficiency_percent, already_pct=True),
        "co2_avoided_tonnes_per_year": fmt_float(run.co2_avoided_tonnes_per_year),
        "lcoe_per_kwh": fmt_float(run.lcoe, precision=6),
    }
    for horizon in METRIC_HORIZONS:
        m = run.horizon_metrics[horizon]
        row[f"npv{horizon}"] = fmt_currency(m.npv)
        row[f"irr{horizon}_pct"] = fmt_pct(m.irr)
    payback = run.horizon_metrics[max(METRIC_HORIZONS)].simple_payback_years
    row["simple_payback_years"] = fmt_float(payback, precision=2)
    row["interpolated_months"] = " ".join(str(m) for m in run.interpolated_months)

    _write_dicts(path, [row])
    logger.info("Wrote summary CSV: %s", path)


# ---------------------------------------------------------------------------
# Cashflows CSV
# ---------------------------------------------------------------------------


def write_cashflows_csv(path: Path | str, cashflows: Sequence[CashflowEntry]) -> None:
    """Write the per-year cashflow table, year 0 first."""
    rows = [
        {
            "year": str(e.year),
            "revenue": fmt_currency(e.revenue),
            "opex": fmt_currency(e.opex),
            "investment": fmt_currency(e.investment),
            "incentives": fmt_currency(e.incentives),
            "net_cashflow": fmt_currency(e.net_cashflow),
            "cumulative": fmt_currency(e.cumulative),
        }
        for e in cashflows
    ]
    _write_dicts(path, rows)
    logger.info("Wrote cashflows CSV (%d rows): %s", len(rows), path)


# ---------------------------------------------------------------------------
# Frontier CSV
# ---------------------------------------------------------------------------


def write_frontier_csv(path: Path | str, sweep_result: SweepResult) -> None:
    """Write every evaluated sweep point, in evaluation order.

    The ``objectives`` column lists the named scenarios a point won.
    """
    winners: dict[int, list[str]] = {}
    scenarios = sweep_result.optimal_scenarios
    for name in OBJECTIVES:
        point = scenarios.get(name)
        if point is not None:
            winners.setdefault(point.order, []).append(name)

    rows = []
    for pt in sweep_result.frontier:
        rows.append({
            "order": str(pt.order),
            "sweep_source": pt.sweep_source,
            "type": pt.type,
            "label": pt.label,
            "pv_size_kw": fmt_float(pt.pv_size_kw),
            "batt_energy_kwh": fmt_float(pt.batt_energy_kwh),
            "batt_power_kw": fmt_float(pt.batt_power_kw),
            "capex_net": fmt_currency(pt.capex_net),
            "annual_savings": fmt_currency(pt.annual_savings),
            "npv25": fmt_currency(pt.npv25),
            "irr25_pct": fmt_pct(pt.irr25),
            "self_sufficiency_pct": fmt_pct(pt.self_sufficiency_percent, already_pct=True),
            "simple_payback_years": fmt_float(pt.simple_payback_years, precision=2),
            "is_optimal": str(pt.is_optimal),
            "objectives": " ".join(winners.get(pt.order, [])),
        })

    _write_dicts(path, rows)
    logger.info("Wrote frontier CSV (%d rows): %s", len(rows), path)


# ---------------------------------------------------------------------------
# Financing CSVs
# ---------------------------------------------------------------------------


def write_financing_csv(path: Path | str, comparison: FinancingComparison) -> None:
    """Write one row per financing method."""
    rows = []
    for outcome in comparison.outcomes():
        payback = outcome.payback_year
        rows.append({
            "method": outcome.method,
            "horizon_years": str(comparison.horizon_years),
            "upfront_cost": fmt_currency(outcome.upfront_cost),
            "monthly_payment": fmt_currency(outcome.monthly_payment),
            "total_cost": fmt_currency(outcome.total_cost),
            "net_savings_over_horizon": fmt_currency(outcome.net_savings_over_horizon),
            "payback_year": str(payback) if payback is not None else "",
        })
    _write_dicts(path, rows)
    logger.info("Wrote financing CSV: %s", path)


def write_financing_cashflows_csv(path: Path | str, comparison: FinancingComparison) -> None:
    """Write cumulative cash positions per year, one column per method."""
    frame = pd.DataFrame(
        {o.method: o.cumulative_cashflow for o in comparison.outcomes()},
    ).round(CURRENCY_PRECISION)
    frame.index.name = "year"

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, sep=CSV_DELIMITER)
    logger.info("Wrote financing cashflows CSV (%d rows): %s", len(frame), path)


# ---------------------------------------------------------------------------
# Profile CSVs
# ---------------------------------------------------------------------------


def write_hourly_profile_csv(path: Path | str, summary: Sequence[HourOfDayAverage]) -> None:
    """Write the 24-row average day."""
    rows = [
        {
            "hour": str(h.hour),
            "consumption_kwh": fmt_float(h.consumption),
            "production_kwh": fmt_float(h.production),
            "peak_before_kw": fmt_float(h.peak_before),
            "peak_after_kw": fmt_float(h.peak_after),
        }
        for h in summary
    ]
    _write_dicts(path, rows)
    logger.info("Wrote hourly profile CSV: %s", path)


def write_monthly_peaks_csv(path: Path | str, peaks: Sequence[MonthlyPeak]) -> None:
    """Write billing demand before and after per month."""
    rows = [
        {
            "month": str(p.month),
            "peak_before_kw": fmt_float(p.peak_before_kw),
            "peak_after_kw": fmt_float(p.peak_after_kw),
            "reduction_kw": fmt_float(p.reduction_kw),
        }
        for p in peaks
    ]
    _write_dicts(path, rows)
    logger.info("Wrote monthly peaks CSV: %s", path)


# ---------------------------------------------------------------------------
# All outputs of a run
# ---------------------------------------------------------------------------


def write_run_outputs(output_dir: Path | str, run_name: str, run: SimulationRun) -> list[Path]:
    """Write every CSV of one run into *output_dir*.

    Returns
    -------
    list[Path]
        Paths of the files written.
    """
    output_dir = Path(output_dir)
    written: list[Path] = []

    def target(suffix: str) -> Path:
        p = output_dir / f"{run_name}_{suffix}.csv"
        written.append(p)
        return p

    write_summary_csv(target("summary"), run_name, run)
    write_cashflows_csv(target("cashflows"), run.cashflows)
    if run.sensitivity is not None:
        write_frontier_csv(target("frontier"), run.sensitivity)
    write_financing_csv(target("financing"), run.financing)
    write_financing_cashflows_csv(target("financing_cashflows"), run.financing)
    write_hourly_profile_csv(target("hourly_profile"), run.hourly_summary)
    write_monthly_peaks_csv(target("monthly_peaks"), run.monthly_peaks)
    return written


# ---------------------------------------------------------------------------
# Internal helper
# ---------------------------------------------------------------------------


def _write_dicts(path: Path | str, rows: list[dict]) -> None:
    """Write a list of dicts to a CSV file, creating parent directories.

    The first dict determines the column order. An empty *rows* list
    produces an empty file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if not rows:
        path.write_text("", encoding="utf-8")
        return

    fieldnames = list(rows[0].keys())
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames, delimiter=CSV_DELIMITER)
        writer.writeheader()
        writer.writerows(rows)
