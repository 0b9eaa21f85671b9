"""CLI entrypoint for the solar + battery sizing model.

Execution flow
--------------
1.  Load & validate the assumptions JSON (optional; defaults otherwise).
2.  Read the interval-meter CSV into an hourly load profile.
3.  Sweep the sizing space, or evaluate a forced sizing (variant run).
4.  Compare cash, loan, lease and PPA financing for the recommendation.
5.  Write output CSVs.
6.  Print summary to stdout.

Usage
-----
    python -m pv_sizing_model.main --profile meter.csv
    python -m pv_sizing_model.main --profile meter.csv --assumptions site.json
    python -m pv_sizing_model.main --profile meter.csv --pv-kw 250 --battery-kwh 200
    python -m pv_sizing_model.main --profile meter.csv --dry-run -v
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pv_sizing_model.analysis import ForcedSizing, SimulationRun, run_analysis
from pv_sizing_model.config.assumptions import AnalysisAssumptions
from pv_sizing_model.config.defaults import DEFAULT_OUTPUT_DIR, FRONTIER_HORIZON_YEARS
from pv_sizing_model.config.loader import load_assumptions, load_profile_csv
from pv_sizing_model.config.schema import get_schema
from pv_sizing_model.errors import SizingEngineError
from pv_sizing_model.output.csv_writer import write_run_outputs
from pv_sizing_model.output.formatting import fmt_money

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------


class _PrintSchemaAction(argparse.Action):
    """Print the assumptions schema and exit, like ``--help``."""

    def __init__(
        self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None
    ):
        super().__init__(option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        print(json.dumps(get_schema(), indent=2))
        parser.exit()


def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    p = argparse.ArgumentParser(
        prog="python -m pv_sizing_model.main",
        description="Solar + Battery Sizing and Financial Model",
    )
    p.add_argument(
        "--profile",
        required=True,
        metavar="PATH",
        help="Interval-meter CSV with 'timestamp', 'kwh' and optional 'kw' columns.",
    )
    p.add_argument(
        "--assumptions",
        metavar="PATH",
        default=None,
        help="JSON file with assumption overrides.",
    )
    p.add_argument(
        "--name",
        default=None,
        help="Run name used as output file prefix (default: profile file stem).",
    )
    p.add_argument(
        "--roof-kw",
        type=float,
        default=None,
        metavar="KW",
        help="PV ceiling in kW (default: derived from roof area).",
    )
    p.add_argument(
        "--pv-kw",
        type=float,
        default=None,
        metavar="KW",
        help="Forced PV size in kW (variant run, bypasses the sweep).",
    )
    p.add_argument(
        "--battery-kwh",
        type=float,
        default=None,
        metavar="KWH",
        help="Forced battery capacity in kWh (variant run).",
    )
    p.add_argument(
        "--battery-kw",
        type=float,
        default=None,
        metavar="KW",
        help="Forced battery power in kW (variant run).",
    )
    p.add_argument(
        "--current-pv-kw",
        type=float,
        default=None,
        metavar="KW",
        help="Installed PV in kW, placed on the sweep frontier for comparison.",
    )
    p.add_argument(
        "--current-battery-kwh",
        type=float,
        default=None,
        metavar="KWH",
        help="Installed battery capacity in kWh, placed on the sweep frontier.",
    )
    p.add_argument(
        "--output",
        metavar="DIR",
        default=DEFAULT_OUTPUT_DIR,
        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR}).",
    )
    p.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="N",
        help="Worker processes for the sweep (1 = run inline).",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable DEBUG logging.",
    )
    p.add_argument(
        "--print-schema",
        action=_PrintSchemaAction,
        help="Print the assumptions JSON schema and exit.",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Validate inputs, then exit without running the analysis.",
    )
    return p


def _current_sizing(args: argparse.Namespace) -> ForcedSizing | None:
    if args.current_pv_kw is None and args.current_battery_kwh is None:
        return None
    return ForcedSizing(pv_size_kw=args.current_pv_kw, batt_energy_kwh=args.current_battery_kwh)


def _forced_sizing(args: argparse.Namespace) -> ForcedSizing | None:
    if args.pv_kw is None and args.battery_kwh is None and args.battery_kw is None:
        return None
    return ForcedSizing(
        pv_size_kw=args.pv_kw,
        batt_energy_kwh=args.battery_kwh,
        batt_power_kw=args.battery_kw,
    )


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def run(args: argparse.Namespace) -> int:
    """Execute one analysis from parsed CLI arguments.

    Returns
    -------
    int
        Process exit code: 0 on success, 1 on invalid input or failure.
    """
    # ------------------------------------------------------------------
    # Step 1 + 2: Inputs
    # ------------------------------------------------------------------
    try:
        assumptions = (
            load_assumptions(args.assumptions)
            if args.assumptions is not None
            else AnalysisAssumptions()
        )
        profile = load_profile_csv(args.profile)
    except (FileNotFoundError, json.JSONDecodeError, SizingEngineError) as exc:
        logger.error("Input validation failed: %s", exc)
        return 1

    run_name = args.name or Path(args.profile).stem

    if args.dry_run:
        print(
            f"Dry run: '{run_name}' validated successfully "
            f"({profile.n_hours} hourly rows, {profile.annual_consumption_kwh:,.0f} kWh/year)."
        )
        return 0

    # ------------------------------------------------------------------
    # Step 3 + 4: Analysis
    # ------------------------------------------------------------------
    try:
        result = run_analysis(
            profile,
            assumptions,
            roof_constraint_kw=args.roof_kw,
            forced=_forced_sizing(args),
            current=_current_sizing(args),
            max_workers=args.workers,
        )
    except SizingEngineError as exc:
        logger.error("Analysis failed: %s", exc)
        return 1

    # ------------------------------------------------------------------
    # Step 5: Write output CSVs
    # ------------------------------------------------------------------
    try:
        written = write_run_outputs(args.output, run_name, result)
    except OSError as exc:
        logger.error("Failed to write results to '%s': %s", args.output, exc)
        return 1
    logger.info("Wrote %d result file(s) to '%s'.", len(written), args.output)

    # ------------------------------------------------------------------
    # Step 6: Print summary
    # ------------------------------------------------------------------
    _print_summary(run_name, result)
    return 0


def _print_summary(run_name: str, result: SimulationRun) -> None:
    """Print a concise result summary to stdout."""
    metrics = result.horizon_metrics[FRONTIER_HORIZON_YEARS]
    irr_str = f"{metrics.irr * 100:.2f} %" if metrics.irr is not None else "n/a"
    payback = metrics.simple_payback_years
    payback_str = f"{payback:.1f} years" if payback is not None else "not reached"

    print()
    print("=" * 60)
    print(f"  Run: {run_name}{' (variant)' if result.forced else ''}")
    print("=" * 60)
    print(f"  PV size:               {result.pv_size_kw:.0f} kW (roof {result.roof_constraint_kw:.0f} kW)")
    print(f"  Battery:               {result.batt_energy_kwh:.0f} kWh / {result.batt_power_kw:.0f} kW")
    print(f"  Gross CAPEX:           {fmt_money(result.breakdown.capex_gross)}")
    print(f"  Net CAPEX:             {fmt_money(result.breakdown.capex_net)}")
    print(f"  Year-1 savings:        {fmt_money(result.savings.annual_savings)}")
    print()
    print(f"  NPV{FRONTIER_HORIZON_YEARS}:                 {fmt_money(metrics.npv)}")
    print(f"  IRR{FRONTIER_HORIZON_YEARS}:                 {irr_str}")
    print(f"  Simple payback:        {payback_str}")
    if result.lcoe is not None:
        print(f"  LCOE:                  {result.lcoe * 100:.2f} ¢/kWh")
    print(f"  Self-sufficiency:      {result.self_sufficiency_percent:.1f} %")
    print(f"  CO2 avoided:           {result.co2_avoided_tonnes_per_year:.1f} t/year")

    if result.sensitivity is not None and not result.sensitivity.has_profitable_configuration:
        print()
        print("  No profitable configuration found; reference sizing shown.")

    print()
    for outcome in result.financing.outcomes():
        print(
            f"  {outcome.method:<6} upfront {fmt_money(outcome.upfront_cost):>14}"
            f"   net over {result.financing.horizon_years}y {fmt_money(outcome.net_savings_over_horizon):>14}"
        )
    print("=" * 60)
    print()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Parse CLI arguments and run the analysis."""
    parser = _build_parser()
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    sys.exit(run(args))


if __name__ == "__main__":
    main()
