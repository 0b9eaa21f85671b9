"""Sweep point records shared by the sweep and the scenario selector."""

from __future__ import annotations

from dataclasses import dataclass

TYPE_SOLAR = "solar"
TYPE_BATTERY = "battery"
TYPE_HYBRID = "hybrid"

SOURCE_SOLAR = "solarSweep"
SOURCE_BATTERY = "batterySweep"
SOURCE_PV = "pvSweep"
SOURCE_BATT = "battSweep"
SOURCE_GRID = "hybridGrid"
SOURCE_CURRENT = "current"


@dataclass(frozen=True)
class FrontierPoint:
    """One evaluated sizing of the sweep.

    Attributes:
        type: ``"solar"``, ``"battery"`` or ``"hybrid"``.
        pv_size_kw: PV DC nameplate in kW.
        batt_energy_kwh: Battery capacity in kWh.
        batt_power_kw: Battery power in kW.
        capex_net: Net CAPEX in dollars.
        npv25: 25-year NPV in dollars.
        irr25: 25-year IRR as decimal, or None.
        self_sufficiency_percent: Share of the load served on site in %.
        simple_payback_years: Payback in years, or None.
        annual_savings: Year-1 bill savings in dollars.
        is_optimal: True on the single global NPV optimum.
        sweep_source: Sub-sweep that produced the point.
        label: Human-readable sizing description.
        order: Evaluation order, used as the final tie-break.
    """

    type: str
    pv_size_kw: float
    batt_energy_kwh: float
    batt_power_kw: float
    capex_net: float
    npv25: float
    irr25: float | None
    self_sufficiency_percent: float
    simple_payback_years: float | None
    annual_savings: float
    is_optimal: bool = False
    sweep_source: str = ""
    label: str = ""
    order: int = 0


@dataclass(frozen=True)
class SolarSweepPoint:
    """Solar-only sweep point for a 2-D NPV curve."""

    pv_size_kw: float
    npv25: float
    is_optimal: bool


@dataclass(frozen=True)
class BatterySweepPoint:
    """Battery-only sweep point for a 2-D NPV curve."""

    batt_energy_kwh: float
    npv25: float
    is_optimal: bool


def point_label(point_type: str, pv_size_kw: float, batt_energy_kwh: float) -> str:
    """Describe a sizing the way the frontier labels it."""
    if point_type == TYPE_SOLAR:
        return f"{pv_size_kw:.0f}kW solar only"
    if point_type == TYPE_BATTERY:
        return f"{batt_energy_kwh:.0f}kWh storage only"
    return f"{pv_size_kw:.0f}kW PV + {batt_energy_kwh:.0f}kWh"


def sizing_type(pv_size_kw: float, batt_energy_kwh: float) -> str:
    """Point type implied by the installed components."""
    if pv_size_kw > 0.0 and batt_energy_kwh > 0.0:
        return TYPE_HYBRID
    if pv_size_kw > 0.0:
        return TYPE_SOLAR
    return TYPE_BATTERY
