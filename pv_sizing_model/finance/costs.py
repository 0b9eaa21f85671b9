"""Capital costs, utility rebates, federal ITC and the net-CAPEX breakdown.

CAPEX components:

    capex_solar   = pv_kw × 1000 × $/W  (flat, or tiered by system size)
    capex_battery = energy_kwh × $/kWh + power_kw × $/kW
    capex_gross   = capex_solar + capex_battery

Incentives, in order of application:

1. Utility rebates, limited by an overall program cap of
   ``program_cap_pct × capex_gross``. Solar is served first:
   ``hq_solar = min(rate × min(pv, max_eligible), cap)``, then
   ``hq_battery = min(battery potential, cap − hq_solar)``.
2. Federal ITC on the post-rebate basis: ``itc_rate × (gross − rebates)``.
3. Depreciation tax shield on the post-ITC basis (see
   :mod:`pv_sizing_model.finance.tax`).

``capex_net = gross − hq_solar − hq_battery − itc − tax_shield`` is never
clamped at zero.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from pv_sizing_model.config.assumptions import AnalysisAssumptions
from pv_sizing_model.config.defaults import (
    DEFAULT_CCA_FIRST_YEAR_FACTOR,
    DEFAULT_CCA_RATE,
    DEFAULT_ITC_RATE,
    DEFAULT_MAX_ELIGIBLE_SOLAR_KW,
    DEFAULT_PROGRAM_CAP_PCT,
    DEFAULT_SOLAR_REBATE_PER_KW,
    INCENTIVE_FIRST_TRANCHE_SHARE,
    SOLAR_COST_TIERS,
    W_PER_KW,
)
from pv_sizing_model.errors import InvalidAssumptionsError
from pv_sizing_model.finance.tax import depreciation_tax_shield

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IncentiveRules:
    """Rate tables of the incentive programs.

    Attributes:
        solar_rebate_per_kw: Utility solar rebate in $/kW.
        max_eligible_solar_kw: PV capacity above which no solar rebate is paid.
        program_cap_pct: Overall utility cap as a fraction of gross CAPEX.
        battery_rebate_per_kwh: Utility battery rebate in $/kWh, or None to
            let the battery claim up to its full capex within the cap.
        battery_requires_solar: Battery rebate is only paid alongside PV.
        itc_rate: Federal ITC rate on the post-rebate basis.
        cca_rate: Declining-balance CCA rate.
        cca_first_year_factor: First-year CCA multiplier.
    """

    solar_rebate_per_kw: float = DEFAULT_SOLAR_REBATE_PER_KW
    max_eligible_solar_kw: float = DEFAULT_MAX_ELIGIBLE_SOLAR_KW
    program_cap_pct: float = DEFAULT_PROGRAM_CAP_PCT
    battery_rebate_per_kwh: float | None = None
    battery_requires_solar: bool = True
    itc_rate: float = DEFAULT_ITC_RATE
    cca_rate: float = DEFAULT_CCA_RATE
    cca_first_year_factor: float = DEFAULT_CCA_FIRST_YEAR_FACTOR

    def __post_init__(self) -> None:
        for name in ("solar_rebate_per_kw", "max_eligible_solar_kw", "cca_first_year_factor"):
            if getattr(self, name) < 0.0:
                raise InvalidAssumptionsError(f"'{name}' must be >= 0, got {getattr(self, name)}")
        for name in ("program_cap_pct", "itc_rate", "cca_rate"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise InvalidAssumptionsError(
                    f"'{name}' must be in [0, 1], got {getattr(self, name)}"
                )
        if self.battery_rebate_per_kwh is not None and self.battery_rebate_per_kwh < 0.0:
            raise InvalidAssumptionsError(
                f"'battery_rebate_per_kwh' must be >= 0, got {self.battery_rebate_per_kwh}"
            )


DEFAULT_INCENTIVES = IncentiveRules()


@dataclass(frozen=True)
class IncentiveSchedule:
    """Incentive disbursements in project years 0, 1 and 2 (dollars)."""

    year0: float
    year1: float
    year2: float

    @property
    def total(self) -> float:
        return self.year0 + self.year1 + self.year2

    def for_year(self, year: int) -> float:
        """Disbursement in *year* (0.0 outside years 0–2)."""
        return {0: self.year0, 1: self.year1, 2: self.year2}.get(year, 0.0)


@dataclass(frozen=True)
class FinancialBreakdown:
    """Gross-to-net CAPEX walk of one sizing (all values in dollars).

    Identities:
        ``capex_gross == capex_solar + capex_battery``
        ``capex_net == capex_gross − actual_hq_solar − actual_hq_battery
        − itc_amount − tax_shield``
    """

    capex_solar: float
    capex_battery: float
    capex_gross: float
    potential_hq_solar: float
    potential_hq_battery: float
    program_cap: float
    actual_hq_solar: float
    actual_hq_battery: float
    total_hq: float
    itc_basis: float
    itc_amount: float
    depreciable_basis: float
    tax_shield: float
    capex_net: float

    def incentive_schedule(self) -> IncentiveSchedule:
        """Disbursement timing for owned systems (cash purchase and loan).

        The solar rebate is paid at commissioning, the battery rebate in two
        halves, the tax shield with the first tax return and the ITC one year
        later.
        """
        half_battery = self.actual_hq_battery * INCENTIVE_FIRST_TRANCHE_SHARE
        return IncentiveSchedule(
            year0=self.actual_hq_solar + half_battery,
            year1=self.actual_hq_battery - half_battery + self.tax_shield,
            year2=self.itc_amount,
        )

    def lease_incentive_schedule(self) -> IncentiveSchedule:
        """Disbursement timing when the rebates are routed through a lease.

        Both utility rebates are split evenly over years 0 and 1.
        """
        share = INCENTIVE_FIRST_TRANCHE_SHARE
        first = share * (self.actual_hq_solar + self.actual_hq_battery)
        return IncentiveSchedule(
            year0=first,
            year1=self.total_hq - first + self.tax_shield,
            year2=self.itc_amount,
        )


# ---------------------------------------------------------------------------
# Calculation
# ---------------------------------------------------------------------------


def solar_cost_per_w(pv_size_kw: float, assumptions: AnalysisAssumptions) -> float:
    """Installed solar cost in $/W for a given system size.

    Uses the flat ``solar_cost_per_w`` unless ``solar_cost_tiered`` is set,
    in which case the size tier of :data:`SOLAR_COST_TIERS` applies. The
    bifacial premium is added in both cases when bifacial modules are enabled.
    """
    if not assumptions.solar_cost_tiered:
        return assumptions.effective_solar_cost_per_w

    premium = assumptions.bifacial_cost_premium if assumptions.bifacial_enabled else 0.0
    for min_kw, cost in SOLAR_COST_TIERS:
        if pv_size_kw >= min_kw:
            return cost + premium
    return SOLAR_COST_TIERS[-1][1] + premium


def _check_non_negative(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0.0:
        raise InvalidAssumptionsError(f"'{name}' must be a finite value >= 0, got {value}")
    return value


def compute_breakdown(
    pv_size_kw: float,
    batt_energy_kwh: float,
    batt_power_kw: float,
    assumptions: AnalysisAssumptions,
    incentives: IncentiveRules = DEFAULT_INCENTIVES,
) -> FinancialBreakdown:
    """Compute gross CAPEX, incentives and net CAPEX for one sizing.

    Parameters
    ----------
    pv_size_kw:
        PV DC nameplate in kW.
    batt_energy_kwh:
        Battery capacity in kWh.
    batt_power_kw:
        Battery power in kW.
    assumptions:
        Cost, tax and discount-rate inputs. Never modified.
    incentives:
        Rebate, ITC and CCA rate tables.

    Returns
    -------
    FinancialBreakdown
        The complete gross-to-net walk.

    Raises
    ------
    InvalidAssumptionsError
        When any size or cost coefficient is negative.
    """
    pv = _check_non_negative("pv_size_kw", pv_size_kw)
    energy = _check_non_negative("batt_energy_kwh", batt_energy_kwh)
    power = _check_non_negative("batt_power_kw", batt_power_kw)
    _check_non_negative("solar_cost_per_w", assumptions.solar_cost_per_w)
    _check_non_negative("battery_capacity_cost", assumptions.battery_capacity_cost)
    _check_non_negative("battery_power_cost", assumptions.battery_power_cost)

    capex_solar = pv * W_PER_KW * solar_cost_per_w(pv, assumptions)
    capex_battery = (
        energy * assumptions.battery_capacity_cost + power * assumptions.battery_power_cost
    )
    capex_gross = capex_solar + capex_battery

    potential_hq_solar = incentives.solar_rebate_per_kw * min(pv, incentives.max_eligible_solar_kw)
    if incentives.battery_requires_solar and pv <= 0.0:
        potential_hq_battery = 0.0
    elif incentives.battery_rebate_per_kwh is None:
        potential_hq_battery = capex_battery
    else:
        potential_hq_battery = incentives.battery_rebate_per_kwh * energy

    program_cap = incentives.program_cap_pct * capex_gross
    actual_hq_solar = min(potential_hq_solar, program_cap)
    actual_hq_battery = min(potential_hq_battery, program_cap - actual_hq_solar)
    total_hq = actual_hq_solar + actual_hq_battery

    itc_basis = capex_gross - total_hq
    itc_amount = incentives.itc_rate * itc_basis
    depreciable_basis = capex_gross - total_hq - itc_amount
    tax_shield = depreciation_tax_shield(
        depreciable_basis,
        assumptions.tax_rate,
        assumptions.discount_rate,
        rate=incentives.cca_rate,
        first_year_factor=incentives.cca_first_year_factor,
    )

    capex_net = capex_gross - actual_hq_solar - actual_hq_battery - itc_amount - tax_shield

    logger.debug(
        "Breakdown PV %.1f kW, battery %.1f kWh / %.1f kW: gross %.0f, rebates %.0f, "
        "ITC %.0f, tax shield %.0f, net %.0f.",
        pv,
        energy,
        power,
        capex_gross,
        total_hq,
        itc_amount,
        tax_shield,
        capex_net,
    )

    return FinancialBreakdown(
        capex_solar=capex_solar,
        capex_battery=capex_battery,
        capex_gross=capex_gross,
        potential_hq_solar=potential_hq_solar,
        potential_hq_battery=potential_hq_battery,
        program_cap=program_cap,
        actual_hq_solar=actual_hq_solar,
        actual_hq_battery=actual_hq_battery,
        total_hq=total_hq,
        itc_basis=itc_basis,
        itc_amount=itc_amount,
        depreciable_basis=depreciable_basis,
        tax_shield=tax_shield,
        capex_net=capex_net,
    )
