"""Immutable analysis assumptions and the canonical defaults merge.

:class:`AnalysisAssumptions` is the single configuration record of one
analysis run. It is frozen, every field has a documented default from
:mod:`pv_sizing_model.config.defaults`, and it validates itself against the
JSON schema on construction, so an out-of-range value can never reach the
simulation.

:func:`merge_assumptions` is the only supported way to apply a partial
override: the result is total (no field can be left undefined) and equal to
the override where one is given.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from pv_sizing_model.config.defaults import (
    BIFACIAL_REAR_IRRADIANCE_RATIO,
    DEFAULT_ANALYSIS_YEARS,
    DEFAULT_BATTERY_CAPACITY_COST,
    DEFAULT_BATTERY_POWER_COST,
    DEFAULT_BATTERY_PRICE_DECLINE_RATE,
    DEFAULT_BATTERY_REPLACEMENT_COST_FACTOR,
    DEFAULT_BATTERY_REPLACEMENT_YEAR,
    DEFAULT_BATTERY_ROUND_TRIP_EFFICIENCY,
    DEFAULT_BIFACIAL_COST_PREMIUM,
    DEFAULT_BIFACIALITY_FACTOR,
    DEFAULT_CCA_RATE,
    DEFAULT_DEGRADATION_RATE,
    DEFAULT_DISCOUNT_RATE,
    DEFAULT_DISPATCH_STRATEGY,
    DEFAULT_INFLATION_RATE,
    DEFAULT_INVERTER_LOAD_RATIO,
    DEFAULT_OM_BATTERY_PERCENT,
    DEFAULT_OM_ESCALATION,
    DEFAULT_OM_SOLAR_PERCENT,
    DEFAULT_ORIENTATION_FACTOR,
    DEFAULT_ROOF_ALBEDO,
    DEFAULT_ROOF_AREA_SQ_FT,
    DEFAULT_ROOF_UTILIZATION_RATIO,
    DEFAULT_SNOW_LOSS_PROFILE,
    DEFAULT_SOLAR_COST_PER_W,
    DEFAULT_SOLAR_YIELD_KWH_PER_KWP,
    DEFAULT_SURPLUS_COMPENSATION_RATE,
    DEFAULT_SURPLUS_COMPENSATION_START_YEAR,
    DEFAULT_TARIFF_CODE,
    DEFAULT_TARIFF_ENERGY,
    DEFAULT_TARIFF_POWER,
    DEFAULT_TAX_RATE,
    DEFAULT_TEMPERATURE_COEFFICIENT,
    DEFAULT_WIRE_LOSS_PERCENT,
)
from pv_sizing_model.config.schema import validate_assumptions
from pv_sizing_model.errors import InvalidAssumptionsError
from pv_sizing_model.market.tariffs import resolve_rates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisAssumptions:
    """Complete, validated set of assumptions for one analysis run.

    Rates and ratios are fractions (0.08 = 8 %). Costs are in dollars;
    solar cost per W DC, battery cost per kWh of capacity and per kW of
    power. Roof area is stored in square feet.

    Raises:
        InvalidAssumptionsError: On construction, if any field is of the wrong
            type or outside its admissible range.
    """

    # Tariff
    tariff_code: str = DEFAULT_TARIFF_CODE
    tariff_energy: float = DEFAULT_TARIFF_ENERGY
    tariff_power: float = DEFAULT_TARIFF_POWER

    # Capital costs
    solar_cost_per_w: float = DEFAULT_SOLAR_COST_PER_W
    solar_cost_tiered: bool = False
    battery_capacity_cost: float = DEFAULT_BATTERY_CAPACITY_COST
    battery_power_cost: float = DEFAULT_BATTERY_POWER_COST

    # Finance
    discount_rate: float = DEFAULT_DISCOUNT_RATE
    inflation_rate: float = DEFAULT_INFLATION_RATE
    tax_rate: float = DEFAULT_TAX_RATE
    om_solar_percent: float = DEFAULT_OM_SOLAR_PERCENT
    om_battery_percent: float = DEFAULT_OM_BATTERY_PERCENT
    om_escalation: float = DEFAULT_OM_ESCALATION
    analysis_years: int = DEFAULT_ANALYSIS_YEARS

    # Battery
    battery_replacement_year: int = DEFAULT_BATTERY_REPLACEMENT_YEAR
    battery_replacement_cost_factor: float = DEFAULT_BATTERY_REPLACEMENT_COST_FACTOR
    battery_price_decline_rate: float = DEFAULT_BATTERY_PRICE_DECLINE_RATE
    battery_round_trip_efficiency: float = DEFAULT_BATTERY_ROUND_TRIP_EFFICIENCY
    dispatch_strategy: str = DEFAULT_DISPATCH_STRATEGY

    # Roof
    roof_area_sq_ft: float = DEFAULT_ROOF_AREA_SQ_FT
    roof_utilization_ratio: float = DEFAULT_ROOF_UTILIZATION_RATIO

    # PV performance
    solar_yield_kwh_per_kwp: float = DEFAULT_SOLAR_YIELD_KWH_PER_KWP
    orientation_factor: float = DEFAULT_ORIENTATION_FACTOR
    inverter_load_ratio: float = DEFAULT_INVERTER_LOAD_RATIO
    temperature_coefficient: float = DEFAULT_TEMPERATURE_COEFFICIENT
    wire_loss_percent: float = DEFAULT_WIRE_LOSS_PERCENT
    degradation_rate: float = DEFAULT_DEGRADATION_RATE
    snow_loss_profile: str = DEFAULT_SNOW_LOSS_PROFILE

    # Bifacial modules
    bifacial_enabled: bool = False
    bifaciality_factor: float = DEFAULT_BIFACIALITY_FACTOR
    roof_albedo: float = DEFAULT_ROOF_ALBEDO
    bifacial_cost_premium: float = DEFAULT_BIFACIAL_COST_PREMIUM

    # Surplus compensation
    surplus_compensation_rate: float = DEFAULT_SURPLUS_COMPENSATION_RATE
    surplus_compensation_start_year: int = DEFAULT_SURPLUS_COMPENSATION_START_YEAR

    def __post_init__(self) -> None:
        validate_assumptions(dataclasses.asdict(self))
        check_discount_rate(self.discount_rate, DEFAULT_CCA_RATE)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def bifacial_boost(self) -> float:
        """Production multiplier from rear-side gain (1.0 when disabled)."""
        if not self.bifacial_enabled:
            return 1.0
        return 1.0 + self.bifaciality_factor * self.roof_albedo * BIFACIAL_REAR_IRRADIANCE_RATIO

    @property
    def effective_solar_cost_per_w(self) -> float:
        """Flat solar cost per W including the bifacial premium when enabled."""
        premium = self.bifacial_cost_premium if self.bifacial_enabled else 0.0
        return self.solar_cost_per_w + premium

    def to_dict(self) -> dict[str, Any]:
        """Return all fields as a plain dictionary."""
        return dataclasses.asdict(self)


def check_discount_rate(discount_rate: float, cca_rate: float) -> None:
    """Reject a discount rate at which the CCA tax shield has no present value.

    The shield discounts a declining balance at ``cca_rate``; its closed form
    needs ``discount_rate + cca_rate > 0``.

    Raises:
        InvalidAssumptionsError: When the sum is not positive.
    """
    if discount_rate + cca_rate <= 0.0:
        raise InvalidAssumptionsError(
            f"'discount_rate' must be greater than {-cca_rate} (minus the CCA rate), "
            f"got {discount_rate}"
        )


_INTEGER_FIELDS = frozenset(
    f.name for f in dataclasses.fields(AnalysisAssumptions) if f.type == "int"
)


def merge_assumptions(
    overrides: Mapping[str, Any] | None = None,
    base: AnalysisAssumptions | None = None,
) -> AnalysisAssumptions:
    """Apply a partial override on top of a base record (defaults if omitted).

    When the override sets ``tariff_code`` but neither ``tariff_energy`` nor
    ``tariff_power``, both rates are resolved from the rate table so the code
    and the rates cannot disagree.

    Parameters
    ----------
    overrides:
        Mapping of field name → value. ``None`` or empty returns *base*.
    base:
        Record to start from. Defaults to ``AnalysisAssumptions()``.

    Returns
    -------
    AnalysisAssumptions
        A new, fully populated record.

    Raises
    ------
    InvalidAssumptionsError
        When a key is unknown or a value is out of range.
    """
    if base is None:
        base = AnalysisAssumptions()
    if not overrides:
        return base

    validate_assumptions(dict(overrides))
    updates = dict(overrides)

    if (
        "tariff_code" in updates
        and "tariff_energy" not in updates
        and "tariff_power" not in updates
    ):
        rates = resolve_rates(updates["tariff_code"])
        updates["tariff_energy"] = rates.energy_rate
        updates["tariff_power"] = rates.demand_rate
        logger.debug(
            "Resolved tariff '%s' → %.5f $/kWh, %.3f $/kW.",
            rates.code,
            rates.energy_rate,
            rates.demand_rate,
        )

    for name in _INTEGER_FIELDS.intersection(updates):
        updates[name] = int(updates[name])

    return dataclasses.replace(base, **updates)
