"""Recurring battery replacement events.

The battery is replaced every ``year`` project years within the analysis
horizon (year, 2 × year, …). The cost of a replacement in project year *y*
follows a price curve where cost inflation is offset by the expected decline
of battery prices:

    cost[y] = cost_factor × original_battery_capex × (1 + inflation − decline) ^ y
"""

from __future__ import annotations

from dataclasses import dataclass

from pv_sizing_model.finance.inflation import compound, net_price_rate


@dataclass(frozen=True)
class BatteryReplacement:
    """Battery replacement schedule and cost curve.

    Attributes:
        year: Replacement interval in project years. ``0`` disables
            replacement entirely.
        cost_factor: Replacement cost as a fraction of the original battery
            capex (e.g. 0.6 for 60 %).
        price_decline_rate: Expected annual decline of battery prices as a
            decimal, netted against inflation.
    """

    year: int
    cost_factor: float
    price_decline_rate: float

    def __post_init__(self) -> None:
        if self.year < 0:
            raise ValueError(f"Replacement year must be >= 0, got {self.year}")
        if self.cost_factor < 0.0:
            raise ValueError(f"Replacement cost_factor must be >= 0, got {self.cost_factor}")

    def replacement_years(self, horizon_years: int) -> list[int]:
        """Return the project years (1-indexed) in which a replacement occurs.

        Args:
            horizon_years: Last project year of the analysis.

        Returns:
            Sorted list of replacement years, empty when disabled.
        """
        if self.year <= 0:
            return []
        return list(range(self.year, horizon_years + 1, self.year))

    def cost(self, battery_capex: float, year: int, inflation_rate: float) -> float:
        """Compute the replacement cost for a given project year.

        Args:
            battery_capex: Original battery capex in dollars.
            year: Project year of the replacement.
            inflation_rate: Annual inflation rate as a decimal.

        Returns:
            Replacement cost in dollars (0.0 without a battery).
        """
        if battery_capex <= 0.0:
            return 0.0
        rate = net_price_rate(inflation_rate, self.price_decline_rate)
        return compound(self.cost_factor * battery_capex, rate, year)


def replacement_from_assumptions(assumptions) -> BatteryReplacement:
    """Build a :class:`BatteryReplacement` from an ``AnalysisAssumptions`` record."""
    return BatteryReplacement(
        year=assumptions.battery_replacement_year,
        cost_factor=assumptions.battery_replacement_cost_factor,
        price_decline_rate=assumptions.battery_price_decline_rate,
    )
