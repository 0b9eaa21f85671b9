"""Battery state model: SoC tracking and charge/discharge limits.

The efficiency model applies losses on discharge only:
  - Charging is lossless: 1 kWh accepted → 1 kWh SoC increase.
  - Delivered energy = kWh removed from SoC × round-trip efficiency.
  - The power rating limits the energy exchanged with the site: at most
    ``power_kw`` kWh accepted or delivered per hour. A full-power discharge
    therefore removes ``power_kw / RTE`` from SoC.

All power values are in kW (= kWh per hour for 1-hour timesteps).
All energy values are in kWh.
"""

from __future__ import annotations

import logging

from pv_sizing_model.config.defaults import (
    BATTERY_MAX_SOC_PCT,
    BATTERY_MIN_SOC_PCT,
    DEFAULT_START_SOC_FRACTION,
)

logger = logging.getLogger(__name__)


class BatteryState:
    """Instantaneous state of a behind-the-meter battery.

    Tracks current SoC, applies charge/discharge with the energy and power
    limits, and accumulates throughput for reporting.

    Efficiency convention
    ---------------------
    Charging is lossless (1 kWh in → 1 kWh SoC increase).
    Discharging applies the round-trip efficiency on the *output* side:
        delivered_kwh = kWh_removed_from_soc × round_trip_efficiency

    The power rating applies on the site side of the converter, so delivered
    energy never exceeds ``power_kw`` per hour.
    """

    def __init__(
        self,
        capacity_kwh: float,
        power_kw: float,
        round_trip_efficiency: float,
        min_soc_pct: float = BATTERY_MIN_SOC_PCT,
        max_soc_pct: float = BATTERY_MAX_SOC_PCT,
        initial_soc_fraction: float = DEFAULT_START_SOC_FRACTION,
    ) -> None:
        """Initialise a BatteryState.

        Args:
            capacity_kwh: Usable nameplate energy capacity in kWh.
            power_kw: Maximum charge and discharge power in kW.
            round_trip_efficiency: Round-trip efficiency as a fraction in
                (0, 1]. Losses are applied on discharge only.
            min_soc_pct: Minimum allowable SoC as % of capacity.
            max_soc_pct: Maximum allowable SoC as % of capacity.
            initial_soc_fraction: Starting SoC as a fraction of capacity,
                clipped to the SoC window.

        Raises:
            ValueError: If any parameter is outside its valid range.
        """
        if capacity_kwh < 0.0:
            raise ValueError(f"capacity_kwh must be >= 0, got {capacity_kwh}")
        if power_kw < 0.0:
            raise ValueError(f"power_kw must be >= 0, got {power_kw}")
        if not 0.0 < round_trip_efficiency <= 1.0:
            raise ValueError(
                f"round_trip_efficiency must be in (0, 1], got {round_trip_efficiency}"
            )
        if not 0.0 <= min_soc_pct < max_soc_pct <= 100.0:
            raise ValueError(
                f"Require 0 <= min_soc_pct < max_soc_pct <= 100, "
                f"got min={min_soc_pct}, max={max_soc_pct}"
            )

        self.capacity_kwh: float = capacity_kwh
        self.power_kw: float = power_kw
        self.round_trip_efficiency: float = round_trip_efficiency
        self.min_soc_pct: float = min_soc_pct
        self.max_soc_pct: float = max_soc_pct

        self.cumulative_throughput_kwh: float = 0.0
        self.current_soc_kwh: float = min(
            max(capacity_kwh * initial_soc_fraction, self.min_soc_kwh),
            self.max_soc_kwh,
        )

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------

    @property
    def min_soc_kwh(self) -> float:
        """Lower SoC limit in kWh."""
        return self.capacity_kwh * self.min_soc_pct / 100.0

    @property
    def max_soc_kwh(self) -> float:
        """Upper SoC limit in kWh."""
        return self.capacity_kwh * self.max_soc_pct / 100.0

    @property
    def headroom_kwh(self) -> float:
        """Energy that can still be charged before reaching the upper limit."""
        return max(0.0, self.max_soc_kwh - self.current_soc_kwh)

    # ------------------------------------------------------------------
    # Charge / discharge
    # ------------------------------------------------------------------

    def charge(self, kwh: float) -> float:
        """Charge the battery by up to *kwh* kilowatt-hours.

        The accepted amount is the minimum of the request, the headroom to
        ``max_soc_kwh`` and the power limit.

        Args:
            kwh: Requested charge in kWh. Must be >= 0.

        Returns:
            Actual kWh charged into the battery.

        Raises:
            ValueError: If *kwh* is negative.
        """
        if kwh < 0.0:
            raise ValueError(f"Requested charge must be >= 0, got {kwh}")

        actual_kwh = min(kwh, self.headroom_kwh, self.power_kw)
        self.current_soc_kwh += actual_kwh
        self.cumulative_throughput_kwh += actual_kwh
        return actual_kwh

    def discharge(self, kwh: float) -> float:
        """Deliver up to *kwh* kilowatt-hours to the load.

        To deliver ``x`` kWh, ``x / RTE`` kWh are removed from SoC. The removal
        is limited by the energy above ``min_soc_kwh``; delivery is limited by
        the power rating.

        Args:
            kwh: Requested delivered energy in kWh. Must be >= 0.

        Returns:
            Actual kWh delivered (= kWh removed × round-trip efficiency).

        Raises:
            ValueError: If *kwh* is negative.
        """
        if kwh < 0.0:
            raise ValueError(f"Requested discharge must be >= 0, got {kwh}")

        available = max(0.0, self.current_soc_kwh - self.min_soc_kwh)
        removed_kwh = min(kwh, self.power_kw) / self.round_trip_efficiency
        removed_kwh = min(removed_kwh, available)

        self.current_soc_kwh -= removed_kwh
        self.cumulative_throughput_kwh += removed_kwh
        return removed_kwh * self.round_trip_efficiency
