"""Hourly load profile: validation, calendar annotation, representative year.

A :class:`LoadProfile` is the consumption input of the simulation engine:

- ``consumption_kwh`` – energy drawn in each hourly row (kWh).
- ``peak_kw`` – highest demand within each hourly row (kW). When the meter
  export carries no demand column it is ``None`` and the hourly energy is used
  as the average demand.
- ``hour`` / ``month`` – hour of day (0–23) and calendar month (1–12).
- ``interpolated_months`` – months that had no meter data and were filled by
  :func:`build_load_profile`. They are carried through to the run result and
  never hidden.

The profile may cover fewer or more hours than one year;
:attr:`LoadProfile.annualization_factor` scales energy totals to 8 760 h.
Negative or non-finite values raise :class:`InvalidProfileError`; nothing is
zero-filled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from pv_sizing_model.config.defaults import (
    CALENDAR_REFERENCE_YEAR,
    HOURS_PER_DAY,
    HOURS_PER_YEAR,
    MONTHS_PER_YEAR,
)
from pv_sizing_model.errors import InvalidProfileError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Profile container
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class LoadProfile:
    """Validated hourly consumption profile.

    Attributes:
        consumption_kwh: Hourly consumption in kWh, shape ``(n,)``.
        hour: Hour of day of each row (0–23), shape ``(n,)``.
        month: Calendar month of each row (1–12), shape ``(n,)``.
        peak_kw: Hourly maximum demand in kW, or None without demand data.
        interpolated_months: Months filled from neighbouring months.

    Raises:
        InvalidProfileError: If lengths differ, the profile is empty, or any
            value is negative, non-finite or outside its calendar range.
    """

    consumption_kwh: np.ndarray
    hour: np.ndarray
    month: np.ndarray
    peak_kw: np.ndarray | None = None
    interpolated_months: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        consumption = _as_float_array("consumption_kwh", self.consumption_kwh)
        n = len(consumption)
        if n == 0:
            raise InvalidProfileError("Load profile is empty.")

        hour = np.asarray(self.hour, dtype=int)
        month = np.asarray(self.month, dtype=int)
        for name, arr in (("hour", hour), ("month", month)):
            if arr.shape != (n,):
                raise InvalidProfileError(
                    f"'{name}' has shape {arr.shape}, expected ({n},) to match "
                    "consumption_kwh."
                )
        if hour.min() < 0 or hour.max() >= HOURS_PER_DAY:
            raise InvalidProfileError("'hour' values must lie in 0..23.")
        if month.min() < 1 or month.max() > MONTHS_PER_YEAR:
            raise InvalidProfileError("'month' values must lie in 1..12.")

        peak = None
        if self.peak_kw is not None:
            peak = _as_float_array("peak_kw", self.peak_kw)
            if peak.shape != (n,):
                raise InvalidProfileError(
                    f"'peak_kw' has shape {peak.shape}, expected ({n},)."
                )

        object.__setattr__(self, "consumption_kwh", consumption)
        object.__setattr__(self, "hour", hour)
        object.__setattr__(self, "month", month)
        object.__setattr__(self, "peak_kw", peak)
        object.__setattr__(
            self, "interpolated_months", tuple(sorted(int(m) for m in self.interpolated_months))
        )

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_hourly(
        cls,
        consumption_kwh: np.ndarray | list[float],
        peak_kw: np.ndarray | list[float] | None = None,
    ) -> LoadProfile:
        """Attach a non-leap calendar starting on 1 January to bare hourly values."""
        n = len(consumption_kwh)
        index = pd.date_range(f"{CALENDAR_REFERENCE_YEAR}-01-01", periods=n, freq="h")
        return cls(
            consumption_kwh=np.asarray(consumption_kwh, dtype=float),
            hour=index.hour.to_numpy(),
            month=index.month.to_numpy(),
            peak_kw=None if peak_kw is None else np.asarray(peak_kw, dtype=float),
        )

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------

    @property
    def n_hours(self) -> int:
        """Number of hourly rows."""
        return len(self.consumption_kwh)

    @property
    def has_power_data(self) -> bool:
        """True when a measured demand series is available."""
        return self.peak_kw is not None

    @property
    def demand_kw(self) -> np.ndarray:
        """Hourly demand: measured peaks, or average demand from energy."""
        return self.peak_kw if self.peak_kw is not None else self.consumption_kwh

    @property
    def annualization_factor(self) -> float:
        """Multiplier that scales profile energy totals to one year."""
        return HOURS_PER_YEAR / self.n_hours

    @property
    def annual_consumption_kwh(self) -> float:
        """Consumption scaled to one year in kWh."""
        return float(self.consumption_kwh.sum()) * self.annualization_factor

    @property
    def peak_demand_kw(self) -> float:
        """Highest demand over the profile in kW."""
        return float(self.demand_kw.max())


def _as_float_array(name: str, values: np.ndarray | list[float]) -> np.ndarray:
    """Convert to a 1-D float array, rejecting negative or non-finite values."""
    try:
        arr = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidProfileError(f"'{name}' contains non-numeric values: {exc}") from exc
    if arr.ndim != 1:
        raise InvalidProfileError(f"'{name}' must be one-dimensional, got shape {arr.shape}.")

    bad = ~np.isfinite(arr)
    if bad.any():
        raise InvalidProfileError(
            f"'{name}' has {int(bad.sum())} non-finite value(s); "
            f"first at row {int(np.argmax(bad))}."
        )
    negative = arr < 0.0
    if negative.any():
        raise InvalidProfileError(
            f"'{name}' has {int(negative.sum())} negative value(s); "
            f"first at row {int(np.argmax(negative))} ({arr[np.argmax(negative)]})."
        )
    return arr


# ---------------------------------------------------------------------------
# Representative year from interval-meter readings
# ---------------------------------------------------------------------------


def build_load_profile(
    readings_kwh: pd.Series,
    peak_kw: pd.Series | None = None,
) -> LoadProfile:
    """Resample interval-meter readings to an hourly representative profile.

    Steps:

    1. Energy readings are summed per clock hour; hours without any reading
       are dropped (not zero-filled).
    2. Demand is the hourly maximum of *peak_kw*, or of the interval energy
       divided by the interval length when no demand series is given. Hours
       with energy but no demand reading use their average demand.
    3. Calendar months without any reading are synthesised from the mean
       hour-of-day shape of the nearest preceding and following months with
       data (wrapping around the year). They are logged and listed in
       ``interpolated_months``.

    Args:
        readings_kwh: Energy per metering interval, indexed by timestamps.
        peak_kw: Optional demand readings (kW), indexed by timestamps.

    Returns:
        A validated :class:`LoadProfile`, rows ordered by calendar month.

    Raises:
        InvalidProfileError: If the index is not a DatetimeIndex, no reading
            remains, or any value is negative or non-finite.
    """
    readings = _validated_series("readings_kwh", readings_kwh)
    hourly_kwh = readings.resample("h").sum(min_count=1).dropna()
    if hourly_kwh.empty:
        raise InvalidProfileError("No meter readings to build a load profile from.")

    if peak_kw is not None:
        demand = _validated_series("peak_kw", peak_kw)
        hourly_kw = demand.resample("h").max().reindex(hourly_kwh.index)
        hourly_kw = hourly_kw.fillna(hourly_kwh)
    else:
        interval_h = _interval_hours(readings.index)
        hourly_kw = (readings / interval_h).resample("h").max().reindex(hourly_kwh.index)

    frame = pd.DataFrame(
        {
            "consumption": hourly_kwh.to_numpy(),
            "peak": hourly_kw.to_numpy(),
            "hour": hourly_kwh.index.hour,
            "month": hourly_kwh.index.month,
        }
    )

    months_with_data = sorted(set(frame["month"]))
    missing = [m for m in range(1, MONTHS_PER_YEAR + 1) if m not in months_with_data]
    if missing:
        logger.warning(
            "No meter data for month(s) %s; interpolating from neighbouring months.",
            missing,
        )
        frame = pd.concat(
            [frame] + [_synthesise_month(frame, m, months_with_data) for m in missing],
            ignore_index=True,
        )

    frame = frame.sort_values("month", kind="stable")
    logger.info(
        "Built load profile: %d hourly rows, %.0f kWh, peak %.1f kW, %d interpolated month(s).",
        len(frame),
        frame["consumption"].sum(),
        frame["peak"].max(),
        len(missing),
    )
    return LoadProfile(
        consumption_kwh=frame["consumption"].to_numpy(dtype=float),
        hour=frame["hour"].to_numpy(dtype=int),
        month=frame["month"].to_numpy(dtype=int),
        peak_kw=frame["peak"].to_numpy(dtype=float),
        interpolated_months=tuple(missing),
    )


def _validated_series(name: str, series: pd.Series) -> pd.Series:
    """Check index type and values of a meter series."""
    if not isinstance(series.index, pd.DatetimeIndex):
        raise InvalidProfileError(f"'{name}' must be indexed by a DatetimeIndex.")
    _as_float_array(name, series.to_numpy())
    return series.astype(float).sort_index()


def _interval_hours(index: pd.DatetimeIndex) -> float:
    """Median metering interval in hours (1.0 for a single reading)."""
    if len(index) < 2:
        return 1.0
    step = pd.Series(index).diff().dropna().median()
    hours = step / pd.Timedelta(hours=1)
    return float(hours) if hours > 0 else 1.0


def _neighbour(month: int, available: list[int], direction: int) -> int:
    """Nearest month with data before (-1) or after (+1) *month*, wrapping."""
    for offset in range(1, MONTHS_PER_YEAR):
        candidate = (month - 1 + direction * offset) % MONTHS_PER_YEAR + 1
        if candidate in available:
            return candidate
    raise InvalidProfileError("No month with data to interpolate from.")


def _synthesise_month(
    frame: pd.DataFrame,
    month: int,
    months_with_data: list[int],
) -> pd.DataFrame:
    """Build the rows of a missing month from its neighbours' daily shape."""
    sources = {_neighbour(month, months_with_data, -1), _neighbour(month, months_with_data, 1)}
    shape = (
        frame[frame["month"].isin(sources)]
        .groupby(["month", "hour"])[["consumption", "peak"]]
        .mean()
        .groupby(level="hour")
        .mean()
        .reindex(range(HOURS_PER_DAY))
        .interpolate(limit_direction="both")
    )
    days = pd.Timestamp(year=CALENDAR_REFERENCE_YEAR, month=month, day=1).days_in_month
    return pd.DataFrame(
        {
            "consumption": np.tile(shape["consumption"].to_numpy(), days),
            "peak": np.tile(shape["peak"].to_numpy(), days),
            "hour": np.tile(np.arange(HOURS_PER_DAY), days),
            "month": month,
        }
    )
