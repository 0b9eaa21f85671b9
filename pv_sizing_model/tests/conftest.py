"""Shared pytest fixtures for the pv_sizing_model test suite.

All fixtures provide synthetic, deterministic data so tests run without meter
exports. Profiles are kept short (two weeks) wherever a test simulates many
sizings, so sweeps finish in seconds.

Reference breakdown (used by the cost and financing tests)
-----------------------------------------------------------
PV 100 kW @ 2.00 $/W, no battery:
  capex_gross      = 100 kW × 1000 W/kW × 2.00 $/W          = 200 000 $
  potential rebate = 1000 $/kW × 100 kW                      = 100 000 $
  program cap      = 40 % × 200 000 $                        =  80 000 $
  actual rebate    = min(100 000, 80 000)                    =  80 000 $
  ITC              = 30 % × (200 000 − 80 000)               =  36 000 $
  depreciable      = 200 000 − 80 000 − 36 000               =  84 000 $

Reference NPV: 20 000 $/year flat for 25 years against 150 000 $ at 6 %
  NPV     = 20 000 × (1 − 1.06^−25) / 0.06 − 150 000        ≈ 105 667 $
  payback = 7 + 10 000 / 20 000                              = 7.5 years
"""

from __future__ import annotations

import numpy as np
import pytest

from pv_sizing_model.config.assumptions import AnalysisAssumptions
from pv_sizing_model.load.profile import LoadProfile

TWO_WEEKS_HOURS = 14 * 24


def make_daytime_profile(
    n_days: int = 14,
    month: int = 6,
    base_kwh: float = 40.0,
    daytime_extra_kwh: float = 30.0,
    peak_ratio: float = 1.2,
) -> LoadProfile:
    """Commercial-looking load: flat base plus a 08–18 h plateau.

    All rows are placed in *month* so the solar model sees a consistent
    season. Demand readings are ``peak_ratio`` × hourly energy.
    """
    hour = np.tile(np.arange(24), n_days)
    daytime = (hour >= 8) & (hour <= 18)
    consumption = base_kwh + daytime_extra_kwh * daytime
    return LoadProfile(
        consumption_kwh=consumption.astype(float),
        hour=hour,
        month=np.full(len(hour), month),
        peak_kw=consumption * peak_ratio,
    )


# ---------------------------------------------------------------------------
# Assumptions
# ---------------------------------------------------------------------------


@pytest.fixture
def default_assumptions() -> AnalysisAssumptions:
    """Assumptions with every field at its default."""
    return AnalysisAssumptions()


@pytest.fixture
def two_dollar_solar() -> AnalysisAssumptions:
    """Defaults with solar at a flat 2.00 $/W."""
    return AnalysisAssumptions(solar_cost_per_w=2.0)


@pytest.fixture
def no_tariff_assumptions() -> AnalysisAssumptions:
    """Assumptions under which no sizing can save money."""
    return AnalysisAssumptions(
        tariff_energy=0.0,
        tariff_power=0.0,
        surplus_compensation_rate=0.0,
    )


# ---------------------------------------------------------------------------
# Load profiles
# ---------------------------------------------------------------------------


@pytest.fixture
def flat_year_profile() -> LoadProfile:
    """Full year at a constant 10 000 kWh/year, without demand readings."""
    return LoadProfile.from_hourly(np.full(8760, 10_000.0 / 8760))


@pytest.fixture
def summer_profile() -> LoadProfile:
    """Two June weeks of a daytime-heavy commercial load (70 kW peak energy)."""
    return make_daytime_profile()


@pytest.fixture
def profile_factory():
    """Return :func:`make_daytime_profile` for tests that need variants."""
    return make_daytime_profile
