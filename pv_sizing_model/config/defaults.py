"""Global default values and constants.

All numeric constants used throughout the pv_sizing_model package must be
defined here rather than as inline literals. Import from this module wherever
a constant is needed to ensure a single source of truth and full traceability.
"""

# ---------------------------------------------------------------------------
# Time constants
# ---------------------------------------------------------------------------

HOURS_PER_YEAR: int = 8760
"""Number of hours in a non-leap year (365 × 24)."""

HOURS_PER_DAY: int = 24
"""Number of hourly timesteps per day."""

MONTHS_PER_YEAR: int = 12
"""Number of billing periods (calendar months) per year."""

HOURS_PER_MONTH: float = 730.0
"""Average number of hours in a month, used for load-factor calculations."""

MONTHS_PER_YEAR_PAYMENTS: int = 12
"""Number of loan/lease instalments per year (monthly amortisation)."""

CALENDAR_REFERENCE_YEAR: int = 2023
"""Non-leap year used to attach a calendar to bare hourly profiles."""

# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

SQ_FT_PER_SQ_M: float = 10.764
"""Square feet per square metre (areas are stored in ft², computed in m²)."""

W_PER_KW: float = 1000.0
"""Watts per kilowatt (solar cost is quoted in $/W)."""

KG_PER_TONNE: float = 1000.0
"""Kilograms per metric tonne."""

# ---------------------------------------------------------------------------
# Analysis assumptions (defaults for AnalysisAssumptions)
# ---------------------------------------------------------------------------

DEFAULT_TARIFF_CODE: str = "M"
"""Default utility rate class (medium-power commercial)."""

DEFAULT_TARIFF_ENERGY: float = 0.06061
"""Default energy rate in $/kWh (rate M, first tier)."""

DEFAULT_TARIFF_POWER: float = 17.573
"""Default demand rate in $/kW per month (rate M)."""

DEFAULT_SOLAR_COST_PER_W: float = 2.25
"""Default installed solar cost in $/W DC."""

DEFAULT_BATTERY_CAPACITY_COST: float = 550.0
"""Default battery energy cost in $/kWh."""

DEFAULT_BATTERY_POWER_COST: float = 800.0
"""Default battery power-conversion cost in $/kW."""

DEFAULT_DISCOUNT_RATE: float = 0.08
"""Default discount rate (8 %) used for NPV and LCOE."""

DEFAULT_INFLATION_RATE: float = 0.048
"""Default annual utility tariff inflation (4.8 %)."""

DEFAULT_TAX_RATE: float = 0.265
"""Default combined federal + provincial corporate tax rate."""

DEFAULT_OM_SOLAR_PERCENT: float = 0.01
"""Default annual solar O&M as a fraction of solar CAPEX."""

DEFAULT_OM_BATTERY_PERCENT: float = 0.005
"""Default annual battery O&M as a fraction of battery CAPEX."""

DEFAULT_OM_ESCALATION: float = 0.025
"""Default annual O&M cost escalation."""

DEFAULT_BATTERY_REPLACEMENT_YEAR: int = 10
"""Default battery replacement interval in project years."""

DEFAULT_BATTERY_REPLACEMENT_COST_FACTOR: float = 0.60
"""Replacement cost as a fraction of the original battery CAPEX."""

DEFAULT_BATTERY_PRICE_DECLINE_RATE: float = 0.05
"""Expected annual decline of battery prices (offsets inflation)."""

DEFAULT_BATTERY_ROUND_TRIP_EFFICIENCY: float = 0.90
"""Default battery round-trip efficiency (fraction, applied on discharge)."""

DEFAULT_ROOF_AREA_SQ_FT: float = 100_000.0
"""Default gross roof area in ft²."""

DEFAULT_ROOF_UTILIZATION_RATIO: float = 0.80
"""Fraction of the roof area usable for modules."""

DEFAULT_SOLAR_YIELD_KWH_PER_KWP: float = 1150.0
"""Default specific yield in kWh/kWp/year."""

DEFAULT_ORIENTATION_FACTOR: float = 1.0
"""Production multiplier for azimuth/tilt (1.0 = optimal orientation)."""

DEFAULT_INVERTER_LOAD_RATIO: float = 1.2
"""Default DC/AC ratio; the inverter clips at pv_size / ratio."""

DEFAULT_TEMPERATURE_COEFFICIENT: float = -0.004
"""Module power temperature coefficient per °C."""

DEFAULT_WIRE_LOSS_PERCENT: float = 0.02
"""DC wiring loss as a fraction of production."""

DEFAULT_DEGRADATION_RATE: float = 0.005
"""Annual PV production degradation as a fraction (0.5 %/year)."""

DEFAULT_SNOW_LOSS_PROFILE: str = "none"
"""Default snow-loss profile identifier."""

DEFAULT_BIFACIALITY_FACTOR: float = 0.85
"""Rear-side efficiency relative to the front side of bifacial modules."""

DEFAULT_ROOF_ALBEDO: float = 0.70
"""Albedo of a white membrane roof."""

DEFAULT_BIFACIAL_COST_PREMIUM: float = 0.10
"""Extra installed cost of bifacial modules in $/W."""

DEFAULT_SURPLUS_COMPENSATION_RATE: float = 0.0454
"""Compensation in $/kWh paid for exported surplus energy."""

DEFAULT_SURPLUS_COMPENSATION_START_YEAR: int = 3
"""First project year in which surplus credits are paid out."""

DEFAULT_ANALYSIS_YEARS: int = 25
"""Default length of the reported cashflow table in years."""

# ---------------------------------------------------------------------------
# Dispatch strategies
# ---------------------------------------------------------------------------

DISPATCH_SELF_CONSUMPTION: str = "self_consumption"
"""Battery charges from solar surplus and discharges against any deficit."""

DISPATCH_PEAK_SHAVING: str = "peak_shaving"
"""Battery discharges only above a demand setpoint to cut monthly peaks."""

DEFAULT_DISPATCH_STRATEGY: str = DISPATCH_SELF_CONSUMPTION
"""Default battery dispatch strategy."""

PEAK_SHAVING_SETPOINT_FRACTION: float = 0.90
"""Demand setpoint for peak shaving as a fraction of the annual peak."""

GRID_CHARGING_START_HOUR: int = 22
"""Hour of day from which overnight grid charging is allowed (peak shaving)."""

DEFAULT_START_SOC_FRACTION: float = 0.50
"""Initial battery state-of-charge (fraction of capacity)."""

BATTERY_MIN_SOC_PCT: float = 0.0
"""Lower SoC limit in % of capacity."""

BATTERY_MAX_SOC_PCT: float = 100.0
"""Upper SoC limit in % of capacity."""

PEAK_WEEK_HALF_WINDOW_HOURS: int = 40
"""Hours reported on each side of the annual peak in the peak-week slice."""

# ---------------------------------------------------------------------------
# PV production model
# ---------------------------------------------------------------------------

BASELINE_YIELD_KWH_PER_KWP: float = 1150.0
"""Specific yield the synthetic production shape is calibrated to."""

BASELINE_CAPACITY_FACTOR: float = 0.645
"""Scale of the bell × season shape that reproduces the baseline yield."""

SOLAR_NOON_HOUR: float = 13.0
"""Hour of maximum production (local standard time)."""

DIURNAL_SPREAD: float = 8.0
"""Denominator of the Gaussian diurnal bell exp(-(h - noon)² / spread)."""

SEASONAL_AMPLITUDE: float = 0.4
"""Relative amplitude of the seasonal cosine (peak in June)."""

SEASONAL_PEAK_MONTH: int = 6
"""Month of maximum seasonal production."""

DAYLIGHT_FIRST_HOUR: int = 5
"""First hour of day with production."""

DAYLIGHT_LAST_HOUR: int = 20
"""Last hour of day with production."""

STC_CELL_TEMPERATURE_C: float = 25.0
"""Cell temperature at standard test conditions."""

CELL_TEMPERATURE_RISE_C: float = 25.0
"""Cell temperature rise above ambient at full irradiance."""

MONTHLY_AMBIENT_TEMPERATURES_C: tuple[float, ...] = (
    -10.5, -9.2, -2.8, 5.7, 13.1, 18.2, 21.0, 19.8, 14.8, 8.2, 1.4, -7.0,
)
"""Average ambient temperature per calendar month (January first)."""

LID_LOSS_PERCENT: float = 0.01
"""Light-induced degradation loss in the first operating year."""

MISMATCH_LOSS_PERCENT: float = 0.02
"""Module mismatch loss."""

MISMATCH_STRINGS_LOSS_PERCENT: float = 0.0015
"""String-level mismatch loss."""

MODULE_QUALITY_GAIN_PERCENT: float = 0.0075
"""Positive power tolerance of modules."""

BIFACIAL_REAR_IRRADIANCE_RATIO: float = 0.25
"""Share of reflected irradiance reaching the module rear side."""

SNOW_LOSS_PROFILES: dict[str, tuple[float, ...]] = {
    "none": (0.0,) * 12,
    "flat_roof": (0.55, 0.45, 0.30, 0.05, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.10, 0.40),
    "tilted": (0.30, 0.25, 0.15, 0.02, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.05, 0.20),
    "ballasted_10deg": (0.18, 0.14, 0.10, 0.02, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.03, 0.13),
}
"""Monthly production loss from snow cover per racking type (January first)."""

SOLAR_COST_TIERS: tuple[tuple[float, float], ...] = (
    (3000.0, 1.70),
    (1000.0, 1.85),
    (500.0, 2.00),
    (100.0, 2.15),
    (0.0, 2.30),
)
"""(minimum kW, $/W) tiers for size-dependent solar pricing, largest first."""

# ---------------------------------------------------------------------------
# Roof capacity
# ---------------------------------------------------------------------------

PANEL_FOOTPRINT_SQ_M: float = 3.71
"""Roof area per module including row spacing and setbacks (m²)."""

PANEL_POWER_KW: float = 0.660
"""Nameplate power of one module (kW)."""

# ---------------------------------------------------------------------------
# Incentives
# ---------------------------------------------------------------------------

DEFAULT_SOLAR_REBATE_PER_KW: float = 1000.0
"""Utility solar rebate per kW of installed PV."""

DEFAULT_MAX_ELIGIBLE_SOLAR_KW: float = 1000.0
"""PV capacity above which no further utility rebate is paid."""

DEFAULT_PROGRAM_CAP_PCT: float = 0.40
"""Utility program cap as a fraction of gross CAPEX (solar + battery)."""

DEFAULT_ITC_RATE: float = 0.30
"""Federal investment tax credit rate on the post-rebate basis."""

DEFAULT_CCA_RATE: float = 0.50
"""Declining-balance capital cost allowance rate (class 43.2)."""

DEFAULT_CCA_FIRST_YEAR_FACTOR: float = 1.5
"""First-year CCA multiplier (1.5 = accelerated incentive, 0.5 = half-year rule)."""

INCENTIVE_FIRST_TRANCHE_SHARE: float = 0.5
"""Share of a split utility rebate disbursed in the first tranche."""

GRID_EMISSION_FACTOR_KG_PER_KWH: float = 0.002
"""Marginal CO₂ intensity of displaced grid electricity (kg/kWh)."""

# ---------------------------------------------------------------------------
# Cashflow and metrics
# ---------------------------------------------------------------------------

METRIC_HORIZONS: tuple[int, ...] = (10, 20, 25, 30)
"""Horizons (years) for which NPV, IRR, LCOE and payback are reported."""

FRONTIER_HORIZON_YEARS: int = 25
"""Horizon used to rank sweep candidates (npv25 / irr25)."""

IRR_INITIAL_GUESS: float = 0.1
"""Starting rate for the Newton IRR iteration."""

IRR_MAX_ITERATIONS: int = 200
"""Hard iteration cap for each IRR solver stage."""

IRR_RATE_TOLERANCE: float = 1e-7
"""Convergence tolerance on the IRR rate step."""

IRR_LOWER_BOUND: float = -0.99
"""Lower end of the IRR bracketing interval."""

IRR_UPPER_BOUND: float = 10.0
"""Upper end of the IRR bracketing interval."""

# ---------------------------------------------------------------------------
# Sizing sweep
# ---------------------------------------------------------------------------

SWEEP_STEPS: int = 20
"""Number of candidate sizes per sweep axis."""

SOLAR_STEP_MIN_KW: float = 5.0
"""Smallest PV sweep increment; PV steps are rounded to this multiple."""

BATTERY_STEP_MIN_KWH: float = 10.0
"""Smallest battery sweep increment; battery steps are rounded to this multiple."""

BATTERY_SWEEP_MAX_MULTIPLE: float = 2.0
"""Battery sweep ceiling as a multiple of the reference energy and of peak kW."""

BATTERY_ENERGY_TO_POWER_HOURS: float = 2.0
"""Battery duration used to derive power from energy in the sweep."""

HYBRID_GRID_STEPS: int = 5
"""Points per axis of the two-dimensional PV × battery grid."""

HYBRID_GRID_PV_STEP_MIN_KW: float = 10.0
"""Smallest PV increment of the hybrid grid; rounded to this multiple."""

HYBRID_GRID_BATT_STEP_MIN_KWH: float = 20.0
"""Smallest battery increment of the hybrid grid; rounded to this multiple."""

HYBRID_GRID_BATT_MAX_FLOOR_KWH: float = 200.0
"""Lower bound of the hybrid grid battery ceiling."""

REFERENCE_PV_OVERSIZE_FACTOR: float = 1.2
"""Reference PV size as a multiple of consumption-matching capacity."""

REFERENCE_BATTERY_POWER_FRACTION: float = 0.3
"""Reference battery power as a fraction of the peak demand."""

ORIENTATION_FACTOR_MIN: float = 0.6
"""Lower clamp of the orientation factor in reference sizing."""

BIFACIAL_SIZING_BOOST: float = 1.15
"""Yield boost assumed for bifacial modules in reference sizing."""

# ---------------------------------------------------------------------------
# Financing comparison
# ---------------------------------------------------------------------------

DEFAULT_LOAN_TERM_YEARS: int = 10
"""Default loan term in years."""

DEFAULT_LOAN_INTEREST_RATE_PCT: float = 7.0
"""Default annual loan interest rate in %."""

DEFAULT_DOWN_PAYMENT_PCT: float = 30.0
"""Default loan down payment as % of gross CAPEX."""

DEFAULT_LEASE_TERM_YEARS: int = 15
"""Default capital lease term in years."""

DEFAULT_LEASE_IMPLICIT_RATE_PCT: float = 8.5
"""Default implicit interest rate of the capital lease in %."""

DEFAULT_PPA_TERM_YEARS: int = 16
"""Default third-party PPA term in years."""

DEFAULT_PPA_YEAR1_RATE_PCT: float = 100.0
"""PPA price in year 1 as % of the grid-tariff equivalent."""

DEFAULT_PPA_YEAR2_RATE_PCT: float = 60.0
"""PPA price from year 2 to the end of term as % of the grid-tariff equivalent."""

DEFAULT_PPA_TRANSFER_COST: float = 1.0
"""Nominal price at which the system transfers to the client after the PPA."""

DEFAULT_FINANCING_HORIZON_YEARS: int = 25
"""Comparison horizon for the financing options."""

# ---------------------------------------------------------------------------
# Output defaults
# ---------------------------------------------------------------------------

DEFAULT_OUTPUT_DIR: str = "output"
"""Default root directory for result files."""

CSV_DELIMITER: str = ","
"""Delimiter used in all input and output CSV files."""

FLOAT_PRECISION: int = 4
"""Number of decimal places for floating-point values in output CSVs."""

CURRENCY_PRECISION: int = 2
"""Number of decimal places for monetary values in output CSVs."""

PROFILE_TIMESTAMP_COLUMN: str = "timestamp"
"""Timestamp column of a load profile CSV."""

PROFILE_ENERGY_COLUMN: str = "kwh"
"""Energy column (kWh per metering interval) of a load profile CSV."""

PROFILE_DEMAND_COLUMN: str = "kw"
"""Optional demand column (kW) of a load profile CSV."""
