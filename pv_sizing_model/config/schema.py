"""JSON schema definition and validation for analysis assumption overrides.

Every key of :class:`~pv_sizing_model.config.assumptions.AnalysisAssumptions`
is described here with its admissible range. Unknown keys are rejected so a
misspelt override can never be silently ignored. JSON Schema range keywords
do not reject NaN or infinities, so non-finite numbers are refused first.
Validation uses the ``jsonschema`` library (Draft 7).

Usage::

    from pv_sizing_model.config.schema import validate_assumptions
    validate_assumptions({"discount_rate": 0.07})  # raises InvalidAssumptionsError
"""

from __future__ import annotations

import math

import jsonschema

from pv_sizing_model.config.defaults import (
    DISPATCH_PEAK_SHAVING,
    DISPATCH_SELF_CONSUMPTION,
    SNOW_LOSS_PROFILES,
)
from pv_sizing_model.errors import InvalidAssumptionsError

# ---------------------------------------------------------------------------
# Re-usable sub-schemas
# ---------------------------------------------------------------------------

_NON_NEGATIVE_NUMBER = {"type": "number", "minimum": 0}

_RATIO = {"type": "number", "minimum": 0, "maximum": 1}

_GROWTH_RATE = {"type": "number", "exclusiveMinimum": -1}

_POSITIVE_INTEGER = {"type": "integer", "minimum": 1}

# ---------------------------------------------------------------------------
# Top-level schema
# ---------------------------------------------------------------------------

ASSUMPTIONS_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Solar + Storage Analysis Assumptions",
    "type": "object",
    "properties": {
        # Tariff
        "tariff_code": {"type": "string", "minLength": 1},
        "tariff_energy": _NON_NEGATIVE_NUMBER,
        "tariff_power": _NON_NEGATIVE_NUMBER,
        # Capital costs
        "solar_cost_per_w": _NON_NEGATIVE_NUMBER,
        "solar_cost_tiered": {"type": "boolean"},
        "battery_capacity_cost": _NON_NEGATIVE_NUMBER,
        "battery_power_cost": _NON_NEGATIVE_NUMBER,
        # Finance
        "discount_rate": _GROWTH_RATE,
        "inflation_rate": _GROWTH_RATE,
        "tax_rate": _RATIO,
        "om_solar_percent": _RATIO,
        "om_battery_percent": _RATIO,
        "om_escalation": _GROWTH_RATE,
        "analysis_years": {"type": "integer", "minimum": 1, "maximum": 50},
        # Battery lifecycle
        "battery_replacement_year": _POSITIVE_INTEGER,
        "battery_replacement_cost_factor": _NON_NEGATIVE_NUMBER,
        "battery_price_decline_rate": _RATIO,
        "battery_round_trip_efficiency": {
            "type": "number",
            "exclusiveMinimum": 0,
            "maximum": 1,
        },
        "dispatch_strategy": {
            "type": "string",
            "enum": [DISPATCH_SELF_CONSUMPTION, DISPATCH_PEAK_SHAVING],
        },
        # Roof
        "roof_area_sq_ft": _NON_NEGATIVE_NUMBER,
        "roof_utilization_ratio": _RATIO,
        # PV performance
        "solar_yield_kwh_per_kwp": _NON_NEGATIVE_NUMBER,
        "orientation_factor": _RATIO,
        "inverter_load_ratio": {"type": "number", "exclusiveMinimum": 0},
        "temperature_coefficient": {"type": "number", "minimum": -0.1, "maximum": 0.1},
        "wire_loss_percent": _RATIO,
        "degradation_rate": {"type": "number", "minimum": 0, "exclusiveMaximum": 1},
        "snow_loss_profile": {"type": "string", "enum": sorted(SNOW_LOSS_PROFILES)},
        # Bifacial modules
        "bifacial_enabled": {"type": "boolean"},
        "bifaciality_factor": _RATIO,
        "roof_albedo": _RATIO,
        "bifacial_cost_premium": _NON_NEGATIVE_NUMBER,
        # Surplus compensation
        "surplus_compensation_rate": _NON_NEGATIVE_NUMBER,
        "surplus_compensation_start_year": _POSITIVE_INTEGER,
    },
    "additionalProperties": False,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_assumptions(data: dict) -> None:
    """Validate an assumptions dictionary (complete or partial) against the schema.

    Parameters
    ----------
    data:
        Mapping of assumption field names to values. Missing keys are
        allowed; they fall back to the defaults when merged.

    Raises
    ------
    InvalidAssumptionsError
        When a key is unknown or a value has the wrong type or range. The
        message names the failing field.
    """
    for key, value in data.items():
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidAssumptionsError(
                f"Assumption validation failed at '{key}': {value} is not a finite number"
            )

    validator = jsonschema.Draft7Validator(ASSUMPTIONS_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))

    if errors:
        first = errors[0]
        path_str = " → ".join(str(p) for p in first.absolute_path) or "(root)"
        raise InvalidAssumptionsError(
            f"Assumption validation failed at '{path_str}': {first.message}"
        ) from first


def get_schema() -> dict:
    """Return a copy of the assumptions JSON schema dictionary.

    Returns
    -------
    dict
        The schema as a plain Python dictionary compatible with
        ``jsonschema`` and any JSON Schema Draft 7 tool.
    """
    return ASSUMPTIONS_SCHEMA.copy()
