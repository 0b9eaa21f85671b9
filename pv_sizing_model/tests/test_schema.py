"""Tests for config/schema.py – JSON schema validation of assumptions."""

from __future__ import annotations

import pytest

from pv_sizing_model.config.assumptions import AnalysisAssumptions
from pv_sizing_model.config.schema import get_schema, validate_assumptions
from pv_sizing_model.errors import InvalidAssumptionsError


class TestValidateAssumptions:
    def test_empty_override_is_valid(self) -> None:
        validate_assumptions({})

    def test_complete_defaults_are_valid(self) -> None:
        validate_assumptions(AnalysisAssumptions().to_dict())

    def test_additional_property_rejected(self) -> None:
        with pytest.raises(InvalidAssumptionsError, match="Additional properties"):
            validate_assumptions({"discountRate": 0.08})

    def test_wrong_type_names_field(self) -> None:
        with pytest.raises(InvalidAssumptionsError, match="analysis_years"):
            validate_assumptions({"analysis_years": "25"})

    def test_ratio_above_one_rejected(self) -> None:
        with pytest.raises(InvalidAssumptionsError, match="roof_utilization_ratio"):
            validate_assumptions({"roof_utilization_ratio": 1.2})

    def test_unknown_dispatch_strategy_rejected(self) -> None:
        with pytest.raises(InvalidAssumptionsError, match="dispatch_strategy"):
            validate_assumptions({"dispatch_strategy": "arbitrage"})

    def test_unknown_snow_profile_rejected(self) -> None:
        with pytest.raises(InvalidAssumptionsError, match="snow_loss_profile"):
            validate_assumptions({"snow_loss_profile": "heavy"})

    def test_zero_round_trip_efficiency_rejected(self) -> None:
        with pytest.raises(InvalidAssumptionsError):
            validate_assumptions({"battery_round_trip_efficiency": 0.0})

    def test_negative_inflation_above_minus_one_allowed(self) -> None:
        validate_assumptions({"inflation_rate": -0.01})


class TestGetSchema:
    def test_schema_lists_every_field(self) -> None:
        schema = get_schema()
        assert set(schema["properties"]) == set(AnalysisAssumptions().to_dict())
        assert schema["additionalProperties"] is False
