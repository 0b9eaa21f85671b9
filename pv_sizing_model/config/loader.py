"""Load and validate analysis input files: assumptions JSON and load CSV.

Public API
----------
load_assumptions(path)      – Parse + validate an assumptions JSON file.
load_assumptions_dict(data) – Validate an already-parsed override mapping.
load_profile_csv(path)      – Read interval-meter readings into a LoadProfile.

A file may contain any subset of the assumption fields; absent fields fall
back to the defaults. Error messages name the file and the failing field.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pandas as pd

from pv_sizing_model.config.assumptions import AnalysisAssumptions, merge_assumptions
from pv_sizing_model.config.defaults import (
    CSV_DELIMITER,
    PROFILE_DEMAND_COLUMN,
    PROFILE_ENERGY_COLUMN,
    PROFILE_TIMESTAMP_COLUMN,
)
from pv_sizing_model.errors import InvalidAssumptionsError, InvalidProfileError
from pv_sizing_model.load.profile import LoadProfile, build_load_profile

logger = logging.getLogger(__name__)


def load_assumptions(path: str | Path) -> AnalysisAssumptions:
    """Load a JSON file of assumption overrides and merge it with the defaults.

    Parameters
    ----------
    path:
        Path to the ``.json`` file. The top-level value must be an object.

    Returns
    -------
    AnalysisAssumptions
        Fully populated assumptions.

    Raises
    ------
    FileNotFoundError
        When *path* does not exist.
    json.JSONDecodeError
        When the file contains invalid JSON.
    InvalidAssumptionsError
        When the content is not an object or violates the schema.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Assumptions file not found: '{path}'. "
            "Check that the path is correct and the file exists."
        )

    logger.debug("Loading assumptions from '%s'", path)

    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise json.JSONDecodeError(
            f"Invalid JSON in assumptions file '{path}': {exc.msg}",
            exc.doc,
            exc.pos,
        ) from exc

    assumptions = load_assumptions_dict(data)
    logger.info(
        "Loaded %d assumption override(s) from '%s' (tariff=%s, discount=%.2f %%)",
        len(data),
        path,
        assumptions.tariff_code,
        assumptions.discount_rate * 100,
    )
    return assumptions


def load_assumptions_dict(data: object) -> AnalysisAssumptions:
    """Validate an override mapping and merge it with the defaults.

    Parameters
    ----------
    data:
        Parsed JSON value; must be a dictionary.

    Returns
    -------
    AnalysisAssumptions
        Fully populated assumptions.

    Raises
    ------
    InvalidAssumptionsError
        When *data* is not a dictionary or violates the schema.
    """
    if not isinstance(data, dict):
        raise InvalidAssumptionsError(
            f"Assumptions must be a JSON object, got {type(data).__name__}."
        )
    return merge_assumptions(data)


def load_profile_csv(path: str | Path) -> LoadProfile:
    """Read an interval-meter export and build the hourly load profile.

    The CSV needs a ``timestamp`` column (parseable by pandas) and a ``kwh``
    column with the energy of each metering interval. An optional ``kw``
    column carries the demand readings; without it demand is derived from
    the interval energy.

    Parameters
    ----------
    path:
        Path to the CSV file.

    Returns
    -------
    LoadProfile
        Hourly profile; see :func:`build_load_profile`.

    Raises
    ------
    FileNotFoundError
        When *path* does not exist.
    InvalidProfileError
        When columns are missing, timestamps cannot be parsed, or readings
        are negative or non-numeric.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Load profile CSV not found: '{path}'. "
            "Check that the path is correct and the file exists."
        )

    logger.debug("Loading load profile from '%s'", path)
    try:
        df = pd.read_csv(path, sep=CSV_DELIMITER)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise InvalidProfileError(f"Failed to parse load profile CSV '{path}': {exc}") from exc

    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in (PROFILE_TIMESTAMP_COLUMN, PROFILE_ENERGY_COLUMN) if c not in df.columns]
    if missing:
        raise InvalidProfileError(
            f"Load profile CSV '{path}' is missing required column(s) {missing}. "
            f"Available columns: {list(df.columns)}"
        )

    try:
        index = pd.DatetimeIndex(pd.to_datetime(df[PROFILE_TIMESTAMP_COLUMN]))
        energy = pd.to_numeric(df[PROFILE_ENERGY_COLUMN])
        demand = (
            pd.to_numeric(df[PROFILE_DEMAND_COLUMN])
            if PROFILE_DEMAND_COLUMN in df.columns
            else None
        )
    except (ValueError, TypeError) as exc:
        raise InvalidProfileError(f"Invalid value in load profile CSV '{path}': {exc}") from exc

    readings_kwh = pd.Series(energy.to_numpy(dtype=float), index=index)
    peak_kw = None
    if demand is not None:
        peak_kw = pd.Series(demand.to_numpy(dtype=float), index=index).dropna()
        if peak_kw.empty:
            peak_kw = None

    logger.info("Read %d meter reading(s) from '%s'.", len(df), path)
    return build_load_profile(readings_kwh, peak_kw)
