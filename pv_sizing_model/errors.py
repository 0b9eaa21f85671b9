"""Exception hierarchy for the sizing engine.

Input errors derive from :class:`ValueError` and IRR failures from
:class:`ArithmeticError` so callers that only know the built-in types still
catch them.

``InvalidProfileError`` and ``InvalidAssumptionsError`` abort a whole run.
``NoIRRError`` is recovered locally (the IRR is reported as ``None``).
"""

from __future__ import annotations


class SizingEngineError(Exception):
    """Base class for all errors raised by pv_sizing_model."""


class InvalidProfileError(SizingEngineError, ValueError):
    """Load profile is malformed, negative or non-finite."""


class InvalidAssumptionsError(SizingEngineError, ValueError):
    """An assumption or size is negative or outside its domain."""


class NoIRRError(SizingEngineError, ArithmeticError):
    """The cashflow series has no internal rate of return within the solver bounds."""
