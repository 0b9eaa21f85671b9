"""String rendering of numbers for the CSV writers and the terminal summary.

Undefined metrics (no IRR, payback never reached) arrive as None. CSV cells
render them empty so they stay visible as gaps rather than zeros; the
terminal summary prints ``n/a``.
"""

from __future__ import annotations

from pv_sizing_model.config.defaults import CURRENCY_PRECISION, FLOAT_PRECISION


def _fixed(value: float | None, decimals: int) -> str:
    return "" if value is None else f"{value:.{decimals}f}"


def fmt_float(value: float | None, precision: int = FLOAT_PRECISION) -> str:
    """Fixed-point rendering, ``fmt_float(3.14159265) == "3.1416"``."""
    return _fixed(value, precision)


def fmt_currency(value: float | None, precision: int = CURRENCY_PRECISION) -> str:
    """Dollar amount with cents and no separators, as CSV consumers expect."""
    return _fixed(value, precision)


def fmt_pct(value: float | None, precision: int = 2, *, already_pct: bool = False) -> str:
    """Percentage without the ``%`` sign.

    Rates such as IRR are decimal fractions and get scaled by 100;
    self-sufficiency is already a percentage, pass ``already_pct=True``.
    """
    if value is None:
        return ""
    return _fixed(value if already_pct else value * 100.0, precision)


def fmt_money(value: float | None) -> str:
    """Whole dollars with thousands separators, or ``"n/a"``."""
    if value is None:
        return "n/a"
    return f"{value:,.0f} $"
