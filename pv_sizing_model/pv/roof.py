"""Roof-derived PV capacity ceiling.

Roof areas are kept in square feet in the assumptions and converted to square
metres here, once, before any capacity math.
"""

from __future__ import annotations

from pv_sizing_model.config.defaults import (
    PANEL_FOOTPRINT_SQ_M,
    PANEL_POWER_KW,
    SQ_FT_PER_SQ_M,
)


def sq_ft_to_sq_m(area_sq_ft: float) -> float:
    """Convert an area from ft² to m²."""
    return area_sq_ft / SQ_FT_PER_SQ_M


def roof_capacity_kw(roof_area_sq_ft: float, utilization_ratio: float) -> float:
    """Maximum PV capacity (kW DC) that fits on the usable roof area.

    The usable area is divided by the footprint of one module (including
    row spacing and setbacks) and multiplied by the module rating.

    Args:
        roof_area_sq_ft: Gross roof area in ft².
        utilization_ratio: Fraction of the roof usable for modules, in [0, 1].

    Returns:
        Capacity ceiling in kW.

    Raises:
        ValueError: If the area is negative or the ratio is outside [0, 1].
    """
    if roof_area_sq_ft < 0.0:
        raise ValueError(f"roof_area_sq_ft must be >= 0, got {roof_area_sq_ft}")
    if not 0.0 <= utilization_ratio <= 1.0:
        raise ValueError(f"utilization_ratio must be in [0, 1], got {utilization_ratio}")

    usable_sq_m = sq_ft_to_sq_m(roof_area_sq_ft) * utilization_ratio
    return usable_sq_m / PANEL_FOOTPRINT_SQ_M * PANEL_POWER_KW
