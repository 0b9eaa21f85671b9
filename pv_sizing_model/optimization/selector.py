"""Named optimal scenarios picked from a sweep frontier.

Four objectives are served, each by an evaluated frontier point or None:

============================  ===============================================
Objective                     Rule
============================  ===============================================
``best_npv``                  global NPV optimum, only when its NPV > 0
``best_irr``                  highest IRR among points with NPV > 0
``max_self_sufficiency``      highest self-sufficiency among points with NPV ≥ 0
``fast_payback``              shortest payback among points with NPV ≥ 0
============================  ===============================================

Ties are broken deterministically: higher NPV first, then lower net CAPEX,
then the earlier evaluated point. The global NPV optimum itself is ranked
by NPV, then higher IRR, then lower net CAPEX, then evaluation order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from pv_sizing_model.optimization.points import FrontierPoint

logger = logging.getLogger(__name__)

OBJECTIVES = ("best_npv", "best_irr", "max_self_sufficiency", "fast_payback")


@dataclass(frozen=True)
class OptimalScenarios:
    """The four named winners of one sweep."""

    best_npv: FrontierPoint | None
    best_irr: FrontierPoint | None
    max_self_sufficiency: FrontierPoint | None
    fast_payback: FrontierPoint | None

    def get(self, objective: str) -> FrontierPoint | None:
        """Return the winner of *objective* (one of :data:`OBJECTIVES`).

        Raises:
            KeyError: If *objective* is unknown.
        """
        if objective not in OBJECTIVES:
            raise KeyError(f"Unknown objective '{objective}'; expected one of {OBJECTIVES}.")
        return getattr(self, objective)


def _irr_or_floor(point: FrontierPoint) -> float:
    return point.irr25 if point.irr25 is not None else float("-inf")


def global_optimum(frontier: Sequence[FrontierPoint]) -> FrontierPoint | None:
    """Point with the maximum NPV over the whole frontier.

    Returns None for an empty frontier.
    """
    if not frontier:
        return None
    return min(
        frontier,
        key=lambda p: (-p.npv25, -_irr_or_floor(p), p.capex_net, p.order),
    )


def _tie_break(point: FrontierPoint) -> tuple[float, float, int]:
    return (-point.npv25, point.capex_net, point.order)


def select_optimal_scenarios(frontier: Sequence[FrontierPoint]) -> OptimalScenarios:
    """Select the named optimal scenarios of a frontier.

    Args:
        frontier: All evaluated points of one sweep.

    Returns:
        :class:`OptimalScenarios`; categories without a qualifying point are
        None. Every non-None entry is an element of *frontier*.
    """
    optimum = global_optimum(frontier)
    best_npv = optimum if optimum is not None and optimum.npv25 > 0.0 else None

    profitable = [p for p in frontier if p.npv25 > 0.0 and p.irr25 is not None]
    best_irr = (
        min(profitable, key=lambda p: (-p.irr25, *_tie_break(p))) if profitable else None
    )

    break_even = [p for p in frontier if p.npv25 >= 0.0]
    max_self_sufficiency = (
        min(break_even, key=lambda p: (-p.self_sufficiency_percent, *_tie_break(p)))
        if break_even
        else None
    )

    with_payback = [p for p in break_even if p.simple_payback_years is not None]
    fast_payback = (
        min(with_payback, key=lambda p: (p.simple_payback_years, *_tie_break(p)))
        if with_payback
        else None
    )

    scenarios = OptimalScenarios(
        best_npv=best_npv,
        best_irr=best_irr,
        max_self_sufficiency=max_self_sufficiency,
        fast_payback=fast_payback,
    )
    for name in OBJECTIVES:
        point = scenarios.get(name)
        if point is None:
            logger.info("No qualifying configuration for objective '%s'.", name)
        else:
            logger.debug("Objective '%s': %s (NPV25 %.0f).", name, point.label, point.npv25)
    return scenarios
