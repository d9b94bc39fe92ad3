"""
Performance Metrics Service.

Per-rep scores used for ranking and dashboard display:

    performance_index = rep_units / top_units                      (0 if top_units == 0)
    balanced_score    = 0.6 * rep_units / top_units
                      + 0.4 * rep_expected / top_expected          (0 if either top is 0)
    confidence_score  = 1 - exp(-opportunities / tau)
    rank              = 1-based position by units_sold descending

Rank ties on units_sold are broken by rep_id ascending so the order never
depends on input order. Opportunities are the rep's unique leads attempted.
"""

import math
from typing import Dict, List, Sequence

from perf_engine.models.schemas import PerformanceMetrics, RepPeriodStats


# =============================================================================
# Constants
# =============================================================================

# Blend of realized vs model-expected performance in the balanced score.
REALIZED_SHARE: float = 0.6
EXPECTED_SHARE: float = 0.4


# =============================================================================
# Confidence
# =============================================================================


def calculate_confidence_score(opportunities: float, tau: float) -> float:
    """
    Saturating trust in a rep's metrics based on sample size.

    Example:
        >>> calculate_confidence_score(0, 50)
        0.0
        >>> round(calculate_confidence_score(50, 50), 4)
        0.6321
    """
    return 1.0 - math.exp(-opportunities / tau)


# =============================================================================
# Ranking
# =============================================================================


def sort_by_units(reps: Sequence[RepPeriodStats]) -> List[RepPeriodStats]:
    """Order reps by units_sold descending, then rep_id ascending."""
    return sorted(reps, key=lambda rep: (-rep.units_sold, rep.rep_id))


def assign_ranks(reps: Sequence[RepPeriodStats]) -> Dict[str, int]:
    """
    Map rep_id to its 1-based rank.

    Example:
        >>> reps = [RepPeriodStats(rep_id='b', units_sold=5),
        ...         RepPeriodStats(rep_id='a', units_sold=5),
        ...         RepPeriodStats(rep_id='c', units_sold=9)]
        >>> assign_ranks(reps)
        {'c': 1, 'a': 2, 'b': 3}
    """
    return {rep.rep_id: position for position, rep in enumerate(sort_by_units(reps), start=1)}


# =============================================================================
# Metrics
# =============================================================================


def calculate_performance_metrics(
    rep_units: int,
    top_units: int,
    rep_expected: float,
    top_expected: float,
    opportunities: float,
    rank: int,
    tau: float,
) -> PerformanceMetrics:
    """
    Calculate the normalized and blended scores for one rep.

    Args:
        rep_units: Units the rep sold.
        top_units: Units sold by the top performer.
        rep_expected: The rep's final expected units.
        top_expected: Final expected units of the rank-1 rep.
        opportunities: Sample size behind the rep's rates.
        rank: The rep's 1-based rank.
        tau: Confidence saturation constant.

    Returns:
        PerformanceMetrics for the rep.
    """
    performance_index = rep_units / top_units if top_units > 0 else 0.0

    if top_units > 0 and top_expected > 0:
        balanced_score = (
            REALIZED_SHARE * (rep_units / top_units)
            + EXPECTED_SHARE * (rep_expected / top_expected)
        )
    else:
        balanced_score = 0.0

    return PerformanceMetrics(
        performance_index=performance_index,
        balanced_score=balanced_score,
        confidence_score=calculate_confidence_score(opportunities, tau),
        rank=rank,
    )
