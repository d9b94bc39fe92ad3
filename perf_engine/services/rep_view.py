"""
Rep Dashboard View Service.

Shapes one rep's analysis into the dashboard payload, adding:

- advanced-analytics gating: access when rank <= advanced_access_top_n,
  with top_n clamped to [1, 10]
- defense target: ceil(units_sold * 0.95), the units a leader must keep to
  hold the position
"""

import math
from typing import Any, Optional

from perf_engine.models.schemas import RepAnalysisResult, RepAnalyticsView


MIN_ADVANCED_ACCESS_TOP_N: int = 1
MAX_ADVANCED_ACCESS_TOP_N: int = 10

DEFENSE_SHARE: float = 0.95


def parse_top_n(value: Any, default: int = MIN_ADVANCED_ACCESS_TOP_N) -> int:
    """
    Coerce a configured top-N value to an int in [1, 10].

    Unparseable values fall back to default.

    Example:
        >>> parse_top_n('3')
        3
        >>> parse_top_n(25)
        10
        >>> parse_top_n('abc')
        1
    """
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = default
    return max(MIN_ADVANCED_ACCESS_TOP_N, min(MAX_ADVANCED_ACCESS_TOP_N, parsed))


def build_rep_view(
    result: RepAnalysisResult,
    advanced_access_top_n: Any = MIN_ADVANCED_ACCESS_TOP_N,
    rank: Optional[int] = None,
) -> RepAnalyticsView:
    """
    Build the dashboard payload for one rep.

    Args:
        result: The rep's analysis.
        advanced_access_top_n: Ranks eligible for advanced analytics.
        rank: Rank to gate on; defaults to the analysis rank. Pass the
            leaderboard rank to gate on a manager-selected ordering.

    Returns:
        RepAnalyticsView.
    """
    top_n = parse_top_n(advanced_access_top_n)
    metrics = result.performanceMetrics
    effective_rank = rank if rank is not None else metrics.rank
    units = result.repData.units_sold

    return RepAnalyticsView(
        repId=result.repData.rep_id,
        expectedUnits=result.expectedUnits,
        coreRates=result.coreRates,
        performanceMetrics=metrics,
        sourceWeights=result.sourceWeights,
        storeBaselines=result.storeBaselines,
        actualUnits=units,
        leadsBreakdown=result.repData.leads_by_source,
        catchUpTarget=result.catchUpTarget,
        activityRecommendations=result.activityRecommendations,
        isTopPerformer=effective_rank == 1,
        hasAdvancedAccess=effective_rank <= top_n,
        advancedAccessTopN=top_n,
        rank=effective_rank,
        performanceIndex=metrics.performance_index,
        confidenceScore=metrics.confidence_score,
        defenseTarget=math.ceil(units * DEFENSE_SHARE),
        currentUnits=units,
    )
