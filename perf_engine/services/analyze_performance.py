"""
Performance Analysis Orchestrator.

Runs the full analytics pipeline over one rep population snapshot:

Shared pass (once per snapshot):
    - source weights (optionally from a trailing window of history rows)
    - store baselines
    - ranks, top performer units, and the rank-1 rep's expected units

Per-rep pass (independent, no shared mutable state):
    core rates -> expected units -> catch-up target -> activity recommendations
    -> performance metrics

The function is pure: the same snapshot and parameters give identical output.
The shared pass can be served from an injected BaselineCache keyed by
(period, data_version).

Edge Cases:
    - Empty population: returns an empty dict
    - Duplicate rep_id in the snapshot: ValueError
    - Trailing window leaves no rows: logs a warning and estimates weights
      from the snapshot itself

Usage:
    from perf_engine.services.analyze_performance import analyze_performance

    results = analyze_performance(reps, params)
    results['rep-001'].catchUpTarget.target_units
"""

import logging
from collections import Counter
from datetime import date
from typing import Dict, Optional, Sequence

from perf_engine.models.schemas import AnalyticsParams, RepAnalysisResult, RepPeriodStats
from perf_engine.services.baseline_cache import BaselineCache, CacheKey, StoreLevelState
from perf_engine.services.catch_up import calculate_activity_recommendations, calculate_catch_up_target
from perf_engine.services.expected_units import calculate_expected_units
from perf_engine.services.funnel_rates import calculate_core_rates, calculate_store_baselines
from perf_engine.services.performance_metrics import calculate_performance_metrics, sort_by_units
from perf_engine.services.source_weights import estimate_source_weights, select_weight_window

logger = logging.getLogger(__name__)


# =============================================================================
# Shared Pass
# =============================================================================


def compute_store_level_state(
    reps: Sequence[RepPeriodStats],
    params: AnalyticsParams,
    as_of: Optional[date] = None,
    weight_history: Optional[Sequence[RepPeriodStats]] = None,
) -> StoreLevelState:
    """
    Estimate source weights and store baselines for a snapshot.

    Args:
        reps: The snapshot being analyzed; baselines always come from it.
        params: Estimator settings and window length.
        as_of: End of the trailing weight window; None disables the window.
        weight_history: Rows to estimate weights from; defaults to reps.

    Returns:
        StoreLevelState with weights and baselines.
    """
    weight_rows = list(weight_history) if weight_history is not None else list(reps)
    windowed = select_weight_window(weight_rows, params.weights_window_days, as_of)

    if not windowed:
        logger.warning(
            f"No rows within {params.weights_window_days} days of {as_of}; "
            f"estimating source weights from the {len(reps)}-rep snapshot"
        )
        windowed = list(reps)

    weights = estimate_source_weights(
        windowed,
        iterations=params.weight_iterations,
        prior_strength=params.weight_prior_strength,
        max_weight=params.max_source_weight,
    )
    baselines = calculate_store_baselines(reps)

    return StoreLevelState(weights=weights, baselines=baselines)


def _history_identity(weight_history: Optional[Sequence[RepPeriodStats]]) -> Optional[tuple]:
    """Rows that feed the weight estimator, reduced to the fields it reads."""
    if weight_history is None:
        return None
    return tuple(
        (row.rep_id, row.period, row.period_end, row.units_sold, tuple(row.leads_by_source.root.items()))
        for row in weight_history
    )


def _estimator_fingerprint(
    params: AnalyticsParams,
    as_of: Optional[date],
    weight_history: Optional[Sequence[RepPeriodStats]] = None,
) -> tuple:
    return (
        params.weight_iterations,
        params.weight_prior_strength,
        params.max_source_weight,
        params.weights_window_days,
        as_of,
        _history_identity(weight_history),
    )


# =============================================================================
# Orchestrator
# =============================================================================


def analyze_performance(
    reps: Sequence[RepPeriodStats],
    params: Optional[AnalyticsParams] = None,
    *,
    as_of: Optional[date] = None,
    weight_history: Optional[Sequence[RepPeriodStats]] = None,
    cache: Optional[BaselineCache] = None,
    cache_key: Optional[CacheKey] = None,
) -> Dict[str, RepAnalysisResult]:
    """
    Analyze every rep in a population snapshot.

    Args:
        reps: One RepPeriodStats per rep.
        params: Analytics parameters; defaults to AnalyticsParams().
        as_of: End of the trailing source-weight window.
        weight_history: Rows for source weight estimation; defaults to reps.
        cache: Optional store-level cache shared across calls.
        cache_key: Snapshot identity; the cache is used only when both are set.

    Returns:
        Dict of rep_id -> RepAnalysisResult, ordered by rank.

    Raises:
        ValueError: If a rep_id appears more than once.
    """
    if not reps:
        return {}

    duplicates = sorted(rep_id for rep_id, count in Counter(rep.rep_id for rep in reps).items() if count > 1)
    if duplicates:
        raise ValueError(f"Duplicate rep_id in snapshot: {', '.join(duplicates)}")

    params = params or AnalyticsParams()

    state: Optional[StoreLevelState] = None
    fingerprint = _estimator_fingerprint(params, as_of, weight_history)
    if cache is not None and cache_key is not None:
        state = cache.get(cache_key, fingerprint)

    if state is None:
        state = compute_store_level_state(reps, params, as_of=as_of, weight_history=weight_history)
        if cache is not None and cache_key is not None:
            cache.put(cache_key, state, fingerprint)

    weights, baselines = state.weights, state.baselines

    ranked = sort_by_units(reps)
    top_rep = ranked[0]
    top_units = top_rep.units_sold
    top_expected = calculate_expected_units(top_rep, weights, baselines, params).final_expected

    results: Dict[str, RepAnalysisResult] = {}
    for rank, rep in enumerate(ranked, start=1):
        core_rates = calculate_core_rates(rep, clamp_close_rates=params.clamp_close_rates)
        expected = calculate_expected_units(rep, weights, baselines, params)
        target = calculate_catch_up_target(rep.units_sold, top_units, params.gap_close_rate)
        recommendations = calculate_activity_recommendations(
            rep, expected, target, weights, baselines, params
        )
        metrics = calculate_performance_metrics(
            rep_units=rep.units_sold,
            top_units=top_units,
            rep_expected=expected.final_expected,
            top_expected=top_expected,
            opportunities=rep.unique_leads_attempted,
            rank=rank,
            tau=params.confidence_tau,
        )

        results[rep.rep_id] = RepAnalysisResult(
            repData=rep,
            coreRates=core_rates,
            expectedUnits=expected,
            catchUpTarget=target,
            activityRecommendations=recommendations,
            performanceMetrics=metrics,
            sourceWeights=weights,
            storeBaselines=baselines,
            isTopPerformer=rank == 1,
        )

    logger.debug(
        f"Analyzed {len(results)} reps; top performer {top_rep.rep_id} with {top_units} units"
    )
    return results
