"""
Sales Performance Engine Services.

Analytics engine (pure, synchronous):
- funnel_rates: core rates per rep and pooled store baselines
- source_weights: iterative source weight estimation and trailing window
- expected_units: lead-mix value times bounded behavior multipliers
- catch_up: catch-up targets and activity recommendations
- performance_metrics: index, balanced score, confidence, rank
- analyze_performance: orchestrator over a rep population snapshot
- baseline_cache: injectable store-level cache keyed by (period, data_version)

Forecasting:
- forecast: projection, binomial quota probability, next best action
- forecast_recompute: month-to-date aggregation and asyncpg persistence

Dashboard:
- rep_view: per-rep payload with advanced-analytics gating
- leaderboard: deal-based ranking with pandas
- sample_data: deterministic sample rep population
"""

from perf_engine.services.funnel_rates import (
    safe_divide,
    clamp,
    calculate_core_rates,
    calculate_store_baselines,
)

from perf_engine.services.source_weights import (
    shrink_toward_prior,
    iterate_source_weights,
    estimate_source_weights,
    select_weight_window,
)

from perf_engine.services.expected_units import (
    behavior_multiplier,
    calculate_base_expected,
    calculate_expected_units,
)

from perf_engine.services.catch_up import (
    calculate_catch_up_target,
    calculate_activity_recommendations,
)

from perf_engine.services.performance_metrics import (
    calculate_confidence_score,
    calculate_performance_metrics,
    assign_ranks,
)

from perf_engine.services.baseline_cache import (
    BaselineCache,
    CacheKey,
    StoreLevelState,
)

from perf_engine.services.analyze_performance import (
    analyze_performance,
    compute_store_level_state,
)

from perf_engine.services.forecast import (
    compute_projected_units,
    compute_quota_probability,
    compute_next_best_action,
    build_month_forecast,
    MODEL_VERSION,
)

from perf_engine.services.forecast_recompute import (
    aggregate_month_stats,
    build_rep_month_forecast,
    recompute_rep_month_forecast,
    get_rep_month_forecast,
)

from perf_engine.services.rep_view import (
    build_rep_view,
    parse_top_n,
)

from perf_engine.services.leaderboard import (
    rank_reps_from_deals,
    parse_rank_by,
)

from perf_engine.services.sample_data import (
    generate_sample_population,
    generate_sample_history,
)


__all__ = [
    # funnel_rates
    'safe_divide',
    'clamp',
    'calculate_core_rates',
    'calculate_store_baselines',
    # source_weights
    'shrink_toward_prior',
    'iterate_source_weights',
    'estimate_source_weights',
    'select_weight_window',
    # expected_units
    'behavior_multiplier',
    'calculate_base_expected',
    'calculate_expected_units',
    # catch_up
    'calculate_catch_up_target',
    'calculate_activity_recommendations',
    # performance_metrics
    'calculate_confidence_score',
    'calculate_performance_metrics',
    'assign_ranks',
    # baseline_cache
    'BaselineCache',
    'CacheKey',
    'StoreLevelState',
    # analyze_performance
    'analyze_performance',
    'compute_store_level_state',
    # forecast
    'compute_projected_units',
    'compute_quota_probability',
    'compute_next_best_action',
    'build_month_forecast',
    'MODEL_VERSION',
    # forecast_recompute
    'aggregate_month_stats',
    'build_rep_month_forecast',
    'recompute_rep_month_forecast',
    'get_rep_month_forecast',
    # rep_view
    'build_rep_view',
    'parse_top_n',
    # leaderboard
    'rank_reps_from_deals',
    'parse_rank_by',
    # sample_data
    'generate_sample_population',
    'generate_sample_history',
]
