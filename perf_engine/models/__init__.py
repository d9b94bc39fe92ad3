"""
Package initialization file for perf_engine models.

Exports all pydantic schemas, ordered source maps and enumerations so other
modules can import them from perf_engine.models directly.

Usage:
    from perf_engine.models import (
        RepPeriodStats,
        SourceWeights,
        AnalyticsParams,
        ActionFocus,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from perf_engine.models.enums import (
    ActionFocus,
    ActivityOutcome,
    DealStatus,
    RankBy,
    SkillLevel,
)

# =============================================================================
# Ordered Source Maps
# =============================================================================

from perf_engine.models.source_map import (
    LeadAsks,
    LeadMix,
    SourceWeights,
)

# =============================================================================
# Schemas
# =============================================================================

from perf_engine.models.schemas import (
    # Configuration
    AnalyticsParams,
    # Analytics input and outputs
    RepPeriodStats,
    StoreBaselines,
    CoreRates,
    ExpectedUnits,
    CatchUpTarget,
    ActivityRecommendations,
    PerformanceMetrics,
    RepAnalysisResult,
    # Forecast
    RepMonthStats,
    ProjectionInput,
    UnitProjection,
    QuotaProbabilityInput,
    NextBestAction,
    MonthForecastComputation,
    RepMonthForecast,
    ForecastRecomputeResult,
    # Dashboard
    RepAnalyticsView,
    LeaderboardEntry,
    # API wrappers
    AnalyzeRequest,
    RepViewRequest,
    AnalyzeResponse,
    MonthForecastRequest,
    RecomputeRequest,
)

__all__ = [
    # Enums
    'ActionFocus',
    'ActivityOutcome',
    'DealStatus',
    'RankBy',
    'SkillLevel',
    # Source maps
    'LeadAsks',
    'LeadMix',
    'SourceWeights',
    # Configuration
    'AnalyticsParams',
    # Analytics
    'RepPeriodStats',
    'StoreBaselines',
    'CoreRates',
    'ExpectedUnits',
    'CatchUpTarget',
    'ActivityRecommendations',
    'PerformanceMetrics',
    'RepAnalysisResult',
    # Forecast
    'RepMonthStats',
    'ProjectionInput',
    'UnitProjection',
    'QuotaProbabilityInput',
    'NextBestAction',
    'MonthForecastComputation',
    'RepMonthForecast',
    'ForecastRecomputeResult',
    # Dashboard
    'RepAnalyticsView',
    'LeaderboardEntry',
    # API wrappers
    'AnalyzeRequest',
    'RepViewRequest',
    'AnalyzeResponse',
    'MonthForecastRequest',
    'RecomputeRequest',
]
