"""
Pydantic v2 schema definitions for the Sales Performance Engine backend.

Sections:
- Analytics configuration (AnalyticsParams)
- Rep period input (RepPeriodStats)
- Analytics engine outputs (CoreRates ... RepAnalysisResult)
- Forecast inputs and outputs (RepMonthStats ... ForecastRecomputeResult)
- Dashboard and leaderboard payloads (RepAnalyticsView, LeaderboardEntry)
- API request / response wrappers

Engine outputs that are returned to the dashboard keep the camelCase keys the
dashboard consumes (repData, coreRates, targetDelta, projectedUnits, ...);
record fields that mirror database columns stay snake_case.
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from perf_engine.models.enums import ActionFocus
from perf_engine.models.source_map import LeadAsks, LeadMix, SourceWeights


# =============================================================================
# Analytics Configuration
# =============================================================================


class AnalyticsParams(BaseModel):
    """
    Tuning parameters for one analysis call.

    Defaults come from get_analytics_params() in perf_engine.core.config;
    callers can pass a per-call instance instead.
    """
    model_config = ConfigDict(frozen=True)

    weights_window_days: int = Field(
        default=90,
        ge=0,
        description="Trailing window (days before as_of) of period rows used for source weights"
    )
    rolling_avg_months: int = Field(
        default=3,
        ge=1,
        description="Rolling average horizon; accepted for compatibility, not consumed"
    )
    gap_close_rate: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="Share of the gap to the top performer assigned as catch-up"
    )
    contact_multiplier_bounds: Tuple[float, float] = Field(
        default=(0.80, 1.25),
        description="Clamp bounds for the contact-rate behavior multiplier"
    )
    appointment_multiplier_bounds: Tuple[float, float] = Field(
        default=(0.85, 1.20),
        description="Clamp bounds for the appointment-rate behavior multiplier"
    )
    confidence_tau: float = Field(
        default=50.0,
        gt=0.0,
        description="Saturation constant of the confidence score"
    )
    max_realistic_contact_rate: float = Field(
        default=0.85,
        gt=0.0,
        le=1.0,
        description="Cap on the prescribed contact rate"
    )
    clamp_close_rates: bool = Field(
        default=True,
        description="Clamp close_from_show / close_from_contact to [0, 1]"
    )
    weight_iterations: int = Field(
        default=6,
        ge=1,
        description="Iterations of the source weight estimator"
    )
    weight_prior_strength: float = Field(
        default=50.0,
        ge=0.0,
        description="Pseudo-lead count of the global-rate prior"
    )
    max_source_weight: float = Field(
        default=2.0,
        gt=0.0,
        description="Upper clamp for a source weight"
    )
    default_contact_efficiency: float = Field(
        default=0.1,
        gt=0.0,
        description="Contacts per attempt assumed when a rep has no usable history"
    )

    @field_validator('contact_multiplier_bounds', 'appointment_multiplier_bounds')
    @classmethod
    def _check_bounds(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        low, high = value
        if low < 0 or low > high:
            raise ValueError(f"bounds must satisfy 0 <= low <= high, got {value}")
        return value


# =============================================================================
# Rep Period Input
# =============================================================================


class RepPeriodStats(BaseModel):
    """
    Raw funnel counts for one rep in one period.

    Counts are non-negative; the funnel is not required to be monotone
    (appointments_show may exceed appointments_set in imported data).
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "rep_id": "rep-001",
                "period": "2026-02",
                "units_sold": 12,
                "leads_by_source": {"internet": 30, "phone": 20, "referral": 10},
                "unique_leads_attempted": 55,
                "attempts": 160,
                "contacts": 35,
                "appointments_set": 10,
                "appointments_show": 8
            }
        }
    )

    rep_id: str = Field(..., min_length=1, description="Sales rep identifier")
    period: str = Field(default="", description="Period label, e.g. 2026-02")
    period_end: Optional[date] = Field(
        default=None,
        description="Last day covered by the row; used by the trailing weight window"
    )
    units_sold: int = Field(default=0, ge=0)
    leads_by_source: LeadMix = Field(default_factory=LeadMix)
    unique_leads_attempted: int = Field(default=0, ge=0)
    attempts: int = Field(default=0, ge=0)
    contacts: int = Field(default=0, ge=0)
    appointments_set: int = Field(default=0, ge=0)
    appointments_show: int = Field(default=0, ge=0)
    first_response_time_minutes: Optional[float] = Field(default=None, ge=0)
    lead_age_days_at_first_contact: Optional[float] = Field(default=None, ge=0)
    gross_profit: Optional[float] = Field(default=None)


# =============================================================================
# Analytics Engine Outputs
# =============================================================================


class StoreBaselines(BaseModel):
    """Pooled store-wide rates (sum of numerators over sum of denominators)."""
    contact_rate: float = 0.0
    appointment_set_rate: float = 0.0


class CoreRates(BaseModel):
    """Per-rep funnel ratios; a zero denominator yields 0."""
    contact_rate: float = 0.0
    appointment_set_rate: float = 0.0
    show_rate: float = 0.0
    close_from_show: float = 0.0
    close_from_contact: float = 0.0


class ExpectedUnits(BaseModel):
    """Model-attributed units: lead-mix value times bounded behavior multipliers."""
    base_expected: float
    contact_multiplier: float
    appointment_multiplier: float
    final_expected: float


class CatchUpTarget(BaseModel):
    """Next-period unit goal relative to the top performer."""
    current_units: int
    top_performer_units: int
    gap: int
    gap_close_rate: float
    target_units: int
    delta_units: int


class ActivityRecommendations(BaseModel):
    """Lead and contact-rate asks that close delta_units."""
    additional_leads_needed: LeadAsks = Field(default_factory=LeadAsks)
    required_contact_rate: float
    additional_attempts_needed: int
    is_on_track: bool


class PerformanceMetrics(BaseModel):
    """Normalized score, blended score, sample-size trust and 1-based rank."""
    performance_index: float
    balanced_score: float
    confidence_score: float
    rank: int


class RepAnalysisResult(BaseModel):
    """Everything the dashboard renders for one rep after an analysis call."""
    repData: RepPeriodStats
    coreRates: CoreRates
    expectedUnits: ExpectedUnits
    catchUpTarget: CatchUpTarget
    activityRecommendations: ActivityRecommendations
    performanceMetrics: PerformanceMetrics
    sourceWeights: SourceWeights
    storeBaselines: StoreBaselines
    isTopPerformer: bool


# =============================================================================
# Forecast Inputs and Outputs
# =============================================================================


class RepMonthStats(BaseModel):
    """
    Month-to-date counts for one rep, aggregated from deal and activity rows.

    Mirrors the rep_month_stats table keyed by (rep_id, month).
    """
    rep_id: str
    month: str = Field(..., description="First day of the month, YYYY-MM-01")
    leads: int = Field(default=0, ge=0)
    contacts: int = Field(default=0, ge=0)
    appts_set: int = Field(default=0, ge=0)
    appts_show: int = Field(default=0, ge=0)
    sold_units: int = Field(default=0, ge=0)
    close_rate: float = Field(default=0.0, ge=0.0)
    contact_rate: float = Field(default=0.0, ge=0.0)


class ProjectionInput(BaseModel):
    """Inputs to the linear month-end unit projection."""
    sold_units_so_far: int = Field(..., ge=0)
    leads_so_far: int = Field(..., ge=0)
    close_rate: float
    day_of_month: int
    days_in_month: int = Field(..., ge=1)


class UnitProjection(BaseModel):
    """Month-end projection and its intermediate quantities."""
    days_elapsed: int
    days_remaining: int
    projected_remaining_leads: float
    expected_future_deals: float
    projected_units: float


class QuotaProbabilityInput(BaseModel):
    """Inputs to the binomial quota-hit probability."""
    quota_units: int = Field(..., ge=0)
    sold_units_so_far: int = Field(..., ge=0)
    leads_remaining: int = Field(..., ge=0)
    close_probability: float


class NextBestAction(BaseModel):
    """Single coaching recommendation attached to a forecast."""
    focus: ActionFocus
    message: str
    targetDelta: int


class MonthForecastComputation(BaseModel):
    """Result of the pure month-end forecast pipeline for one rep."""
    leads_remaining: int
    close_probability: float
    projection: UnitProjection
    quota_hit_probability: float
    next_best_action: NextBestAction


class RepMonthForecast(BaseModel):
    """
    Persisted month-end forecast, one row per (rep_id, month).

    Mirrors the rep_month_forecast table; next_best_action is stored as JSONB.
    """
    rep_id: str
    month: str
    quota_units: int = Field(..., ge=0)
    projected_units: float
    quota_hit_probability: float = Field(..., ge=0.0, le=1.0)
    expected_future_deals: float
    next_best_action: NextBestAction
    model_version: str = "v1-binomial"
    updated_at: Optional[datetime] = None


class ForecastRecomputeResult(BaseModel):
    """Summary returned to the caller after a successful recompute."""
    month: str
    projectedUnits: float
    quotaHitProbability: float


# =============================================================================
# Dashboard and Leaderboard Payloads
# =============================================================================


class RepAnalyticsView(BaseModel):
    """Per-rep dashboard payload including advanced-analytics gating."""
    repId: str
    expectedUnits: ExpectedUnits
    coreRates: CoreRates
    performanceMetrics: PerformanceMetrics
    sourceWeights: SourceWeights
    storeBaselines: StoreBaselines
    actualUnits: int
    leadsBreakdown: LeadMix
    catchUpTarget: CatchUpTarget
    activityRecommendations: ActivityRecommendations
    isTopPerformer: bool
    hasAdvancedAccess: bool
    advancedAccessTopN: int
    rank: int
    performanceIndex: float
    confidenceScore: float
    defenseTarget: int
    currentUnits: int


class LeaderboardEntry(BaseModel):
    """One row of the deals leaderboard."""
    rep_id: str
    won_units: int
    won_revenue: float
    total_units: int
    total_revenue: float
    rank: int


# =============================================================================
# API Request / Response Wrappers
# =============================================================================


class AnalyzeRequest(BaseModel):
    """Body of POST /analytics/analyze."""
    reps: List[RepPeriodStats]
    params: Optional[AnalyticsParams] = None
    asOf: Optional[date] = Field(
        default=None,
        description="Anchor date of the trailing weight window; omitted means no filtering"
    )
    weightHistory: Optional[List[RepPeriodStats]] = Field(
        default=None,
        description="Rows used for source weights; defaults to reps"
    )
    dataVersion: Optional[str] = Field(
        default=None,
        description="Version tag of the snapshot; enables the store-level cache"
    )


class RepViewRequest(AnalyzeRequest):
    """Body of POST /analytics/reps/{rep_id}/view."""
    advancedAccessTopN: Optional[int] = None


class AnalyzeResponse(BaseModel):
    """Per-rep analysis keyed by rep_id, in rank order."""
    results: Dict[str, RepAnalysisResult]


class MonthForecastRequest(BaseModel):
    """Body of POST /forecast/compute: month-to-date counts plus calendar position."""
    leads: int = Field(..., ge=0)
    contacts: int = Field(default=0, ge=0)
    appts_set: int = Field(default=0, ge=0)
    appts_show: int = Field(default=0, ge=0)
    sold_units: int = Field(default=0, ge=0)
    quota_units: int = Field(..., ge=0)
    day_of_month: int = Field(..., ge=1)
    days_in_month: int = Field(..., ge=28, le=31)


class RecomputeRequest(BaseModel):
    """Body of POST /forecast/reps/{rep_id}/recompute."""
    quotaUnits: int = Field(..., ge=0)
    month: Optional[date] = Field(
        default=None,
        description="Any date inside the target month; defaults to today"
    )
