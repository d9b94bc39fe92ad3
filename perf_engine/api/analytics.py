"""
FastAPI router module for performance analytics endpoints.

Key Endpoints:
- POST /analytics/analyze: Full per-rep analysis of a rep population snapshot
- POST /analytics/reps/{rep_id}/view: Dashboard payload for one rep
- GET /analytics/sample: Analysis of the deterministic sample population
- GET /analytics/leaderboard: Deal-based leaderboard from the database

The analysis endpoints are pure computations over the request body and are
declared as plain `def` handlers so FastAPI runs them in its threadpool.
When the body carries a dataVersion, source weights and store baselines are
served from the process-wide BaselineCache.

Dependencies:
- perf_engine/services/analyze_performance.py: Orchestrator
- perf_engine/services/rep_view.py: Dashboard view model
- perf_engine/services/leaderboard.py: Deal ranking
- perf_engine/core/dependencies.py: Settings, cache and DB session injection
"""

import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

import asyncpg
from fastapi import APIRouter, HTTPException, Query

from perf_engine.core.config import Settings, get_analytics_params
from perf_engine.core.dependencies import BaselineCacheDep, DBSessionDep, SettingsDep
from perf_engine.models.enums import RankBy
from perf_engine.models.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    LeaderboardEntry,
    RepAnalysisResult,
    RepAnalyticsView,
    RepViewRequest,
)
from perf_engine.services.analyze_performance import analyze_performance
from perf_engine.services.baseline_cache import BaselineCache, CacheKey
from perf_engine.services.forecast_recompute import month_bounds
from perf_engine.services.leaderboard import rank_reps_from_deals
from perf_engine.services.rep_view import build_rep_view
from perf_engine.services.sample_data import DEFAULT_PERIOD, DEFAULT_SEED, generate_sample_population
from perf_engine.sql.forecast_queries import get_leaderboard_deals_query

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Helpers
# =============================================================================


def _cache_key(request: AnalyzeRequest) -> Optional[CacheKey]:
    """Snapshot identity for the cache, or None when no dataVersion was sent."""
    if not request.dataVersion:
        return None
    periods = sorted({rep.period for rep in request.reps})
    return CacheKey(period=','.join(periods), data_version=request.dataVersion)


def _run_analysis(request: AnalyzeRequest, settings: Settings, cache: BaselineCache) -> Dict[str, RepAnalysisResult]:
    params = request.params or get_analytics_params(settings)
    try:
        return analyze_performance(
            request.reps,
            params,
            as_of=request.asOf,
            weight_history=request.weightHistory,
            cache=cache,
            cache_key=_cache_key(request),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# =============================================================================
# API Endpoints
# =============================================================================


@router.post(
    '/analyze',
    response_model=AnalyzeResponse,
    summary="Analyze Rep Population",
)
def analyze(request: AnalyzeRequest, settings: SettingsDep, cache: BaselineCacheDep) -> AnalyzeResponse:
    """
    Analyze every rep in the snapshot.

    Returns:
        AnalyzeResponse keyed by rep_id in rank order. An empty reps list
        yields an empty result map.

    Raises:
        HTTPException 400: Duplicate rep_id in the snapshot.
    """
    results = _run_analysis(request, settings, cache)
    logger.info(f"Analyzed {len(results)} reps")
    return AnalyzeResponse(results=results)


@router.post(
    '/reps/{rep_id}/view',
    response_model=RepAnalyticsView,
    summary="Get Rep Dashboard View",
)
def rep_view(
    rep_id: str,
    request: RepViewRequest,
    settings: SettingsDep,
    cache: BaselineCacheDep,
) -> RepAnalyticsView:
    """
    Build the dashboard payload for one rep of the snapshot.

    Raises:
        HTTPException 400: Duplicate rep_id in the snapshot.
        HTTPException 404: rep_id is not part of the snapshot.
    """
    results = _run_analysis(request, settings, cache)
    result = results.get(rep_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Rep {rep_id} not found in snapshot")

    top_n = request.advancedAccessTopN
    if top_n is None:
        top_n = settings.advanced_access_top_n
    return build_rep_view(result, top_n)


@router.get(
    '/sample',
    response_model=AnalyzeResponse,
    summary="Analyze Sample Population",
)
def sample_analysis(
    settings: SettingsDep,
    period: str = Query(default=DEFAULT_PERIOD, pattern=r'^\d{4}-\d{2}$'),
    seed: int = Query(default=DEFAULT_SEED, ge=0),
) -> AnalyzeResponse:
    """Analyze the generated five-rep sample population."""
    reps = generate_sample_population(period=period, seed=seed)
    results = analyze_performance(reps, get_analytics_params(settings))
    return AnalyzeResponse(results=results)


@router.get(
    '/leaderboard',
    response_model=List[LeaderboardEntry],
    summary="Get Deals Leaderboard",
)
async def leaderboard(
    db: DBSessionDep,
    rank_by: RankBy = Query(default=RankBy.WON_UNITS),
    month: Optional[date] = Query(default=None, description="Any date inside the month; defaults to today"),
) -> List[LeaderboardEntry]:
    """
    Rank reps by their deals created in a month.

    Raises:
        HTTPException 503: If the deals query fails.
    """
    start, end = month_bounds(month or datetime.now(timezone.utc).date())
    try:
        rows = await db.fetch(get_leaderboard_deals_query(), start, end)
    except (asyncpg.PostgresError, OSError) as e:
        logger.error(f"Leaderboard query failed: {e}")
        raise HTTPException(status_code=503, detail="Leaderboard data is unavailable")

    return rank_reps_from_deals(rows, rank_by)
