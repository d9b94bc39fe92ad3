"""
FastAPI router module for month-end forecast endpoints.

Key Endpoints:
- POST /forecast/compute: Pure forecast from month-to-date counts (no persistence)
- POST /forecast/reps/{rep_id}/recompute: Aggregate, forecast and upsert for one rep
- GET /forecast/reps/{rep_id}: Read the persisted forecast for a month

The recompute endpoint reports 503 when the persistence path returns None;
the previously stored forecast is left in place in that case.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

import asyncpg
from fastapi import APIRouter, HTTPException, Query

from perf_engine.core.dependencies import SettingsDep
from perf_engine.models.schemas import (
    ForecastRecomputeResult,
    MonthForecastComputation,
    MonthForecastRequest,
    RecomputeRequest,
    RepMonthForecast,
)
from perf_engine.services.forecast import build_month_forecast
from perf_engine.services.forecast_recompute import (
    get_rep_month_forecast,
    month_stats_from_counts,
    recompute_rep_month_forecast,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    '/compute',
    response_model=MonthForecastComputation,
    summary="Compute Month-End Forecast",
)
def compute_forecast(request: MonthForecastRequest) -> MonthForecastComputation:
    """
    Forecast month-end units and quota probability from month-to-date counts.

    Nothing is read from or written to the database.
    """
    stats = month_stats_from_counts(
        rep_id='',
        month='',
        leads=request.leads,
        contacts=request.contacts,
        appts_set=request.appts_set,
        appts_show=request.appts_show,
        sold_units=request.sold_units,
    )
    return build_month_forecast(stats, request.quota_units, request.day_of_month, request.days_in_month)


@router.post(
    '/reps/{rep_id}/recompute',
    response_model=ForecastRecomputeResult,
    summary="Recompute Rep Forecast",
)
async def recompute_forecast(
    rep_id: str,
    request: RecomputeRequest,
    settings: SettingsDep,
) -> ForecastRecomputeResult:
    """
    Recompute and persist a rep's forecast for a month.

    Raises:
        HTTPException 503: If deals/activities could not be read or the
            forecast could not be stored.
    """
    result = await recompute_rep_month_forecast(
        rep_id,
        request.quotaUnits,
        month_date=request.month,
        model_version=settings.forecast_model_version,
    )
    if result is None:
        raise HTTPException(status_code=503, detail="Forecast could not be recomputed")
    return result


@router.get(
    '/reps/{rep_id}',
    response_model=RepMonthForecast,
    summary="Get Rep Forecast",
)
async def read_forecast(
    rep_id: str,
    month: Optional[date] = Query(default=None, description="Any date inside the month; defaults to today"),
) -> RepMonthForecast:
    """
    Return the persisted forecast for a rep and month.

    Raises:
        HTTPException 404: No forecast stored for the rep and month.
        HTTPException 503: If the query fails.
    """
    month_date = month or datetime.now(timezone.utc).date()
    try:
        forecast = await get_rep_month_forecast(rep_id, month_date)
    except (asyncpg.PostgresError, OSError) as e:
        logger.error(f"Forecast lookup failed for rep {rep_id}: {e}")
        raise HTTPException(status_code=503, detail="Forecast data is unavailable")

    if forecast is None:
        raise HTTPException(status_code=404, detail=f"No forecast for rep {rep_id} in {month_date:%Y-%m}")
    return forecast
