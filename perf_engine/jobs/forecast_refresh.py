"""
Forecast Refresh Job.

Recomputes the month-end forecast of every rep that already has a forecast
row for the current month. Quotas are read back from rep_month_forecast, so a
rep enters the refresh cycle after its first explicit recompute.

Intended to run on a schedule (e.g. hourly) alongside activity ingestion.
A failure for one rep is logged and counted; the remaining reps are still
refreshed.

Usage:
    from perf_engine.jobs import refresh_month_forecasts

    summary = await refresh_month_forecasts()
    # {'month': '2026-02-01', 'refreshed': 14, 'failed': 1, 'failed_reps': ['rep-007']}
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from perf_engine.core.config import get_settings
from perf_engine.core.database import get_db_pool
from perf_engine.services.forecast_recompute import (
    PERSISTENCE_ERRORS,
    month_key,
    recompute_rep_month_forecast,
)
from perf_engine.sql.forecast_queries import get_month_forecast_quotas_query

logger = logging.getLogger(__name__)


async def refresh_month_forecasts(today: Optional[date] = None) -> Dict[str, Any]:
    """
    Recompute forecasts for all reps with a quota in the current month.

    Args:
        today: Date the forecasts are made on (default: current UTC date).

    Returns:
        Dict with:
        - month: Month key (YYYY-MM-01)
        - refreshed: Number of reps recomputed successfully
        - failed: Number of reps whose recompute returned None
        - failed_reps: rep_ids that failed
        - error: Present only when the quota list could not be read
    """
    today = today or datetime.now(timezone.utc).date()
    key = month_key(today)
    model_version = get_settings().forecast_model_version

    try:
        pool = await get_db_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(get_month_forecast_quotas_query(), today.replace(day=1))
    except PERSISTENCE_ERRORS as e:
        logger.error(f"Failed to load forecast quotas for {key}: {e}")
        return {
            'month': key,
            'refreshed': 0,
            'failed': 0,
            'failed_reps': [],
            'error': str(e),
        }

    failed_reps: List[str] = []
    refreshed = 0
    for row in rows:
        rep_id = row['rep_id']
        result = await recompute_rep_month_forecast(
            rep_id,
            row['quota_units'],
            month_date=today,
            today=today,
            model_version=model_version,
        )
        if result is None:
            logger.error(f"Forecast refresh failed for rep {rep_id} month {key}")
            failed_reps.append(rep_id)
        else:
            refreshed += 1

    logger.info(f"Forecast refresh for {key}: refreshed={refreshed} failed={len(failed_reps)}")

    return {
        'month': key,
        'refreshed': refreshed,
        'failed': len(failed_reps),
        'failed_reps': failed_reps,
    }
