"""
Forecast Recompute Service.

Persistence path around the pure forecast computations in forecast.py:

    1. Read the rep's deals created and activities completed in the month
    2. Aggregate them into RepMonthStats
    3. Upsert rep_month_stats on (rep_id, month)
    4. Build the month-end forecast (projection, quota probability, next best action)
    5. Upsert rep_month_forecast on (rep_id, month)

Both upserts run in one transaction, so a failure leaves the previously
persisted rows untouched. Database failures are not retried here: they are
logged as warnings and the call returns None; retry policy belongs to the caller.

Aggregation rules:
    leads        = deals created in the month
    sold_units   = deals with status closed_won
    contacts     = activities whose outcome is a live conversation
                   (connected, appt_set, showed, sold, negotiating, follow_up)
    appts_set    = activities with outcome appt_set
    appts_show   = activities with outcome showed
    close_rate   = sold_units / appts_show
    contact_rate = contacts / leads

Calendar:
    For the current month the elapsed day count is today's day of month; for
    any other month the full month is treated as elapsed.

Dependencies:
    - asyncpg via get_db_pool: Database connectivity
    - perf_engine.sql.forecast_queries: Query strings

Usage:
    result = await recompute_rep_month_forecast('rep-001', quota_units=12)
    if result is None:
        ...  # persistence failed, previous forecast still in place
"""

import asyncio
import calendar
import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Tuple

import asyncpg

from perf_engine.core.database import get_db_pool
from perf_engine.models.enums import ActivityOutcome, DealStatus
from perf_engine.models.schemas import (
    ForecastRecomputeResult,
    NextBestAction,
    RepMonthForecast,
    RepMonthStats,
)
from perf_engine.services.forecast import MODEL_VERSION, build_month_forecast
from perf_engine.services.funnel_rates import safe_divide
from perf_engine.sql.forecast_queries import (
    get_month_activities_query,
    get_month_deals_query,
    get_rep_month_forecast_query,
    get_rep_month_forecast_upsert_query,
    get_rep_month_stats_upsert_query,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

CONTACT_OUTCOMES = frozenset({
    ActivityOutcome.CONNECTED.value,
    ActivityOutcome.APPT_SET.value,
    ActivityOutcome.SHOWED.value,
    ActivityOutcome.SOLD.value,
    ActivityOutcome.NEGOTIATING.value,
    ActivityOutcome.FOLLOW_UP.value,
})

# Failures treated as "persistence unavailable" rather than programming errors.
PERSISTENCE_ERRORS: Tuple[type, ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


# =============================================================================
# Calendar Helpers
# =============================================================================


def month_bounds(month_date: date) -> Tuple[datetime, datetime]:
    """Return [start, next start) of the month containing month_date, in UTC."""
    start = datetime(month_date.year, month_date.month, 1, tzinfo=timezone.utc)
    if month_date.month == 12:
        end = datetime(month_date.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(month_date.year, month_date.month + 1, 1, tzinfo=timezone.utc)
    return start, end


def month_key(month_date: date) -> str:
    """First day of the month as YYYY-MM-01."""
    return month_date.replace(day=1).isoformat()


def elapsed_days(month_date: date, today: date) -> Tuple[int, int]:
    """
    Return (day_of_month, days_in_month) for forecasting month_date as of today.

    Example:
        >>> elapsed_days(date(2026, 2, 3), date(2026, 2, 10))
        (10, 28)
        >>> elapsed_days(date(2026, 1, 15), date(2026, 2, 10))
        (31, 31)
    """
    days_in_month = calendar.monthrange(month_date.year, month_date.month)[1]
    is_current_month = (today.year, today.month) == (month_date.year, month_date.month)
    day_of_month = max(1, today.day) if is_current_month else days_in_month
    return day_of_month, days_in_month


# =============================================================================
# Aggregation
# =============================================================================


def aggregate_month_stats(
    rep_id: str,
    month: str,
    deals: Iterable[Mapping[str, Any]],
    activities: Iterable[Mapping[str, Any]],
) -> RepMonthStats:
    """
    Aggregate a rep's month of deal and activity rows into RepMonthStats.

    Args:
        rep_id: Sales rep identifier.
        month: Month key (YYYY-MM-01).
        deals: Rows with a 'status' column, already limited to the month.
        activities: Rows with an 'outcome' column, already limited to the month.

    Returns:
        RepMonthStats with derived close and contact rates.
    """
    deal_statuses = [row['status'] for row in deals]
    outcomes = [row['outcome'] or '' for row in activities]

    leads = len(deal_statuses)
    sold_units = sum(1 for status in deal_statuses if status == DealStatus.CLOSED_WON.value)
    contacts = sum(1 for outcome in outcomes if outcome in CONTACT_OUTCOMES)
    appts_set = sum(1 for outcome in outcomes if outcome == ActivityOutcome.APPT_SET.value)
    appts_show = sum(1 for outcome in outcomes if outcome == ActivityOutcome.SHOWED.value)

    return month_stats_from_counts(rep_id, month, leads, contacts, appts_set, appts_show, sold_units)


def month_stats_from_counts(
    rep_id: str,
    month: str,
    leads: int,
    contacts: int,
    appts_set: int,
    appts_show: int,
    sold_units: int,
) -> RepMonthStats:
    """Build RepMonthStats from raw counts, deriving close and contact rates."""
    return RepMonthStats(
        rep_id=rep_id,
        month=month,
        leads=leads,
        contacts=contacts,
        appts_set=appts_set,
        appts_show=appts_show,
        sold_units=sold_units,
        close_rate=safe_divide(sold_units, appts_show),
        contact_rate=safe_divide(contacts, leads),
    )


def build_rep_month_forecast(
    stats: RepMonthStats,
    quota_units: int,
    today: date,
    model_version: str = MODEL_VERSION,
) -> RepMonthForecast:
    """
    Build the persisted forecast record for a rep's month-to-date stats.

    Args:
        stats: Aggregated month-to-date stats.
        quota_units: Monthly quota.
        today: Date the forecast is made on.
        model_version: Tag stored with the row.

    Returns:
        RepMonthForecast; expected_future_deals equals projected_units minus
        units sold so far.
    """
    month_date = date.fromisoformat(stats.month)
    day_of_month, days_in_month = elapsed_days(month_date, today)
    computation = build_month_forecast(stats, quota_units, day_of_month, days_in_month)

    return RepMonthForecast(
        rep_id=stats.rep_id,
        month=stats.month,
        quota_units=quota_units,
        projected_units=computation.projection.projected_units,
        quota_hit_probability=computation.quota_hit_probability,
        expected_future_deals=computation.projection.expected_future_deals,
        next_best_action=computation.next_best_action,
        model_version=model_version,
    )


# =============================================================================
# Persistence
# =============================================================================


async def recompute_rep_month_forecast(
    rep_id: str,
    quota_units: int,
    month_date: Optional[date] = None,
    today: Optional[date] = None,
    model_version: str = MODEL_VERSION,
) -> Optional[ForecastRecomputeResult]:
    """
    Recompute and persist a rep's month-end forecast.

    Idempotent per (rep_id, month): recomputing from the same source rows
    writes the same values.

    Args:
        rep_id: Sales rep identifier.
        quota_units: Monthly quota.
        month_date: Any date inside the target month; defaults to today.
        today: Date the forecast is made on; defaults to the current UTC date.
        model_version: Tag stored with the forecast row.

    Returns:
        ForecastRecomputeResult, or None when the database could not be read
        or written.
    """
    today = today or datetime.now(timezone.utc).date()
    month_date = month_date or today
    start, end = month_bounds(month_date)
    key = month_key(month_date)

    try:
        pool = await get_db_pool()
        async with pool.acquire() as conn:
            deals = await conn.fetch(get_month_deals_query(), rep_id, start, end)
            activities = await conn.fetch(get_month_activities_query(), rep_id, start, end)

            stats = aggregate_month_stats(rep_id, key, deals, activities)
            forecast = build_rep_month_forecast(stats, quota_units, today, model_version)

            async with conn.transaction():
                await conn.execute(
                    get_rep_month_stats_upsert_query(),
                    stats.rep_id,
                    month_date.replace(day=1),
                    stats.leads,
                    stats.contacts,
                    stats.appts_set,
                    stats.appts_show,
                    stats.sold_units,
                    stats.close_rate,
                    stats.contact_rate,
                )
                await conn.execute(
                    get_rep_month_forecast_upsert_query(),
                    forecast.rep_id,
                    month_date.replace(day=1),
                    forecast.quota_units,
                    forecast.projected_units,
                    forecast.quota_hit_probability,
                    forecast.expected_future_deals,
                    forecast.next_best_action.model_dump_json(),
                    forecast.model_version,
                )
    except PERSISTENCE_ERRORS as e:
        logger.warning(f"Forecast recompute failed for rep {rep_id} month {key}: {e}")
        return None

    logger.info(
        f"Forecast recomputed for rep {rep_id} month {key}: "
        f"projected={forecast.projected_units:.2f} "
        f"p_quota={forecast.quota_hit_probability:.3f} "
        f"action={forecast.next_best_action.focus.value}"
    )

    return ForecastRecomputeResult(
        month=key,
        projectedUnits=forecast.projected_units,
        quotaHitProbability=forecast.quota_hit_probability,
    )


async def get_rep_month_forecast(rep_id: str, month_date: date) -> Optional[RepMonthForecast]:
    """
    Load a persisted forecast.

    Args:
        rep_id: Sales rep identifier.
        month_date: Any date inside the month.

    Returns:
        RepMonthForecast, or None if no row exists.

    Raises:
        asyncpg.PostgresError: If the query fails.
    """
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(get_rep_month_forecast_query(), rep_id, month_date.replace(day=1))

    if row is None:
        return None

    action = row['next_best_action']
    if isinstance(action, str):
        action = json.loads(action)

    month_value = row['month']
    return RepMonthForecast(
        rep_id=row['rep_id'],
        month=month_value.isoformat() if isinstance(month_value, date) else str(month_value),
        quota_units=row['quota_units'],
        projected_units=float(row['projected_units']),
        quota_hit_probability=float(row['quota_hit_probability']),
        expected_future_deals=float(row['expected_future_deals']),
        next_best_action=NextBestAction.model_validate(action),
        model_version=row['model_version'],
        updated_at=row['updated_at'],
    )
