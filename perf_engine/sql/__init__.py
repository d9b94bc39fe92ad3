"""
SQL Query Modules for the Sales Performance Engine backend.

Modules:
    forecast_queries: Month-to-date deal/activity reads, rep_month_stats and
                      rep_month_forecast upserts, and the leaderboard deal scan.

Example usage:
    from perf_engine.sql import get_rep_month_forecast_upsert_query

    await conn.execute(get_rep_month_forecast_upsert_query(), rep_id, month, ...)
"""

from perf_engine.sql.forecast_queries import (
    get_month_deals_query,
    get_month_activities_query,
    get_rep_month_stats_upsert_query,
    get_rep_month_forecast_upsert_query,
    get_rep_month_forecast_query,
    get_month_forecast_quotas_query,
    get_leaderboard_deals_query,
)

__all__ = [
    'get_month_deals_query',
    'get_month_activities_query',
    'get_rep_month_stats_upsert_query',
    'get_rep_month_forecast_upsert_query',
    'get_rep_month_forecast_query',
    'get_month_forecast_quotas_query',
    'get_leaderboard_deals_query',
]
