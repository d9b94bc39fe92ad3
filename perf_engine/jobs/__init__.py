"""
Scheduled jobs for the Sales Performance Engine.

- forecast_refresh: Recompute current-month forecasts for every rep with a quota

Usage:
    from perf_engine.jobs import refresh_month_forecasts

    summary = await refresh_month_forecasts()
"""

from perf_engine.jobs.forecast_refresh import refresh_month_forecasts

__all__ = [
    'refresh_month_forecasts',
]
