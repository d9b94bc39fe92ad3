"""
Sales Performance Engine API package.

FastAPI router modules:
- analytics: Performance analysis, rep dashboard view, sample population, leaderboard
- forecast: Month-end forecast computation, recompute and lookup
"""

from fastapi import APIRouter

from perf_engine.api.analytics import router as analytics_router
from perf_engine.api.forecast import router as forecast_router

api_router = APIRouter()

api_router.include_router(analytics_router, prefix="/analytics", tags=["analytics"])
api_router.include_router(forecast_router, prefix="/forecast", tags=["forecast"])

__all__ = [
    "api_router",
    "analytics_router",
    "forecast_router",
]
