"""
FastAPI dependency injection module for the Sales Performance Engine backend.

Key Dependencies Provided:
- get_db_session: Async generator yielding database connections from the pool
- get_settings_dependency: Returns the cached Settings singleton
- get_baseline_cache: Returns the process-wide store-level cache
- SettingsDep / DBSessionDep / BaselineCacheDep: Annotated aliases for endpoints

Usage Examples:
    @router.get("/leaderboard")
    async def leaderboard(db: DBSessionDep, settings: SettingsDep):
        rows = await db.fetch(...)

    In tests, override with:
        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
"""

import asyncio
import logging
from typing import Annotated, AsyncGenerator

import asyncpg
from asyncpg import Connection
from fastapi import Depends, HTTPException

from perf_engine.core.config import Settings, get_settings
from perf_engine.core.database import get_db_pool
from perf_engine.services.baseline_cache import BaselineCache

logger = logging.getLogger(__name__)


# =============================================================================
# Database Session Dependency
# =============================================================================

async def get_db_session() -> AsyncGenerator[Connection, None]:
    """
    Yield an async database connection from the pool.

    The connection is released back to the pool when the endpoint completes,
    whether or not it raised.

    Yields:
        asyncpg.Connection: An active database connection from the pool.

    Raises:
        HTTPException: 503 if the pool cannot be created or has no connection
            to hand out.
    """
    try:
        pool = await get_db_pool()
        connection = await pool.acquire()
    except (asyncpg.PostgresError, OSError, asyncio.TimeoutError) as e:
        logger.error(f"Database connection unavailable: {e}")
        raise HTTPException(status_code=503, detail="Database is unavailable")

    try:
        yield connection
    finally:
        await pool.release(connection)


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can use dependency_overrides.
    """
    return get_settings()


# =============================================================================
# Store-Level Cache Dependency
# =============================================================================

_baseline_cache = BaselineCache()


def get_baseline_cache() -> BaselineCache:
    """Return the process-wide cache of source weights and store baselines."""
    return _baseline_cache


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

DBSessionDep = Annotated[Connection, Depends(get_db_session)]

BaselineCacheDep = Annotated[BaselineCache, Depends(get_baseline_cache)]
