"""
Core infrastructure package for the Sales Performance Engine backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL database connectivity via asyncpg
- FastAPI dependency injection utilities

Usage Examples:
    from perf_engine.core import get_settings, get_analytics_params
    params = get_analytics_params()

    from perf_engine.core import DBSessionDep, SettingsDep
"""

# =============================================================================
# Re-exports from perf_engine.core.config
# =============================================================================
from perf_engine.core.config import Settings, get_settings, get_analytics_params

# =============================================================================
# Re-exports from perf_engine.core.database
# =============================================================================
from perf_engine.core.database import init_db, close_db, get_db_pool

# =============================================================================
# Re-exports from perf_engine.core.dependencies
# =============================================================================
from perf_engine.core.dependencies import (
    get_db_session,
    get_settings_dependency,
    get_baseline_cache,
    SettingsDep,
    DBSessionDep,
    BaselineCacheDep,
)

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    'get_analytics_params',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    # FastAPI dependency injection (from dependencies.py)
    'get_db_session',
    'get_settings_dependency',
    'get_baseline_cache',
    'SettingsDep',
    'DBSessionDep',
    'BaselineCacheDep',
]
