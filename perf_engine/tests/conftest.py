"""
Pytest Configuration and Shared Fixtures for Sales Performance Engine Tests.

This module provides fixtures and configuration for all tests, supporting:
- Async test execution with pytest-asyncio
- Mock asyncpg pool fixtures for the forecast persistence path and jobs
- A RepPeriodStats factory and a small hand-built rep population
- The deterministic sample population for estimator stability checks

Dependency References:
- perf_engine/core/database.py: get_db_pool for database connections
- perf_engine/services/forecast_recompute.py: recompute path patched in tests
- perf_engine/services/sample_data.py: generate_sample_population
"""

from typing import Any, Callable, Dict, Generator, List, Optional
from unittest.mock import AsyncMock, Mock, patch

import pytest

from perf_engine.models.schemas import AnalyticsParams, RepPeriodStats
from perf_engine.services.sample_data import generate_sample_population


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - slow: Marks tests as slow (deselect with -m "not slow")
    - integration: Marks tests requiring a live database
    """
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )
    config.addinivalue_line(
        'markers',
        'integration: marks tests requiring a live PostgreSQL database'
    )


# ============================================================
# DATABASE MOCK FIXTURES
# ============================================================

@pytest.fixture
def mock_db_pool() -> AsyncMock:
    """
    Create a mock asyncpg connection pool.

    Methods Mocked:
        - pool.acquire(): Returns async context manager yielding the connection
        - conn.transaction(): Returns async context manager
        - conn.execute / fetch / fetchrow / fetchval: AsyncMocks with empty results

    Usage:
        conn = mock_db_pool.acquire.return_value.__aenter__.return_value
        conn.fetch.return_value = [{'status': 'closed_won'}]
    """
    pool = AsyncMock()

    conn = AsyncMock()
    conn.execute = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=None)

    transaction_context = AsyncMock()
    transaction_context.__aenter__ = AsyncMock(return_value=None)
    transaction_context.__aexit__ = AsyncMock(return_value=None)
    conn.transaction = Mock(return_value=transaction_context)

    acquire_context = AsyncMock()
    acquire_context.__aenter__ = AsyncMock(return_value=conn)
    acquire_context.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = Mock(return_value=acquire_context)

    pool.close = AsyncMock(return_value=None)

    return pool


@pytest.fixture
def mock_connection(mock_db_pool: AsyncMock) -> AsyncMock:
    """The connection yielded by mock_db_pool.acquire()."""
    return mock_db_pool.acquire.return_value.__aenter__.return_value


@pytest.fixture
def mock_recompute_database(mock_db_pool: AsyncMock) -> Generator[AsyncMock, None, None]:
    """
    Patch get_db_pool where the forecast recompute service imported it.

    Yields:
        AsyncMock: The mock pool being used
    """
    with patch(
        'perf_engine.services.forecast_recompute.get_db_pool',
        new=AsyncMock(return_value=mock_db_pool),
    ):
        yield mock_db_pool


# ============================================================
# REP DATA FIXTURES
# ============================================================

@pytest.fixture
def make_rep() -> Callable[..., RepPeriodStats]:
    """
    Factory for RepPeriodStats with a plausible funnel.

    Usage:
        rep = make_rep('rep-x', units_sold=7, leads_by_source={'phone': 20})
    """
    def _make_rep(
        rep_id: str,
        units_sold: int = 10,
        leads_by_source: Optional[Dict[str, int]] = None,
        **overrides: Any,
    ) -> RepPeriodStats:
        fields: Dict[str, Any] = {
            'rep_id': rep_id,
            'period': '2026-02',
            'units_sold': units_sold,
            'leads_by_source': leads_by_source if leads_by_source is not None else {'internet': 40, 'phone': 20},
            'unique_leads_attempted': 50,
            'attempts': 150,
            'contacts': 25,
            'appointments_set': 8,
            'appointments_show': 6,
        }
        fields.update(overrides)
        return RepPeriodStats(**fields)

    return _make_rep


@pytest.fixture
def small_population(make_rep: Callable[..., RepPeriodStats]) -> List[RepPeriodStats]:
    """
    Three reps with different lead mixes and an unambiguous top performer.

    rep-a: 24 units (top), rep-b: 10 units, rep-c: 6 units.
    """
    return [
        make_rep(
            'rep-b',
            units_sold=10,
            leads_by_source={'internet': 50, 'phone': 20, 'referral': 5},
            unique_leads_attempted=60,
            contacts=24,
            appointments_set=8,
        ),
        make_rep(
            'rep-a',
            units_sold=24,
            leads_by_source={'internet': 30, 'phone': 30, 'referral': 25},
            unique_leads_attempted=80,
            attempts=240,
            contacts=48,
            appointments_set=16,
            appointments_show=13,
        ),
        make_rep(
            'rep-c',
            units_sold=6,
            leads_by_source={'internet': 45, 'walkin': 10},
            unique_leads_attempted=40,
            attempts=90,
            contacts=12,
            appointments_set=3,
            appointments_show=2,
        ),
    ]


@pytest.fixture
def sample_population() -> List[RepPeriodStats]:
    """The deterministic five-rep sample population."""
    return generate_sample_population()


@pytest.fixture
def default_params() -> AnalyticsParams:
    """AnalyticsParams with every default."""
    return AnalyticsParams()
