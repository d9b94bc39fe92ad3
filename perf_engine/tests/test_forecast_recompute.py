"""
Tests for forecast aggregation, persistence and the refresh job.

The database is replaced by the mock_db_pool fixture; get_db_pool is patched
where each module imported it.

Test Classes:
- TestCalendarHelpers: month bounds, month key, elapsed days
- TestAggregation: deal and activity rows to RepMonthStats
- TestRecompute: upsert flow, transaction use, failure handling
- TestReadForecast: row decoding
- TestForecastRefreshJob: per-rep loop and failure accounting
"""

import json
import logging
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from perf_engine.jobs.forecast_refresh import refresh_month_forecasts
from perf_engine.models.enums import ActionFocus
from perf_engine.models.schemas import ForecastRecomputeResult
from perf_engine.services.forecast_recompute import (
    aggregate_month_stats,
    build_rep_month_forecast,
    elapsed_days,
    get_rep_month_forecast,
    month_bounds,
    month_key,
    month_stats_from_counts,
    recompute_rep_month_forecast,
)


DEALS = [
    {'status': 'closed_won'},
    {'status': 'closed_won'},
    {'status': 'open'},
    {'status': 'negotiating'},
    {'status': 'closed_lost'},
    {'status': 'open'},
    {'status': 'open'},
    {'status': 'open'},
]

ACTIVITIES = [
    {'outcome': 'no_answer'},
    {'outcome': 'left_message'},
    {'outcome': 'connected'},
    {'outcome': 'appt_set'},
    {'outcome': 'appt_set'},
    {'outcome': 'showed'},
    {'outcome': 'sold'},
    {'outcome': None},
]


class TestCalendarHelpers:
    """Tests for month_bounds, month_key and elapsed_days."""

    def test_month_bounds(self) -> None:
        start, end = month_bounds(date(2026, 2, 17))

        assert start == datetime(2026, 2, 1, tzinfo=timezone.utc)
        assert end == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_month_bounds_december(self) -> None:
        start, end = month_bounds(date(2025, 12, 31))

        assert start == datetime(2025, 12, 1, tzinfo=timezone.utc)
        assert end == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_month_key(self) -> None:
        assert month_key(date(2026, 2, 17)) == '2026-02-01'

    def test_elapsed_days_current_month(self) -> None:
        assert elapsed_days(date(2026, 2, 3), date(2026, 2, 10)) == (10, 28)

    def test_elapsed_days_past_month(self) -> None:
        assert elapsed_days(date(2026, 1, 15), date(2026, 2, 10)) == (31, 31)

    def test_elapsed_days_leap_february(self) -> None:
        assert elapsed_days(date(2028, 2, 1), date(2028, 3, 1)) == (29, 29)


class TestAggregation:
    """Tests for aggregate_month_stats."""

    def test_counts_and_rates(self) -> None:
        stats = aggregate_month_stats('rep-001', '2026-02-01', DEALS, ACTIVITIES)

        assert stats.leads == 8
        assert stats.sold_units == 2
        assert stats.contacts == 5, "connected, appt_set x2, showed and sold are live conversations"
        assert stats.appts_set == 2
        assert stats.appts_show == 1
        assert stats.close_rate == pytest.approx(2.0)
        assert stats.contact_rate == pytest.approx(5 / 8)

    def test_empty_month(self) -> None:
        stats = aggregate_month_stats('rep-001', '2026-02-01', [], [])

        assert stats.leads == 0
        assert stats.close_rate == 0.0
        assert stats.contact_rate == 0.0

    def test_build_rep_month_forecast(self) -> None:
        stats = aggregate_month_stats('rep-001', '2026-02-01', DEALS, ACTIVITIES)

        forecast = build_rep_month_forecast(stats, quota_units=6, today=date(2026, 2, 14))

        # 8 leads in 14 days, 14 days left: 8 more leads at 2 / 5 units per contact
        assert forecast.projected_units == pytest.approx(2 + 8 * 0.4)
        assert forecast.expected_future_deals == pytest.approx(forecast.projected_units - 2)
        assert 0.0 <= forecast.quota_hit_probability <= 1.0
        assert forecast.model_version == 'v1-binomial'

    def test_expected_future_deals_uses_unrounded_lead_pace(self) -> None:
        stats = month_stats_from_counts('rep-001', '2026-02-01', 5, 4, 0, 0, 1)

        forecast = build_rep_month_forecast(stats, quota_units=3, today=date(2026, 2, 3))

        # 5 leads in 3 days, 25 days left: 125/3 leads at 1 / 4 units per contact.
        # The quota probability uses the rounded count (42) instead.
        assert forecast.expected_future_deals == pytest.approx(125 / 12)
        assert forecast.expected_future_deals != pytest.approx(42 * 0.25)
        assert forecast.projected_units == pytest.approx(1 + 125 / 12)


class TestRecompute:
    """Tests for recompute_rep_month_forecast."""

    @pytest.mark.asyncio
    async def test_recompute_upserts_both_tables(self, mock_recompute_database, mock_connection) -> None:
        mock_connection.fetch.side_effect = [DEALS, ACTIVITIES]

        result = await recompute_rep_month_forecast(
            'rep-001',
            quota_units=6,
            month_date=date(2026, 2, 14),
            today=date(2026, 2, 14),
        )

        assert isinstance(result, ForecastRecomputeResult)
        assert result.month == '2026-02-01'
        assert result.projectedUnits == pytest.approx(5.2)
        assert 0.0 <= result.quotaHitProbability <= 1.0

        deals_call = mock_connection.fetch.call_args_list[0]
        assert deals_call.args[1:] == (
            'rep-001',
            datetime(2026, 2, 1, tzinfo=timezone.utc),
            datetime(2026, 3, 1, tzinfo=timezone.utc),
        )

        assert mock_connection.transaction.call_count == 1
        assert mock_connection.execute.call_count == 2

        stats_args = mock_connection.execute.call_args_list[0].args
        assert 'rep_month_stats' in stats_args[0]
        assert stats_args[1:8] == ('rep-001', date(2026, 2, 1), 8, 5, 2, 1, 2)

        forecast_args = mock_connection.execute.call_args_list[1].args
        assert 'rep_month_forecast' in forecast_args[0]
        assert forecast_args[1:4] == ('rep-001', date(2026, 2, 1), 6)
        assert json.loads(forecast_args[7])['focus'] in {focus.value for focus in ActionFocus}
        assert forecast_args[8] == 'v1-binomial'

    @pytest.mark.asyncio
    async def test_recompute_is_idempotent(self, mock_recompute_database, mock_connection) -> None:
        mock_connection.fetch.side_effect = [DEALS, ACTIVITIES, DEALS, ACTIVITIES]

        first = await recompute_rep_month_forecast('rep-001', 6, date(2026, 2, 14), date(2026, 2, 14))
        second = await recompute_rep_month_forecast('rep-001', 6, date(2026, 2, 14), date(2026, 2, 14))

        assert first == second
        calls = mock_connection.execute.call_args_list
        assert calls[0].args == calls[2].args
        assert calls[1].args == calls[3].args

    @pytest.mark.asyncio
    async def test_read_failure_returns_none(
        self,
        mock_recompute_database,
        mock_connection,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        mock_connection.fetch.side_effect = ConnectionRefusedError("connection refused")

        with caplog.at_level(logging.WARNING):
            result = await recompute_rep_month_forecast('rep-001', 6, date(2026, 2, 14), date(2026, 2, 14))

        assert result is None
        mock_connection.execute.assert_not_called()
        assert 'Forecast recompute failed for rep rep-001' in caplog.text

    @pytest.mark.asyncio
    async def test_write_failure_returns_none(self, mock_recompute_database, mock_connection) -> None:
        mock_connection.fetch.side_effect = [DEALS, ACTIVITIES]
        mock_connection.execute.side_effect = OSError("connection reset")

        result = await recompute_rep_month_forecast('rep-001', 6, date(2026, 2, 14), date(2026, 2, 14))

        assert result is None

    @pytest.mark.asyncio
    async def test_programming_errors_propagate(self, mock_recompute_database, mock_connection) -> None:
        """Only persistence failures are absorbed."""
        mock_connection.fetch.side_effect = [[{'wrong_column': 1}], ACTIVITIES]

        with pytest.raises(KeyError):
            await recompute_rep_month_forecast('rep-001', 6, date(2026, 2, 14), date(2026, 2, 14))


class TestReadForecast:
    """Tests for get_rep_month_forecast."""

    @pytest.mark.asyncio
    async def test_decodes_row(self, mock_recompute_database, mock_connection) -> None:
        mock_connection.fetchrow.return_value = {
            'rep_id': 'rep-001',
            'month': date(2026, 2, 1),
            'quota_units': 12,
            'projected_units': 10.5,
            'quota_hit_probability': 0.31,
            'expected_future_deals': 4.5,
            'next_best_action': json.dumps({
                'focus': 'increase_leads',
                'message': 'More leads',
                'targetDelta': 2,
            }),
            'model_version': 'v1-binomial',
            'updated_at': datetime(2026, 2, 14, 9, 30, tzinfo=timezone.utc),
        }

        forecast = await get_rep_month_forecast('rep-001', date(2026, 2, 20))

        assert forecast is not None
        assert forecast.month == '2026-02-01'
        assert forecast.next_best_action.focus == ActionFocus.INCREASE_LEADS
        assert mock_connection.fetchrow.call_args.args[1:] == ('rep-001', date(2026, 2, 1))

    @pytest.mark.asyncio
    async def test_missing_row(self, mock_recompute_database) -> None:
        assert await get_rep_month_forecast('rep-404', date(2026, 2, 1)) is None


class TestForecastRefreshJob:
    """Tests for refresh_month_forecasts."""

    @pytest.mark.asyncio
    async def test_refreshes_each_rep(self, mock_db_pool, mock_connection) -> None:
        mock_connection.fetch.return_value = [
            {'rep_id': 'rep-001', 'quota_units': 12},
            {'rep_id': 'rep-002', 'quota_units': 10},
            {'rep_id': 'rep-003', 'quota_units': 8},
        ]
        recompute = AsyncMock(side_effect=[
            ForecastRecomputeResult(month='2026-02-01', projectedUnits=11.0, quotaHitProbability=0.4),
            None,
            ForecastRecomputeResult(month='2026-02-01', projectedUnits=9.0, quotaHitProbability=0.8),
        ])

        with patch('perf_engine.jobs.forecast_refresh.get_db_pool', new=AsyncMock(return_value=mock_db_pool)), \
                patch('perf_engine.jobs.forecast_refresh.recompute_rep_month_forecast', new=recompute):
            summary = await refresh_month_forecasts(today=date(2026, 2, 14))

        assert summary == {
            'month': '2026-02-01',
            'refreshed': 2,
            'failed': 1,
            'failed_reps': ['rep-002'],
        }
        assert recompute.call_count == 3
        assert recompute.call_args_list[0].args == ('rep-001', 12)
        assert mock_connection.fetch.call_args.args[1] == date(2026, 2, 1)

    @pytest.mark.asyncio
    async def test_quota_query_failure(self, mock_db_pool, mock_connection) -> None:
        mock_connection.fetch.side_effect = OSError("database unreachable")
        recompute = AsyncMock()

        with patch('perf_engine.jobs.forecast_refresh.get_db_pool', new=AsyncMock(return_value=mock_db_pool)), \
                patch('perf_engine.jobs.forecast_refresh.recompute_rep_month_forecast', new=recompute):
            summary = await refresh_month_forecasts(today=date(2026, 2, 14))

        assert summary['refreshed'] == 0
        assert 'database unreachable' in summary['error']
        recompute.assert_not_called()
