"""
Parameterized SQL query module for month-to-date forecasting and the deals leaderboard.

Tables:
    deals               (id, sales_rep_id, status, deal_amount, created_at, ...)
    activities          (id, sales_rep_id, outcome, completed_at, ...)
    rep_month_stats     unique (rep_id, month)
    rep_month_forecast  unique (rep_id, month); next_best_action is JSONB

All queries use asyncpg positional placeholders ($1, $2, ...). Month ranges are
half-open: [month_start, next_month_start).
"""


def get_month_deals_query() -> str:
    """
    Deals a rep created inside a month.

    Parameters: $1 sales_rep_id, $2 month start (timestamptz), $3 next month start.
    """
    return """
    SELECT status, created_at
    FROM deals
    WHERE sales_rep_id = $1
      AND created_at >= $2
      AND created_at < $3
    """


def get_month_activities_query() -> str:
    """
    Activities a rep completed inside a month.

    Parameters: $1 sales_rep_id, $2 month start (timestamptz), $3 next month start.
    """
    return """
    SELECT outcome, completed_at
    FROM activities
    WHERE sales_rep_id = $1
      AND completed_at >= $2
      AND completed_at < $3
    """


def get_rep_month_stats_upsert_query() -> str:
    """
    Upsert month-to-date stats for (rep_id, month).

    Parameters: $1 rep_id, $2 month (date), $3 leads, $4 contacts, $5 appts_set,
    $6 appts_show, $7 sold_units, $8 close_rate, $9 contact_rate.
    """
    return """
    INSERT INTO rep_month_stats (
        rep_id,
        month,
        leads,
        contacts,
        appts_set,
        appts_show,
        sold_units,
        close_rate,
        contact_rate,
        updated_at
    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, NOW())
    ON CONFLICT (rep_id, month) DO UPDATE SET
        leads = EXCLUDED.leads,
        contacts = EXCLUDED.contacts,
        appts_set = EXCLUDED.appts_set,
        appts_show = EXCLUDED.appts_show,
        sold_units = EXCLUDED.sold_units,
        close_rate = EXCLUDED.close_rate,
        contact_rate = EXCLUDED.contact_rate,
        updated_at = NOW()
    """


def get_rep_month_forecast_upsert_query() -> str:
    """
    Upsert the month-end forecast for (rep_id, month).

    Parameters: $1 rep_id, $2 month (date), $3 quota_units, $4 projected_units,
    $5 quota_hit_probability, $6 expected_future_deals, $7 next_best_action (JSON text),
    $8 model_version.
    """
    return """
    INSERT INTO rep_month_forecast (
        rep_id,
        month,
        quota_units,
        projected_units,
        quota_hit_probability,
        expected_future_deals,
        next_best_action,
        model_version,
        updated_at
    ) VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb, $8, NOW())
    ON CONFLICT (rep_id, month) DO UPDATE SET
        quota_units = EXCLUDED.quota_units,
        projected_units = EXCLUDED.projected_units,
        quota_hit_probability = EXCLUDED.quota_hit_probability,
        expected_future_deals = EXCLUDED.expected_future_deals,
        next_best_action = EXCLUDED.next_best_action,
        model_version = EXCLUDED.model_version,
        updated_at = NOW()
    """


def get_rep_month_forecast_query() -> str:
    """
    Persisted forecast for one rep and month.

    Parameters: $1 rep_id, $2 month (date).
    """
    return """
    SELECT
        rep_id,
        month,
        quota_units,
        projected_units,
        quota_hit_probability,
        expected_future_deals,
        next_best_action,
        model_version,
        updated_at
    FROM rep_month_forecast
    WHERE rep_id = $1
      AND month = $2
    """


def get_month_forecast_quotas_query() -> str:
    """
    Reps with a stored forecast for a month, with the quota last used.

    Parameters: $1 month (date).
    """
    return """
    SELECT rep_id, quota_units
    FROM rep_month_forecast
    WHERE month = $1
    ORDER BY rep_id
    """


def get_leaderboard_deals_query() -> str:
    """
    Deals created in a date range, for leaderboard ranking.

    Parameters: $1 range start (timestamptz), $2 range end (exclusive).
    """
    return """
    SELECT sales_rep_id, status, deal_amount
    FROM deals
    WHERE created_at >= $1
      AND created_at < $2
    """
