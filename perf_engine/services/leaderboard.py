"""
Deals Leaderboard Service.

Ranks reps from raw deal rows, the manager-facing ordering that can also gate
advanced analytics.

Per rep:
    won_units     = deals with status closed_won
    won_revenue   = deal_amount summed over won deals
    total_units   = all deals
    total_revenue = deal_amount summed over all deals

Ordering:
    won_units: won_units desc, won_revenue desc, total_units desc, rep_id asc
    revenue:   total_revenue desc, won_revenue desc, won_units desc, rep_id asc

Non-numeric or missing deal amounts count as 0.

Dependencies:
    - pandas: group-by aggregation and multi-key sort

Usage:
    rows = await conn.fetch(get_leaderboard_deals_query(), start, end)
    entries = rank_reps_from_deals(rows, RankBy.REVENUE)
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping

import pandas as pd

from perf_engine.models.enums import DealStatus, RankBy
from perf_engine.models.schemas import LeaderboardEntry

logger = logging.getLogger(__name__)


SORT_KEYS: Dict[RankBy, List[str]] = {
    RankBy.WON_UNITS: ['won_units', 'won_revenue', 'total_units'],
    RankBy.REVENUE: ['total_revenue', 'won_revenue', 'won_units'],
}


def parse_rank_by(value: Any) -> RankBy:
    """Return RankBy.REVENUE for 'revenue', RankBy.WON_UNITS for anything else."""
    return RankBy.REVENUE if value == RankBy.REVENUE.value else RankBy.WON_UNITS


def rank_reps_from_deals(
    deals: Iterable[Mapping[str, Any]],
    rank_by: RankBy = RankBy.WON_UNITS,
) -> List[LeaderboardEntry]:
    """
    Aggregate deal rows per rep and rank them.

    Args:
        deals: Rows with sales_rep_id, status and deal_amount.
        rank_by: Primary ordering.

    Returns:
        LeaderboardEntry list in rank order (rank 1 first). Empty for no rows.
    """
    df = pd.DataFrame([dict(row) for row in deals])
    if df.empty:
        return []

    df['amount'] = pd.to_numeric(df['deal_amount'], errors='coerce').fillna(0.0)
    df['won'] = (df['status'] == DealStatus.CLOSED_WON.value).astype(int)
    df['won_amount'] = df['amount'].where(df['won'] == 1, 0.0)

    summary = (
        df.groupby('sales_rep_id', as_index=False)
        .agg(
            total_units=('status', 'size'),
            total_revenue=('amount', 'sum'),
            won_units=('won', 'sum'),
            won_revenue=('won_amount', 'sum'),
        )
        .rename(columns={'sales_rep_id': 'rep_id'})
    )

    keys = SORT_KEYS[rank_by]
    summary = summary.sort_values(
        keys + ['rep_id'],
        ascending=[False] * len(keys) + [True],
        kind='mergesort',
    ).reset_index(drop=True)

    logger.debug(f"Ranked {len(summary)} reps by {rank_by.value}")

    return [
        LeaderboardEntry(
            rep_id=str(row.rep_id),
            won_units=int(row.won_units),
            won_revenue=float(row.won_revenue),
            total_units=int(row.total_units),
            total_revenue=float(row.total_revenue),
            rank=position,
        )
        for position, row in enumerate(summary.itertuples(index=False), start=1)
    ]
