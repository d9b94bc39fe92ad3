"""
Tests for performance index, balanced score, confidence and ranking.
"""

import math

import pytest

from perf_engine.models.schemas import RepPeriodStats
from perf_engine.services.performance_metrics import (
    assign_ranks,
    calculate_confidence_score,
    calculate_performance_metrics,
)


class TestConfidenceScore:
    """Tests for calculate_confidence_score."""

    def test_zero_opportunities(self) -> None:
        assert calculate_confidence_score(0, 50) == 0.0

    def test_one_tau(self) -> None:
        assert calculate_confidence_score(50, 50) == pytest.approx(1 - math.exp(-1))

    def test_monotone_and_bounded(self) -> None:
        scores = [calculate_confidence_score(n, 50) for n in (0, 10, 100, 1000)]

        assert scores == sorted(scores)
        assert all(0.0 <= score < 1.0 + 1e-12 for score in scores)


class TestRanking:
    """Tests for assign_ranks."""

    def test_units_descending_ties_by_rep_id(self) -> None:
        reps = [
            RepPeriodStats(rep_id='b', units_sold=5),
            RepPeriodStats(rep_id='a', units_sold=5),
            RepPeriodStats(rep_id='c', units_sold=9),
        ]

        assert assign_ranks(reps) == {'c': 1, 'a': 2, 'b': 3}

    def test_ranks_independent_of_input_order(self) -> None:
        reps = [RepPeriodStats(rep_id=f'r{i}', units_sold=i % 3) for i in range(6)]

        assert assign_ranks(reps) == assign_ranks(list(reversed(reps)))


class TestPerformanceMetrics:
    """Tests for calculate_performance_metrics."""

    def test_index_and_balanced_score(self) -> None:
        metrics = calculate_performance_metrics(
            rep_units=12,
            top_units=24,
            rep_expected=5.0,
            top_expected=10.0,
            opportunities=50,
            rank=2,
            tau=50.0,
        )

        assert metrics.performance_index == pytest.approx(0.5)
        assert metrics.balanced_score == pytest.approx(0.6 * 0.5 + 0.4 * 0.5)
        assert metrics.rank == 2

    def test_top_rep_index_is_one(self) -> None:
        metrics = calculate_performance_metrics(24, 24, 10.0, 10.0, 80, 1, 50.0)

        assert metrics.performance_index == 1.0
        assert metrics.balanced_score == pytest.approx(1.0)

    def test_zero_top_units(self) -> None:
        """A population with no sales yields zero scores instead of dividing by zero."""
        metrics = calculate_performance_metrics(0, 0, 0.0, 0.0, 0, 1, 50.0)

        assert metrics.performance_index == 0.0
        assert metrics.balanced_score == 0.0
        assert metrics.confidence_score == 0.0

    def test_zero_top_expected(self) -> None:
        metrics = calculate_performance_metrics(5, 10, 2.0, 0.0, 10, 2, 50.0)

        assert metrics.performance_index == pytest.approx(0.5)
        assert metrics.balanced_score == 0.0
