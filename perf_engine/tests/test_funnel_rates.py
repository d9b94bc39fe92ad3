"""
Tests for funnel rate and store baseline calculations.

Test Classes:
- TestSafeDivide: zero-denominator handling
- TestCoreRates: per-rep ratios, close-rate clamping
- TestStoreBaselines: pooled rates across reps
"""

import pytest

from perf_engine.models.schemas import RepPeriodStats
from perf_engine.services.funnel_rates import (
    calculate_core_rates,
    calculate_store_baselines,
    clamp,
    safe_divide,
)


class TestSafeDivide:
    """Tests for safe_divide and clamp."""

    def test_regular_division(self) -> None:
        assert safe_divide(3, 4) == 0.75

    def test_zero_denominator_returns_zero(self) -> None:
        assert safe_divide(5, 0) == 0.0, "Zero denominator should yield 0"

    def test_clamp_bounds(self) -> None:
        assert clamp(1.5, 0.0, 1.0) == 1.0
        assert clamp(-0.2, 0.0, 1.0) == 0.0
        assert clamp(0.4, 0.0, 1.0) == 0.4


class TestCoreRates:
    """Tests for calculate_core_rates."""

    def test_rates_from_counts(self) -> None:
        """Each rate divides the next funnel stage by the previous one."""
        stats = RepPeriodStats(
            rep_id='r1',
            unique_leads_attempted=50,
            contacts=20,
            appointments_set=8,
            appointments_show=6,
            units_sold=3,
        )

        rates = calculate_core_rates(stats)

        assert rates.contact_rate == pytest.approx(0.4)
        assert rates.appointment_set_rate == pytest.approx(0.4)
        assert rates.show_rate == pytest.approx(0.75)
        assert rates.close_from_show == pytest.approx(0.5)
        assert rates.close_from_contact == pytest.approx(0.15)

    def test_all_zero_counts_give_zero_rates(self) -> None:
        """A rep with no activity has every rate at 0 and nothing raises."""
        rates = calculate_core_rates(RepPeriodStats(rep_id='idle'))

        assert rates.contact_rate == 0.0
        assert rates.appointment_set_rate == 0.0
        assert rates.show_rate == 0.0
        assert rates.close_from_show == 0.0
        assert rates.close_from_contact == 0.0

    def test_close_rates_clamped_by_default(self) -> None:
        """More units than shows is clamped to a close rate of 1."""
        stats = RepPeriodStats(rep_id='r1', contacts=4, appointments_show=2, units_sold=6)

        rates = calculate_core_rates(stats)

        assert rates.close_from_show == 1.0
        assert rates.close_from_contact == 1.0

    def test_close_rates_unclamped_when_disabled(self) -> None:
        stats = RepPeriodStats(rep_id='r1', contacts=4, appointments_show=2, units_sold=6)

        rates = calculate_core_rates(stats, clamp_close_rates=False)

        assert rates.close_from_show == pytest.approx(3.0)
        assert rates.close_from_contact == pytest.approx(1.5)

    def test_show_rate_not_clamped(self) -> None:
        """Non-monotone imported funnels are allowed to exceed 1 on show rate."""
        stats = RepPeriodStats(rep_id='r1', appointments_set=2, appointments_show=3)

        assert calculate_core_rates(stats).show_rate == pytest.approx(1.5)

    def test_negative_counts_rejected(self) -> None:
        with pytest.raises(ValueError):
            RepPeriodStats(rep_id='r1', contacts=-1)


class TestStoreBaselines:
    """Tests for calculate_store_baselines."""

    def test_pooled_rates(self) -> None:
        """Baselines divide summed counts, not the mean of per-rep rates."""
        reps = [
            RepPeriodStats(rep_id='a', unique_leads_attempted=10, contacts=9, appointments_set=3),
            RepPeriodStats(rep_id='b', unique_leads_attempted=90, contacts=21, appointments_set=3),
        ]

        baselines = calculate_store_baselines(reps)

        assert baselines.contact_rate == pytest.approx(0.3), "30 contacts over 100 attempted"
        assert baselines.appointment_set_rate == pytest.approx(0.2), "6 appointments over 30 contacts"

    def test_empty_population(self) -> None:
        baselines = calculate_store_baselines([])

        assert baselines.contact_rate == 0.0
        assert baselines.appointment_set_rate == 0.0
