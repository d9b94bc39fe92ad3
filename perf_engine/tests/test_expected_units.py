"""
Tests for the expected units model.

Test Classes:
- TestBehaviorMultiplier: ratio, clamping, zero store rate
- TestExpectedUnits: lead-mix value and multiplier product
"""

import pytest

from perf_engine.models.schemas import AnalyticsParams, RepPeriodStats, StoreBaselines
from perf_engine.models.source_map import SourceWeights
from perf_engine.services.expected_units import (
    behavior_multiplier,
    calculate_base_expected,
    calculate_expected_units,
)


WEIGHTS = SourceWeights({'internet': 0.1, 'referral': 0.3})
BASELINES = StoreBaselines(contact_rate=0.4, appointment_set_rate=0.5)


class TestBehaviorMultiplier:
    """Tests for behavior_multiplier."""

    def test_ratio_inside_bounds(self) -> None:
        assert behavior_multiplier(0.44, 0.4, (0.8, 1.25)) == pytest.approx(1.1)

    def test_clamped_high(self) -> None:
        assert behavior_multiplier(0.8, 0.4, (0.8, 1.25)) == 1.25

    def test_clamped_low(self) -> None:
        assert behavior_multiplier(0.1, 0.4, (0.8, 1.25)) == 0.8

    def test_zero_store_rate_is_neutral(self) -> None:
        """Without a store baseline the rep is neither rewarded nor penalized."""
        assert behavior_multiplier(0.6, 0.0, (0.85, 1.20)) == 1.0


class TestExpectedUnits:
    """Tests for calculate_base_expected and calculate_expected_units."""

    def _rep(self) -> RepPeriodStats:
        # contact rate 22/50 = 0.44, appointment-set rate 11/22 = 0.5
        return RepPeriodStats(
            rep_id='r1',
            units_sold=3,
            leads_by_source={'internet': 10, 'referral': 5},
            unique_leads_attempted=50,
            contacts=22,
            appointments_set=11,
        )

    def test_worked_example(self) -> None:
        """10 internet at 0.1 plus 5 referral at 0.3, contact multiplier 1.1."""
        expected = calculate_expected_units(self._rep(), WEIGHTS, BASELINES, AnalyticsParams())

        assert expected.base_expected == pytest.approx(2.5)
        assert expected.contact_multiplier == pytest.approx(1.1)
        assert expected.appointment_multiplier == pytest.approx(1.0)
        assert expected.final_expected == pytest.approx(2.75)

    def test_final_is_product_of_parts(self) -> None:
        rep = self._rep().model_copy(update={'contacts': 40, 'appointments_set': 6})

        expected = calculate_expected_units(rep, WEIGHTS, BASELINES, AnalyticsParams())

        assert expected.final_expected == pytest.approx(
            expected.base_expected * expected.contact_multiplier * expected.appointment_multiplier
        )

    def test_multipliers_stay_within_configured_bounds(self) -> None:
        rep = self._rep().model_copy(update={'contacts': 50, 'appointments_set': 50})
        params = AnalyticsParams(contact_multiplier_bounds=(0.9, 1.1), appointment_multiplier_bounds=(0.9, 1.05))

        expected = calculate_expected_units(rep, WEIGHTS, BASELINES, params)

        assert expected.contact_multiplier == 1.1
        assert expected.appointment_multiplier == 1.05

    def test_unknown_source_contributes_nothing(self) -> None:
        rep = RepPeriodStats(rep_id='r2', leads_by_source={'internet': 10, 'billboard': 40})

        assert calculate_base_expected(rep, WEIGHTS) == pytest.approx(1.0)

    def test_invalid_bounds_rejected(self) -> None:
        with pytest.raises(ValueError):
            AnalyticsParams(contact_multiplier_bounds=(1.3, 0.8))
