"""
Expected Units Model.

Combines a rep's lead mix, the store's source weights, and the rep's behavior
relative to the store into a model-attributed unit count:

    base_expected          = sum(leads[source] * weight[source])
    contact_multiplier     = clamp(rep contact rate / store contact rate, contact bounds)
    appointment_multiplier = clamp(rep appt-set rate / store appt-set rate, appointment bounds)
    final_expected         = base_expected * contact_multiplier * appointment_multiplier

A multiplier is 1 when the store rate is 0. Sources missing from the weights
contribute nothing to base_expected.
"""

from typing import Tuple

from perf_engine.models.schemas import AnalyticsParams, ExpectedUnits, RepPeriodStats, StoreBaselines
from perf_engine.models.source_map import SourceWeights
from perf_engine.services.funnel_rates import calculate_core_rates, clamp


def behavior_multiplier(rep_rate: float, store_rate: float, bounds: Tuple[float, float]) -> float:
    """
    Ratio of a rep rate to the store rate, clamped to bounds.

    Example:
        >>> behavior_multiplier(0.6, 0.4, (0.8, 1.25))
        1.25
        >>> behavior_multiplier(0.6, 0.0, (0.8, 1.25))
        1.0
    """
    low, high = bounds
    ratio = rep_rate / store_rate if store_rate > 0 else 1.0
    return clamp(ratio, low, high)


def calculate_base_expected(stats: RepPeriodStats, weights: SourceWeights) -> float:
    """Lead-mix value of a rep: sum of leads times source weight."""
    return sum(leads * weights.get(source, 0.0) for source, leads in stats.leads_by_source.items())


def calculate_expected_units(
    stats: RepPeriodStats,
    weights: SourceWeights,
    baselines: StoreBaselines,
    params: AnalyticsParams,
) -> ExpectedUnits:
    """
    Calculate model-attributed expected units for one rep.

    Args:
        stats: The rep's period counts.
        weights: Source weights estimated for the population.
        baselines: Pooled store rates.
        params: Supplies the multiplier bounds and close-rate clamping policy.

    Returns:
        ExpectedUnits with final_expected equal to the product of its parts.

    Example:
        With leads {internet: 10, referral: 5}, weights {internet: 0.1, referral: 0.3}
        and multipliers 1.1 and 1.0, base_expected is 2.5 and final_expected 2.75.
    """
    rates = calculate_core_rates(stats, clamp_close_rates=params.clamp_close_rates)
    base_expected = calculate_base_expected(stats, weights)

    contact_multiplier = behavior_multiplier(
        rates.contact_rate,
        baselines.contact_rate,
        params.contact_multiplier_bounds,
    )
    appointment_multiplier = behavior_multiplier(
        rates.appointment_set_rate,
        baselines.appointment_set_rate,
        params.appointment_multiplier_bounds,
    )

    return ExpectedUnits(
        base_expected=base_expected,
        contact_multiplier=contact_multiplier,
        appointment_multiplier=appointment_multiplier,
        final_expected=base_expected * contact_multiplier * appointment_multiplier,
    )
