"""
Catch-Up Target and Activity Recommendation Service.

Catch-up target:
    gap          = max(0, top_units - rep_units)
    target_units = ceil(rep_units + gap * gap_close_rate)
    if gap > 0: target_units = max(target_units, rep_units + 1)
    delta_units  = target_units - rep_units

Activity recommendations translate delta_units into asks:
    - extra leads from the three highest-weight sources
      (weight descending, then source name ascending), zero weights skipped:
          ceil(delta / (weight * contact_multiplier * appointment_multiplier))
    - a required contact rate, capped at max_realistic_contact_rate:
          store_contact_rate * target_units / (base_expected * appointment_multiplier)
      with the ratio taken as 1 when its denominator is 0
    - the extra attempts needed to reach that rate at the rep's contact efficiency
      (contacts per attempt, or default_contact_efficiency when the rep made no
      attempts); a rep whose attempts produced no contacts gets no attempt ask

A rep with delta_units <= 0 is on track: no asks, current contact rate kept.
"""

import math

from perf_engine.models.schemas import (
    ActivityRecommendations,
    AnalyticsParams,
    CatchUpTarget,
    ExpectedUnits,
    RepPeriodStats,
    StoreBaselines,
)
from perf_engine.models.source_map import LeadAsks, SourceWeights
from perf_engine.services.funnel_rates import calculate_core_rates


# Number of sources a lead ask is spread over.
TOP_SOURCE_COUNT: int = 3


# =============================================================================
# Catch-Up Target
# =============================================================================


def calculate_catch_up_target(rep_units: int, top_units: int, gap_close_rate: float) -> CatchUpTarget:
    """
    Assign the next-period unit goal for a rep.

    Args:
        rep_units: Units the rep sold this period.
        top_units: Units sold by the top performer.
        gap_close_rate: Share of the gap to close.

    Returns:
        CatchUpTarget; whenever gap > 0, at least one more unit is required.

    Example:
        >>> target = calculate_catch_up_target(10, 24, 0.25)
        >>> (target.gap, target.target_units, target.delta_units)
        (14, 14, 4)
    """
    gap = max(0, top_units - rep_units)
    target_units = math.ceil(rep_units + gap * gap_close_rate)
    if gap > 0:
        target_units = max(target_units, rep_units + 1)

    return CatchUpTarget(
        current_units=rep_units,
        top_performer_units=top_units,
        gap=gap,
        gap_close_rate=gap_close_rate,
        target_units=target_units,
        delta_units=target_units - rep_units,
    )


# =============================================================================
# Activity Recommendations
# =============================================================================


def contact_efficiency(stats: RepPeriodStats, default: float) -> float:
    """Contacts per attempt, or default when the rep made no attempts."""
    if stats.attempts > 0:
        return stats.contacts / stats.attempts
    return default


def calculate_activity_recommendations(
    stats: RepPeriodStats,
    expected: ExpectedUnits,
    target: CatchUpTarget,
    weights: SourceWeights,
    baselines: StoreBaselines,
    params: AnalyticsParams,
) -> ActivityRecommendations:
    """
    Translate a catch-up target into lead and contact-rate asks.

    Args:
        stats: The rep's period counts.
        expected: The rep's expected units (multipliers and base value).
        target: The rep's catch-up target.
        weights: Source weights of the population.
        baselines: Pooled store rates.
        params: Supplies the contact-rate cap and default efficiency.

    Returns:
        ActivityRecommendations. Lead asks are listed in ranking order.
    """
    current_contact_rate = calculate_core_rates(stats).contact_rate

    if target.delta_units <= 0:
        return ActivityRecommendations(
            additional_leads_needed=LeadAsks(),
            required_contact_rate=current_contact_rate,
            additional_attempts_needed=0,
            is_on_track=True,
        )

    multiplier = expected.contact_multiplier * expected.appointment_multiplier
    asks = {}
    for source, weight in weights.ranked(TOP_SOURCE_COUNT):
        if weight <= 0 or multiplier <= 0:
            continue
        asks[source] = math.ceil(target.delta_units / (weight * multiplier))

    base_value = expected.base_expected * expected.appointment_multiplier
    contact_ratio = target.target_units / base_value if base_value > 0 else 1.0
    required_contact_rate = min(
        baselines.contact_rate * contact_ratio,
        params.max_realistic_contact_rate,
    )

    additional_contacts = max(
        0.0,
        (required_contact_rate - current_contact_rate) * stats.unique_leads_attempted,
    )
    efficiency = contact_efficiency(stats, params.default_contact_efficiency)

    return ActivityRecommendations(
        additional_leads_needed=LeadAsks(asks),
        required_contact_rate=required_contact_rate,
        additional_attempts_needed=math.ceil(additional_contacts / efficiency) if efficiency > 0 else 0,
        is_on_track=False,
    )
