"""
Month-End Forecast Service.

Pure computations behind the pacing tracker. There is no database access
here; see forecast_recompute.py for the persistence path.

Projection:
    days_elapsed              = clamp(day_of_month, 1, days_in_month)
    days_remaining            = max(0, days_in_month - days_elapsed)
    projected_remaining_leads = leads_so_far / days_elapsed * days_remaining
    expected_future_deals     = projected_remaining_leads * clamp(close_rate, 0, 1)
    projected_units           = sold_units_so_far + expected_future_deals

Quota-hit probability:
    Remaining sales are modeled as Binomial(leads_remaining, close_probability);
    the result is P(successes >= quota_units - sold_units_so_far). The tail is
    summed in log space, advancing the log binomial coefficient one step at a
    time, so large lead counts never overflow a factorial.

    Boundaries:
        remaining to quota <= 0                  -> 1.0
        leads_remaining <= 0                     -> 0.0
        remaining to quota > leads_remaining     -> 0.0

Next best action (first matching rule wins):
    quota_hit_probability >= 0.75 -> maintain_pace
    contact_rate < 0.45           -> improve_contact_rate
    show_rate < 0.60              -> improve_show_rate
    otherwise                     -> increase_leads

Usage:
    projection = compute_projected_units(ProjectionInput(...))
    probability = compute_quota_probability(QuotaProbabilityInput(...))
    action = compute_next_best_action(stats, probability, projection.projected_units, quota)
"""

import math
from typing import List

from perf_engine.models.enums import ActionFocus
from perf_engine.models.schemas import (
    MonthForecastComputation,
    NextBestAction,
    ProjectionInput,
    QuotaProbabilityInput,
    RepMonthStats,
    UnitProjection,
)
from perf_engine.services.funnel_rates import clamp, safe_divide


# =============================================================================
# Constants
# =============================================================================

MODEL_VERSION: str = 'v1-binomial'

MAINTAIN_PACE_PROBABILITY: float = 0.75
TARGET_CONTACT_RATE: float = 0.45
TARGET_SHOW_RATE: float = 0.60

ACTION_MESSAGES = {
    ActionFocus.MAINTAIN_PACE: 'You are on track. Maintain current cadence and protect show quality.',
    ActionFocus.IMPROVE_CONTACT_RATE: 'Prioritize first-response speed and same-day follow-up to lift contact rate.',
    ActionFocus.IMPROVE_SHOW_RATE: 'Confirm appointments twice and tighten pre-appointment reminders to improve shows.',
    ActionFocus.INCREASE_LEADS: 'Top lever now is additional lead volume from your highest converting channels.',
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded toward +infinity."""
    return math.floor(value + 0.5)


# =============================================================================
# Projection
# =============================================================================


def compute_projected_units(projection_input: ProjectionInput) -> UnitProjection:
    """
    Extrapolate month-to-date lead pace to a month-end unit count.

    Args:
        projection_input: Month-to-date sold units, leads, close rate and
            calendar position.

    Returns:
        UnitProjection with the projected total and its intermediate values.

    Example:
        >>> p = compute_projected_units(ProjectionInput(sold_units_so_far=4, leads_so_far=30,
        ...     close_rate=0.2, day_of_month=10, days_in_month=30))
        >>> p.projected_units
        16.0
    """
    days_elapsed = int(clamp(projection_input.day_of_month, 1, projection_input.days_in_month))
    days_remaining = max(0, projection_input.days_in_month - days_elapsed)

    leads_per_day = projection_input.leads_so_far / days_elapsed
    projected_remaining_leads = leads_per_day * days_remaining
    expected_future_deals = projected_remaining_leads * clamp(projection_input.close_rate, 0.0, 1.0)

    return UnitProjection(
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        projected_remaining_leads=projected_remaining_leads,
        expected_future_deals=expected_future_deals,
        projected_units=projection_input.sold_units_so_far + expected_future_deals,
    )


# =============================================================================
# Quota Probability
# =============================================================================


def compute_quota_probability(probability_input: QuotaProbabilityInput) -> float:
    """
    Probability of reaching quota from the remaining leads.

    Args:
        probability_input: Quota, units sold so far, remaining lead count and
            per-lead close probability (clamped to [0, 1]).

    Returns:
        Probability in [0, 1].

    Example:
        >>> compute_quota_probability(QuotaProbabilityInput(
        ...     quota_units=1, sold_units_so_far=0, leads_remaining=2, close_probability=0.5))
        0.75
    """
    p = clamp(probability_input.close_probability, 0.0, 1.0)
    remaining = max(0, probability_input.quota_units - probability_input.sold_units_so_far)
    trials = probability_input.leads_remaining

    if remaining <= 0:
        return 1.0
    if trials <= 0:
        return 0.0
    if remaining > trials:
        return 0.0
    if p <= 0.0:
        return 0.0
    if p >= 1.0:
        return 1.0

    log_p = math.log(p)
    log_q = math.log1p(-p)

    # log pmf at k = remaining, then stepped to k + 1 via
    # C(n, k + 1) = C(n, k) * (n - k) / (k + 1)
    k = remaining
    log_pmf = (
        math.lgamma(trials + 1)
        - math.lgamma(k + 1)
        - math.lgamma(trials - k + 1)
        + k * log_p
        + (trials - k) * log_q
    )

    terms: List[float] = []
    while True:
        terms.append(math.exp(log_pmf))
        if k >= trials:
            break
        log_pmf += math.log(trials - k) - math.log(k + 1) + log_p - log_q
        k += 1

    return clamp(math.fsum(terms), 0.0, 1.0)


# =============================================================================
# Next Best Action
# =============================================================================


def compute_next_best_action(
    stats: RepMonthStats,
    quota_hit_probability: float,
    projected_units: float,
    quota_units: int,
) -> NextBestAction:
    """
    Pick the single most useful coaching action for the rest of the month.

    Args:
        stats: Month-to-date stats of the rep.
        quota_hit_probability: Output of compute_quota_probability().
        projected_units: Month-end projection.
        quota_units: Monthly quota.

    Returns:
        NextBestAction whose targetDelta sizes the change:
            maintain_pace        units projected above quota
            improve_contact_rate extra contacts to reach a 45% contact rate
            improve_show_rate    extra shows to reach a 60% show rate
            increase_leads       units still missing versus quota (at least 1)
    """
    if quota_hit_probability >= MAINTAIN_PACE_PROBABILITY:
        focus = ActionFocus.MAINTAIN_PACE
        target_delta = max(0, round_half_up(projected_units - quota_units))
    elif stats.contact_rate < TARGET_CONTACT_RATE:
        focus = ActionFocus.IMPROVE_CONTACT_RATE
        target_delta = math.ceil((TARGET_CONTACT_RATE - stats.contact_rate) * max(1, stats.leads))
    else:
        show_rate = safe_divide(stats.appts_show, stats.appts_set)
        if show_rate < TARGET_SHOW_RATE:
            focus = ActionFocus.IMPROVE_SHOW_RATE
            target_delta = math.ceil((TARGET_SHOW_RATE - show_rate) * max(1, stats.appts_set))
        else:
            focus = ActionFocus.INCREASE_LEADS
            target_delta = max(1, math.ceil(quota_units - projected_units))

    return NextBestAction(focus=focus, message=ACTION_MESSAGES[focus], targetDelta=target_delta)


# =============================================================================
# Month Forecast Pipeline
# =============================================================================


def build_month_forecast(
    stats: RepMonthStats,
    quota_units: int,
    day_of_month: int,
    days_in_month: int,
) -> MonthForecastComputation:
    """
    Run projection, quota probability and next best action for one rep.

    The remaining lead count extrapolates the month-to-date daily lead pace
    and is rounded half up. The close probability is units per contact.

    Args:
        stats: Month-to-date stats of the rep.
        quota_units: Monthly quota.
        day_of_month: Days elapsed including today (month length for past months).
        days_in_month: Length of the month.

    Returns:
        MonthForecastComputation.
    """
    day_of_month = max(1, day_of_month)
    days_remaining = max(0, days_in_month - day_of_month)

    leads_per_day = stats.leads / day_of_month
    leads_remaining = max(0, round_half_up(leads_per_day * days_remaining))
    close_probability = safe_divide(stats.sold_units, stats.contacts)

    projection = compute_projected_units(
        ProjectionInput(
            sold_units_so_far=stats.sold_units,
            leads_so_far=stats.leads,
            close_rate=close_probability,
            day_of_month=day_of_month,
            days_in_month=days_in_month,
        )
    )
    quota_hit_probability = compute_quota_probability(
        QuotaProbabilityInput(
            quota_units=quota_units,
            sold_units_so_far=stats.sold_units,
            leads_remaining=leads_remaining,
            close_probability=close_probability,
        )
    )
    action = compute_next_best_action(
        stats,
        quota_hit_probability,
        projection.projected_units,
        quota_units,
    )

    return MonthForecastComputation(
        leads_remaining=leads_remaining,
        close_probability=close_probability,
        projection=projection,
        quota_hit_probability=quota_hit_probability,
        next_best_action=action,
    )
