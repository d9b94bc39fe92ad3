"""
Funnel Rate Service.

Per-rep core rates and pooled store baselines, the leaves of the analytics
pipeline.

Core rates (per rep):
    contact_rate         = contacts / unique_leads_attempted
    appointment_set_rate = appointments_set / contacts
    show_rate            = appointments_show / appointments_set
    close_from_show      = units_sold / appointments_show
    close_from_contact   = units_sold / contacts

A zero denominator yields 0, never an exception. close_from_show and
close_from_contact are clamped to [0, 1] unless clamp_close_rates is False;
imported data can carry more units than shows, and the funnel model assumes
it cannot. The other three rates are never clamped.

Store baselines pool the counts of every rep before dividing, so reps with
thin denominators do not skew the store average:
    contact_rate         = sum(contacts) / sum(unique_leads_attempted)
    appointment_set_rate = sum(appointments_set) / sum(contacts)

Usage:
    from perf_engine.services.funnel_rates import calculate_core_rates, calculate_store_baselines

    rates = calculate_core_rates(stats)
    baselines = calculate_store_baselines(reps)
"""

from typing import Sequence

from perf_engine.models.schemas import CoreRates, RepPeriodStats, StoreBaselines


# =============================================================================
# Numeric Helpers
# =============================================================================


def safe_divide(numerator: float, denominator: float) -> float:
    """
    Divide, returning 0.0 when the denominator is zero.

    Example:
        >>> safe_divide(3, 4)
        0.75
        >>> safe_divide(3, 0)
        0.0
    """
    if denominator == 0:
        return 0.0
    return numerator / denominator


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


# =============================================================================
# Core Rates
# =============================================================================


def calculate_core_rates(stats: RepPeriodStats, clamp_close_rates: bool = True) -> CoreRates:
    """
    Calculate the funnel conversion ratios for one rep.

    Args:
        stats: Raw period counts for the rep.
        clamp_close_rates: Clamp the two close rates to [0, 1].

    Returns:
        CoreRates with every ratio >= 0.

    Example:
        >>> stats = RepPeriodStats(rep_id='r1', unique_leads_attempted=50, contacts=20,
        ...                        appointments_set=8, appointments_show=6, units_sold=3)
        >>> calculate_core_rates(stats).contact_rate
        0.4
    """
    close_from_show = safe_divide(stats.units_sold, stats.appointments_show)
    close_from_contact = safe_divide(stats.units_sold, stats.contacts)

    if clamp_close_rates:
        close_from_show = clamp(close_from_show, 0.0, 1.0)
        close_from_contact = clamp(close_from_contact, 0.0, 1.0)

    return CoreRates(
        contact_rate=safe_divide(stats.contacts, stats.unique_leads_attempted),
        appointment_set_rate=safe_divide(stats.appointments_set, stats.contacts),
        show_rate=safe_divide(stats.appointments_show, stats.appointments_set),
        close_from_show=close_from_show,
        close_from_contact=close_from_contact,
    )


# =============================================================================
# Store Baselines
# =============================================================================


def calculate_store_baselines(reps: Sequence[RepPeriodStats]) -> StoreBaselines:
    """
    Calculate pooled store-wide contact and appointment-set rates.

    Args:
        reps: Every rep in the snapshot.

    Returns:
        StoreBaselines; both rates are 0 for an empty population.
    """
    total_contacts = sum(rep.contacts for rep in reps)
    total_attempted = sum(rep.unique_leads_attempted for rep in reps)
    total_appointments = sum(rep.appointments_set for rep in reps)

    return StoreBaselines(
        contact_rate=safe_divide(total_contacts, total_attempted),
        appointment_set_rate=safe_divide(total_appointments, total_contacts),
    )
