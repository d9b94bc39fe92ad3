"""
Sample Rep Population Generator.

Builds a realistic five-rep population for demos, the /analytics/sample
endpoint, and tests. Each rep profile has a skill level, preferred lead
sources, a contact efficiency and a closing ability; funnel counts are drawn
around those with bounded noise.

Generation is reproducible: the same seed always gives the same population
(numpy Generator seeded via default_rng).

Funnel shape per rep:
    leads by skill      top 80-100, high 60-75, average 45-60, developing 30-45
    unique attempted    85-95% of leads
    attempts            2.5-4 per attempted lead
    contacts            attempted * contact_efficiency * (0.8-1.2)
    appointments set    20-35% of contacts
    appointments shown  70-95% of set
    units sold          lead-mix value * behavior * (0.7-1.3)

Usage:
    reps = generate_sample_population(seed=7)
    analyze_performance(reps)
"""

import calendar
import math
from datetime import date
from typing import Dict, List, Tuple

import numpy as np
from pydantic import BaseModel

from perf_engine.models.enums import SkillLevel
from perf_engine.models.schemas import RepPeriodStats


# =============================================================================
# Constants
# =============================================================================

DEFAULT_PERIOD: str = '2026-02'
DEFAULT_SEED: int = 20260201

SOURCES: Tuple[str, ...] = ('internet', 'phone', 'walkin', 'service', 'referral')

# Units per lead used to value a generated lead mix.
SOURCE_UNIT_RATES: Dict[str, float] = {
    'internet': 0.08,
    'phone': 0.12,
    'walkin': 0.15,
    'service': 0.20,
    'referral': 0.25,
}

LEAD_VOLUME_RANGES: Dict[SkillLevel, Tuple[int, int]] = {
    SkillLevel.TOP: (80, 100),
    SkillLevel.HIGH: (60, 75),
    SkillLevel.AVERAGE: (45, 60),
    SkillLevel.DEVELOPING: (30, 45),
}


class RepProfile(BaseModel):
    """Behavioral profile a sample rep is generated from."""
    rep_id: str
    name: str
    skill_level: SkillLevel
    source_preference: List[str]
    contact_efficiency: float
    closing_ability: float


SAMPLE_PROFILES: Tuple[RepProfile, ...] = (
    RepProfile(rep_id='rep-001', name='Sarah Chen', skill_level=SkillLevel.TOP,
               source_preference=['referral', 'service', 'phone'],
               contact_efficiency=0.75, closing_ability=0.85),
    RepProfile(rep_id='rep-002', name='Mike Rodriguez', skill_level=SkillLevel.HIGH,
               source_preference=['phone', 'internet', 'service'],
               contact_efficiency=0.65, closing_ability=0.72),
    RepProfile(rep_id='rep-003', name='Jessica Wang', skill_level=SkillLevel.AVERAGE,
               source_preference=['internet', 'walkin'],
               contact_efficiency=0.55, closing_ability=0.60),
    RepProfile(rep_id='rep-004', name='David Thompson', skill_level=SkillLevel.DEVELOPING,
               source_preference=['phone', 'walkin'],
               contact_efficiency=0.45, closing_ability=0.50),
    RepProfile(rep_id='rep-005', name='Angela Foster', skill_level=SkillLevel.HIGH,
               source_preference=['service', 'referral'],
               contact_efficiency=0.68, closing_ability=0.75),
)


# =============================================================================
# Generation
# =============================================================================


def period_end_date(period: str) -> date:
    """Last day of a YYYY-MM period."""
    year, month = (int(part) for part in period.split('-'))
    return date(year, month, calendar.monthrange(year, month)[1])


def _allocate_leads(profile: RepProfile, total_leads: int, rng: np.random.Generator) -> Dict[str, int]:
    """Split total_leads across sources, favoring the profile's preferred sources."""
    allocation: Dict[str, int] = {}
    remaining = total_leads
    base = total_leads / len(SOURCES)

    for index, source in enumerate(SOURCES):
        if index == len(SOURCES) - 1:
            share = remaining
        else:
            boost = 1.5 if source in profile.source_preference else 0.8
            share = min(math.floor(base * boost * rng.uniform(0.7, 1.3)), remaining)
        allocation[source] = max(0, share)
        remaining -= allocation[source]

    return allocation


def generate_rep_stats(
    profile: RepProfile,
    rng: np.random.Generator,
    period: str = DEFAULT_PERIOD,
) -> RepPeriodStats:
    """
    Draw one period of funnel counts for a profile.

    Args:
        profile: The rep's behavioral profile.
        rng: Random generator; consumed in a fixed order.
        period: Period label (YYYY-MM).

    Returns:
        RepPeriodStats with period_end set to the last day of the period.
    """
    low, high = LEAD_VOLUME_RANGES[profile.skill_level]
    total_leads = int(rng.integers(low, high, endpoint=True))
    leads_by_source = _allocate_leads(profile, total_leads, rng)
    lead_count = sum(leads_by_source.values())

    unique_leads_attempted = math.floor(lead_count * rng.uniform(0.85, 0.95))
    attempts = math.floor(unique_leads_attempted * rng.uniform(2.5, 4.0))
    contacts = math.floor(unique_leads_attempted * profile.contact_efficiency * rng.uniform(0.8, 1.2))
    appointments_set = math.floor(contacts * rng.uniform(0.20, 0.35))
    appointments_show = math.floor(appointments_set * rng.uniform(0.70, 0.95))

    lead_value = sum(leads * SOURCE_UNIT_RATES[source] for source, leads in leads_by_source.items())
    behavior = (profile.contact_efficiency + profile.closing_ability) / 2
    units_sold = math.floor(lead_value * behavior * rng.uniform(0.7, 1.3))

    return RepPeriodStats(
        rep_id=profile.rep_id,
        period=period,
        period_end=period_end_date(period),
        units_sold=units_sold,
        leads_by_source=leads_by_source,
        unique_leads_attempted=unique_leads_attempted,
        attempts=attempts,
        contacts=contacts,
        appointments_set=appointments_set,
        appointments_show=appointments_show,
        first_response_time_minutes=float(math.floor(rng.uniform(15, 135))),
        lead_age_days_at_first_contact=round(float(rng.uniform(0.5, 2.5)), 1),
        gross_profit=round(units_sold * float(rng.uniform(3500, 5500)), 2),
    )


def generate_sample_population(
    period: str = DEFAULT_PERIOD,
    seed: int = DEFAULT_SEED,
) -> List[RepPeriodStats]:
    """
    Generate the five sample reps for a period.

    Args:
        period: Period label (YYYY-MM).
        seed: Seed for numpy's default_rng.

    Returns:
        One RepPeriodStats per sample profile, in profile order.
    """
    rng = np.random.default_rng(seed)
    return [generate_rep_stats(profile, rng, period) for profile in SAMPLE_PROFILES]


def generate_sample_history(
    end_period: str = DEFAULT_PERIOD,
    months: int = 3,
    seed: int = DEFAULT_SEED,
) -> List[RepPeriodStats]:
    """
    Generate several consecutive months of sample rows ending at end_period.

    Useful as weight_history for trailing-window estimation.

    Returns:
        Rows for every profile and month, oldest month first.
    """
    year, month = (int(part) for part in end_period.split('-'))
    periods = []
    for offset in range(months - 1, -1, -1):
        index = year * 12 + (month - 1) - offset
        periods.append(f"{index // 12:04d}-{index % 12 + 1:02d}")

    rng = np.random.default_rng(seed)
    return [
        generate_rep_stats(profile, rng, period)
        for period in periods
        for profile in SAMPLE_PROFILES
    ]
