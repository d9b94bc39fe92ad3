"""
Enumeration definitions for the Sales Performance Engine backend.

All enums inherit from both `str` and `Enum` so they serialize as plain strings
in pydantic models and API responses, and compare equal to the raw values
stored in the deals / activities tables.
"""

from enum import Enum


class ActionFocus(str, Enum):
    """
    Focus area of the next best action attached to a month-end forecast.

    Evaluated as a rule chain in this order: maintain_pace when the quota is
    likely, then contact rate, then show rate, then lead volume.
    """
    MAINTAIN_PACE = "maintain_pace"
    IMPROVE_CONTACT_RATE = "improve_contact_rate"
    IMPROVE_SHOW_RATE = "improve_show_rate"
    INCREASE_LEADS = "increase_leads"


class DealStatus(str, Enum):
    """Pipeline status of a deal row."""
    OPEN = "open"
    NEGOTIATING = "negotiating"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


class ActivityOutcome(str, Enum):
    """
    Outcome recorded on a completed activity.

    Every value except NO_ANSWER and LEFT_MESSAGE counts as a contact when
    month-to-date stats are aggregated.
    """
    NO_ANSWER = "no_answer"
    LEFT_MESSAGE = "left_message"
    CONNECTED = "connected"
    APPT_SET = "appt_set"
    SHOWED = "showed"
    SOLD = "sold"
    NEGOTIATING = "negotiating"
    FOLLOW_UP = "follow_up"


class RankBy(str, Enum):
    """Ordering used by the deals leaderboard."""
    WON_UNITS = "won_units"
    REVENUE = "revenue"


class SkillLevel(str, Enum):
    """Skill tier of a generated sample rep."""
    TOP = "top"
    HIGH = "high"
    AVERAGE = "average"
    DEVELOPING = "developing"
