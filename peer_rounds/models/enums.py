"""Enumeration types for the round engine."""
from enum import Enum


class CompensationPeriod(str, Enum):
    """Recurring compensation cycle lengths."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class RoundStatus(str, Enum):
    """Status of a round relative to the current time."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    AWAITING_COMPLETION = "awaiting_completion"  # window closed, completion job pending
    COMPLETED = "completed"


# Fixed-length periods in days; month-based periods are handled separately
PERIOD_DAYS: dict[CompensationPeriod, int] = {
    CompensationPeriod.WEEKLY: 7,
    CompensationPeriod.BIWEEKLY: 14,
}

PERIOD_MONTHS: dict[CompensationPeriod, int] = {
    CompensationPeriod.MONTHLY: 1,
    CompensationPeriod.QUARTERLY: 3,
}
