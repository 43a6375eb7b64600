"""Pydantic models for the round engine."""

# Common Models
from peer_rounds.models.common import (
    ServiceResult,
    HealthResponse,
    ErrorResponse,
    MessageResponse,
)

# Enums
from peer_rounds.models.enums import (
    CompensationPeriod,
    RoundStatus,
    PERIOD_DAYS,
    PERIOD_MONTHS,
)

# Assessment Models
from peer_rounds.models.assessment import (
    AssessmentBase,
    AssessmentCreate,
    AssessmentUpdate,
    AssessmentResponse,
)

# Round Models
from peer_rounds.models.round import (
    RoundListItem,
    ContributorRoundSummary,
    RoundDetailResponse,
    RoundUpdate,
    TxHashUpdate,
    ReminderRequest,
    ReminderResponse,
)

# Job Models
from peer_rounds.models.jobs import (
    SchedulerRunSummary,
    CompletionRunSummary,
)

__all__ = [
    # Common
    "ServiceResult",
    "HealthResponse",
    "ErrorResponse",
    "MessageResponse",
    # Enums
    "CompensationPeriod",
    "RoundStatus",
    "PERIOD_DAYS",
    "PERIOD_MONTHS",
    # Assessment
    "AssessmentBase",
    "AssessmentCreate",
    "AssessmentUpdate",
    "AssessmentResponse",
    # Round
    "RoundListItem",
    "ContributorRoundSummary",
    "RoundDetailResponse",
    "RoundUpdate",
    "TxHashUpdate",
    "ReminderRequest",
    "ReminderResponse",
    # Jobs
    "SchedulerRunSummary",
    "CompletionRunSummary",
]
