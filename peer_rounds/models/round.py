"""Round Pydantic models."""
from __future__ import annotations
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from .assessment import AssessmentResponse
from .enums import RoundStatus


class RoundListItem(BaseModel):
    """Round summary used in listings."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: str
    round_number: int
    status: RoundStatus
    start_date: datetime
    end_date: datetime
    compensation_cycle_start_date: datetime
    compensation_cycle_end_date: datetime
    tx_hash: Optional[str] = None


class ContributorRoundSummary(BaseModel):
    """One organization contributor with their scores in a round."""
    id: str
    username: str
    profile_picture: Optional[str] = None
    culture_score: float = 0.0
    work_score: float = 0.0
    total_score: float = 0.0
    team_points: float = 0.0
    fiat: float = 0.0
    has_assessed: bool = False


class RoundDetailResponse(RoundListItem):
    """Round with per-contributor scores and submitted assessments."""
    contributors: List[ContributorRoundSummary] = Field(default_factory=list)
    submitted_assessments: List[AssessmentResponse] = Field(default_factory=list)


class RoundUpdate(BaseModel):
    """Model for rescheduling an uncompleted round."""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_window(self) -> "RoundUpdate":
        """Ensure end_date >= start_date when both are given."""
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.end_date < self.start_date
        ):
            raise ValueError("end_date must be >= start_date")
        return self


class TxHashUpdate(BaseModel):
    """On-chain transaction hash recorded for a completed round."""
    tx_hash: str = Field(..., min_length=1, max_length=100)


class ReminderRequest(BaseModel):
    """Who to remind about pending assessments."""
    remind_all: bool = False
    user_ids: List[str] = Field(default_factory=list)


class ReminderResponse(BaseModel):
    round_id: str
    reminded: List[str] = Field(default_factory=list)
