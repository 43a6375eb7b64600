"""Assessment Pydantic models."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

MIN_SCORE = 0.0
MAX_SCORE = 10.0


class AssessmentBase(BaseModel):
    """Scores and feedback shared by create and update payloads."""
    culture_score: Optional[float] = Field(None, ge=MIN_SCORE, le=MAX_SCORE)
    work_score: Optional[float] = Field(None, ge=MIN_SCORE, le=MAX_SCORE)
    feedback_positive: Optional[str] = None
    feedback_negative: Optional[str] = None


class AssessmentCreate(AssessmentBase):
    """Model for submitting an assessment of a peer."""
    contributor_id: str = Field(..., min_length=1, description="Id of the assessed contributor")


class AssessmentUpdate(AssessmentBase):
    """Model for editing an existing assessment."""
    pass


class AssessmentResponse(AssessmentBase):
    """Assessment response model."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    round_id: str
    assessor_id: str
    assessed_id: str
    created_at: datetime
