"""Run summaries returned by the batch jobs."""
from typing import List
from pydantic import BaseModel, Field


class SchedulerRunSummary(BaseModel):
    """Outcome of one create_rounds invocation."""
    created: List[str] = Field(default_factory=list, description="Organization ids that got a round")
    round_ids: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)


class CompletionRunSummary(BaseModel):
    """Outcome of one complete_rounds invocation."""
    completed: List[str] = Field(default_factory=list, description="Round ids marked completed")
    failed: List[str] = Field(default_factory=list)
    compensations_created: int = 0
