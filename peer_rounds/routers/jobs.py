"""Batch job trigger endpoints, called by the scheduling DAG."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from peer_rounds.config import get_settings
from peer_rounds.database.connection import get_db
from peer_rounds.models import CompletionRunSummary, SchedulerRunSummary
from peer_rounds.pipelines import RoundCompletionEngine, RoundScheduler
from peer_rounds.scoring.compensation import CompensationCalculator
from peer_rounds.services import RoundRepository, get_notifier, get_redis_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/jobs", tags=["Jobs"])


@router.post(
    "/create-rounds",
    response_model=SchedulerRunSummary,
    summary="Create Rounds"
)
def create_rounds(org_id: Optional[str] = None, db: Session = Depends(get_db)):
    """Open the next round for every organization due one (or only ``org_id``)."""
    settings = get_settings()
    scheduler = RoundScheduler(
        RoundRepository(db),
        get_notifier(),
        lookahead_days=settings.round_lookahead_days,
        notification_workers=settings.notification_workers,
    )
    summary = scheduler.create_rounds(target_org_id=org_id)
    logger.info(f"create-rounds job: {len(summary.created)} created, {len(summary.failed)} failed")
    return summary


@router.post(
    "/complete-rounds",
    response_model=CompletionRunSummary,
    summary="Complete Rounds"
)
def complete_rounds(db: Session = Depends(get_db)):
    """Compute compensations for every ended round and mark it completed."""
    settings = get_settings()
    engine = RoundCompletionEngine(
        RoundRepository(db),
        calculator=CompensationCalculator(neutral_score=settings.neutral_score),
        cache=get_redis_cache(),
    )
    summary = engine.complete_rounds()
    logger.info(f"complete-rounds job: {len(summary.completed)} completed, {len(summary.failed)} failed")
    return summary
