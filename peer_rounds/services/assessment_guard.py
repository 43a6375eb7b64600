"""Assessment submission guard.

Validates and records peer assessments during an active round. Check order
for a new assessment:

  1. assessor resolves by wallet and belongs to an organization
  2. the organization has an active round
  3. no assessment exists yet for (round, assessor, assessed)
  4. assessed user exists and is in the assessor's organization
  5. insert (storage unique constraint backs up check 3)
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from peer_rounds.database.orm import Assessment, Round, User
from peer_rounds.errors import (
    CrossOrgAssessmentError,
    DuplicateAssessmentError,
    NoActiveRoundError,
    NotFoundError,
    RoundNotActiveError,
    ValidationError,
)
from peer_rounds.models.assessment import MAX_SCORE, MIN_SCORE
from peer_rounds.pipelines.cycle_calendar import as_utc
from peer_rounds.services.repository import RoundRepository

logger = logging.getLogger(__name__)


def validate_score(name: str, value: Optional[float]) -> Optional[float]:
    """Scores are optional but must lie within [MIN_SCORE, MAX_SCORE]."""
    if value is None:
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number") from None
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValidationError(f"{name} must be between {MIN_SCORE:g} and {MAX_SCORE:g}")
    return score


class AssessmentGuard:
    """Enforce round, ownership and organization rules on peer assessments."""

    def __init__(self, repository: RoundRepository):
        self.repository = repository

    def resolve_assessor(self, wallet_address: str, now: Optional[datetime] = None) -> Tuple[User, Round]:
        """Resolve the assessor and the active round of their organization.

        Raises:
            NotFoundError: Unknown wallet or user without an organization.
            NoActiveRoundError: The organization has no round in progress.
        """
        current = as_utc(now) if now is not None else datetime.now(timezone.utc)

        assessor = self.repository.get_user_by_wallet(wallet_address)
        if assessor is None:
            raise NotFoundError(f"User with wallet {wallet_address} not found")
        if not assessor.organization_id:
            raise NotFoundError(f"User {assessor.id} does not belong to an organization")

        active_round = self.repository.get_active_round(assessor.organization_id, current)
        if active_round is None:
            raise NoActiveRoundError()
        return assessor, active_round

    def add_assessment(
        self,
        assessor_wallet: str,
        assessed_id: str,
        culture_score: Optional[float] = None,
        work_score: Optional[float] = None,
        feedback_positive: Optional[str] = None,
        feedback_negative: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Assessment:
        """Record an assessment of ``assessed_id`` in the assessor's active round."""
        culture = validate_score("culture_score", culture_score)
        work = validate_score("work_score", work_score)

        assessor, active_round = self.resolve_assessor(assessor_wallet, now)

        if self.repository.find_assessment(active_round.id, assessor.id, assessed_id) is not None:
            raise DuplicateAssessmentError()

        assessed = self.repository.get_user(assessed_id)
        if assessed is None:
            raise NotFoundError(f"User {assessed_id} not found")
        if assessed.organization_id != assessor.organization_id:
            raise CrossOrgAssessmentError()

        assessment = Assessment(
            round_id=active_round.id,
            assessor_id=assessor.id,
            assessed_id=assessed.id,
            culture_score=culture,
            work_score=work,
            feedback_positive=feedback_positive,
            feedback_negative=feedback_negative,
        )
        self.repository.add_assessment(assessment)
        logger.info(f"Assessment {assessment.id} added in round {active_round.id} by {assessor.id}")
        return assessment

    def edit_assessment(
        self,
        assessor_wallet: str,
        round_id: str,
        assessment_id: str,
        culture_score: Optional[float] = None,
        work_score: Optional[float] = None,
        feedback_positive: Optional[str] = None,
        feedback_negative: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Assessment:
        """Update an assessment the assessor owns, only while its round is active."""
        culture = validate_score("culture_score", culture_score)
        work = validate_score("work_score", work_score)

        assessor, active_round = self.resolve_assessor(assessor_wallet, now)

        assessment = self.repository.get_assessment(assessment_id)
        if assessment is None or assessment.assessor_id != assessor.id:
            raise NotFoundError(f"Assessment {assessment_id} not found")
        if assessment.round_id != round_id or assessment.round_id != active_round.id:
            raise RoundNotActiveError()

        assessment.culture_score = culture
        assessment.work_score = work
        assessment.feedback_positive = feedback_positive
        assessment.feedback_negative = feedback_negative
        self.repository.save(assessment)
        logger.info(f"Assessment {assessment.id} updated in round {round_id}")
        return assessment
