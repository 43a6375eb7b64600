"""Round query/command service.

Request-path facade over the repository and the assessment guard. Every
public method returns a ``ServiceResult``; domain errors are converted into
error results and never escape to the caller.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set, TypeVar

from peer_rounds.config import get_settings
from peer_rounds.database.orm import Round, User
from peer_rounds.errors import (
    InvalidStateError,
    NotFoundError,
    RoundCompletedError,
    RoundEngineError,
    RoundNotActiveError,
    RoundNotCompletedError,
    ValidationError,
)
from peer_rounds.models import (
    AssessmentResponse,
    ContributorRoundSummary,
    ReminderResponse,
    RoundDetailResponse,
    RoundListItem,
    RoundStatus,
    ServiceResult,
)
from peer_rounds.pipelines.cycle_calendar import as_utc
from peer_rounds.scoring.compensation import aggregate_scores
from peer_rounds.services.assessment_guard import AssessmentGuard
from peer_rounds.services.notifications import LoggingNotifier, NotificationPort, notify_safely
from peer_rounds.services.redis_cache import CacheKeys, RedisCache
from peer_rounds.services.repository import RoundRepository

logger = logging.getLogger(__name__)
T = TypeVar("T")


def to_round_item(round_: Round, now: Optional[datetime] = None) -> RoundListItem:
    """Round summary with its status derived at ``now``."""
    return RoundListItem(
        id=round_.id,
        organization_id=round_.organization_id,
        round_number=round_.round_number,
        status=round_.status_at(now),
        start_date=round_.start_date,
        end_date=round_.end_date,
        compensation_cycle_start_date=round_.compensation_cycle_start_date,
        compensation_cycle_end_date=round_.compensation_cycle_end_date,
        tx_hash=round_.tx_hash,
    )


class RoundService:
    """Typed-result operations on rounds and assessments."""

    def __init__(
        self,
        repository: RoundRepository,
        cache: Optional[RedisCache] = None,
        notifier: Optional[NotificationPort] = None,
    ):
        self.repository = repository
        self.cache = cache
        self.notifier = notifier or LoggingNotifier()
        self.guard = AssessmentGuard(repository)

    def _execute(self, action: str, operation: Callable[[], T], status_code: int = 200) -> ServiceResult[T]:
        try:
            return ServiceResult.create_success(operation(), status_code=status_code)
        except RoundEngineError as e:
            logger.info(f"{action} failed: {e.code}: {e.message}")
            return ServiceResult.create_error(e)
        except Exception as e:
            logger.error(f"Unexpected error during {action}: {e}", exc_info=True)
            return ServiceResult.create_error(
                RoundEngineError("Internal server error", code="internal_error", status_code=500)
            )

    @staticmethod
    def _clock(now: Optional[datetime]) -> datetime:
        return as_utc(now) if now is not None else datetime.now(timezone.utc)

    def _require_round(self, round_id: str) -> Round:
        round_ = self.repository.get_round(round_id)
        if round_ is None:
            raise NotFoundError(f"Round {round_id} not found")
        return round_

    def _invalidate(self, round_id: str) -> None:
        if self.cache is not None:
            self.cache.invalidate_round(round_id)

    # ================================================================
    # Assessments
    # ================================================================

    def add_assessment(
        self,
        assessor_wallet: str,
        assessed_id: str,
        culture_score: Optional[float] = None,
        work_score: Optional[float] = None,
        feedback_positive: Optional[str] = None,
        feedback_negative: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ServiceResult[AssessmentResponse]:
        def operation() -> AssessmentResponse:
            assessment = self.guard.add_assessment(
                assessor_wallet,
                assessed_id,
                culture_score=culture_score,
                work_score=work_score,
                feedback_positive=feedback_positive,
                feedback_negative=feedback_negative,
                now=now,
            )
            self._invalidate(assessment.round_id)
            return AssessmentResponse.model_validate(assessment)

        return self._execute("add_assessment", operation, status_code=201)

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
    ) -> ServiceResult[AssessmentResponse]:
        def operation() -> AssessmentResponse:
            assessment = self.guard.edit_assessment(
                assessor_wallet,
                round_id,
                assessment_id,
                culture_score=culture_score,
                work_score=work_score,
                feedback_positive=feedback_positive,
                feedback_negative=feedback_negative,
                now=now,
            )
            self._invalidate(round_id)
            return AssessmentResponse.model_validate(assessment)

        return self._execute("edit_assessment", operation)

    def get_assessments(
        self,
        round_id: str,
        assessor_id: Optional[str] = None,
        assessed_id: Optional[str] = None,
    ) -> ServiceResult[List[AssessmentResponse]]:
        def operation() -> List[AssessmentResponse]:
            self._require_round(round_id)
            assessments = self.repository.list_assessments(
                round_id, assessor_id=assessor_id, assessed_id=assessed_id
            )
            return [AssessmentResponse.model_validate(a) for a in assessments]

        return self._execute("get_assessments", operation)

    # ================================================================
    # Round queries
    # ================================================================

    def get_round_by_id(self, round_id: str, now: Optional[datetime] = None) -> ServiceResult[RoundDetailResponse]:
        """Round detail with per-contributor scores.

        Completed rounds report their stored compensation rows and are cached;
        open rounds report live score averages with zero payouts.
        """
        def operation() -> RoundDetailResponse:
            if self.cache is not None:
                cached = self.cache.get(CacheKeys.round(round_id), RoundDetailResponse)
                if cached is not None:
                    return cached

            round_ = self._require_round(round_id)
            detail = self._build_detail(round_, self._clock(now))
            if self.cache is not None and round_.is_completed:
                self.cache.set(CacheKeys.round(round_id), detail, get_settings().cache_ttl_round)
            return detail

        return self._execute("get_round_by_id", operation)

    def _build_detail(self, round_: Round, now: datetime) -> RoundDetailResponse:
        contributors = self.repository.list_contributors(round_.organization_id)
        assessments = self.repository.list_assessments(round_.id)
        assessors: Set[str] = {a.assessor_id for a in assessments}

        summaries: List[ContributorRoundSummary] = []
        if round_.is_completed:
            stored = {c.contributor_id: c for c in self.repository.list_compensations(round_.id)}
            for user in contributors:
                row = stored.get(user.id)
                summaries.append(ContributorRoundSummary(
                    id=user.id,
                    username=user.username,
                    profile_picture=user.profile_picture,
                    culture_score=row.cultural_score if row else 0.0,
                    work_score=row.work_score if row else 0.0,
                    total_score=row.final_score if row else 0.0,
                    team_points=float(row.tp) if row else 0.0,
                    fiat=float(row.fiat) if row else 0.0,
                    has_assessed=user.id in assessors,
                ))
        else:
            grouped = aggregate_scores(assessments)
            for user in contributors:
                scores = grouped.get(user.id)
                summaries.append(ContributorRoundSummary(
                    id=user.id,
                    username=user.username,
                    profile_picture=user.profile_picture,
                    culture_score=float(scores.cultural_score) if scores else 0.0,
                    work_score=float(scores.work_score) if scores else 0.0,
                    total_score=float(scores.final_score) if scores else 0.0,
                    has_assessed=user.id in assessors,
                ))

        item = to_round_item(round_, now)
        return RoundDetailResponse(
            **item.model_dump(),
            contributors=summaries,
            submitted_assessments=[AssessmentResponse.model_validate(a) for a in assessments],
        )

    def get_rounds(
        self,
        org_id: Optional[str] = None,
        wallet_address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ServiceResult[List[RoundListItem]]:
        """Rounds of an organization, newest first.

        The organization is taken from ``wallet_address`` when one is given.
        """
        def operation() -> List[RoundListItem]:
            target_org = org_id
            if wallet_address:
                user = self.repository.get_user_by_wallet(wallet_address)
                if user is None or not user.organization_id:
                    raise NotFoundError(f"User with wallet {wallet_address} not found")
                target_org = user.organization_id
            if not target_org:
                raise ValidationError("An organization id or wallet address is required")
            if self.repository.get_organization(target_org) is None:
                raise NotFoundError(f"Organization {target_org} not found")

            current = self._clock(now)
            return [to_round_item(r, current) for r in self.repository.list_rounds(target_org)]

        return self._execute("get_rounds", operation)

    def get_current_round(self, org_id: str, now: Optional[datetime] = None) -> ServiceResult[RoundListItem]:
        """Latest round of the organization that is not completed."""
        def operation() -> RoundListItem:
            round_ = self.repository.get_latest_open_round(org_id)
            if round_ is None:
                raise NotFoundError(f"No current round for organization {org_id}")
            return to_round_item(round_, self._clock(now))

        return self._execute("get_current_round", operation)

    # ================================================================
    # Round commands
    # ================================================================

    def remind_to_assess(
        self,
        round_id: str,
        remind_all: bool = False,
        user_ids: Optional[List[str]] = None,
        now: Optional[datetime] = None,
    ) -> ServiceResult[ReminderResponse]:
        """Send assessment reminders for an in-progress round.

        With ``remind_all`` every contributor who has not assessed all of
        their peers is reminded; otherwise only ``user_ids`` in the
        round's organization are.
        """
        def operation() -> ReminderResponse:
            round_ = self._require_round(round_id)
            if round_.status_at(self._clock(now)) != RoundStatus.IN_PROGRESS:
                raise RoundNotActiveError()

            org = self.repository.get_organization(round_.organization_id)
            contributors = self.repository.list_contributors(round_.organization_id)
            if remind_all:
                targets = self._pending_assessors(round_.id, contributors)
            else:
                wanted = set(user_ids or [])
                targets = [u for u in contributors if u.id in wanted]

            reminded = [
                user.id
                for user in targets
                if notify_safely(self.notifier.send_assessment_reminder, user.email, user.username, org.name)
            ]
            logger.info(f"Reminded {len(reminded)}/{len(targets)} contributors for round {round_id}")
            return ReminderResponse(round_id=round_id, reminded=reminded)

        return self._execute("remind_to_assess", operation)

    def _pending_assessors(self, round_id: str, contributors: List[User]) -> List[User]:
        """Contributors who have not yet assessed every peer."""
        assessed_by: Dict[str, Set[str]] = {}
        for assessment in self.repository.list_assessments(round_id):
            assessed_by.setdefault(assessment.assessor_id, set()).add(assessment.assessed_id)

        member_ids = {u.id for u in contributors}
        pending = []
        for user in contributors:
            peers = member_ids - {user.id}
            if not peers <= assessed_by.get(user.id, set()):
                pending.append(user)
        return pending

    def add_token_mint_tx(self, round_id: str, tx_hash: str) -> ServiceResult[RoundListItem]:
        """Record the token mint transaction of a completed round."""
        def operation() -> RoundListItem:
            round_ = self._require_round(round_id)
            if not round_.is_completed:
                raise RoundNotCompletedError()
            if round_.tx_hash:
                raise InvalidStateError("Token mint transaction already recorded for this round")
            round_.tx_hash = tx_hash
            self.repository.save(round_)
            self._invalidate(round_id)
            logger.info(f"Recorded tx hash for round {round_id}")
            return to_round_item(round_)

        return self._execute("add_token_mint_tx", operation)

    def edit_round(
        self,
        round_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> ServiceResult[RoundListItem]:
        """Reschedule an uncompleted round."""
        def operation() -> RoundListItem:
            round_ = self._require_round(round_id)
            if round_.is_completed:
                raise RoundCompletedError()

            new_start = as_utc(start_date) if start_date is not None else round_.start_date
            new_end = as_utc(end_date) if end_date is not None else round_.end_date
            if new_end < new_start:
                raise ValidationError("end_date must be >= start_date")

            round_.start_date = new_start
            round_.end_date = new_end
            self.repository.save(round_)
            self._invalidate(round_id)
            logger.info(f"Round {round_id} rescheduled to {new_start.isoformat()} - {new_end.isoformat()}")
            return to_round_item(round_, self._clock(now))

        return self._execute("edit_round", operation)
