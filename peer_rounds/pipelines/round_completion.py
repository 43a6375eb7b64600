"""Round completion engine.

Closes every round whose window has ended:
  1. aggregate assessments per assessed contributor
  2. compute each contributor's fiat / TP split
  3. persist one compensation row per assessed contributor
  4. deduct the round's fiat from the organization's funds
  5. mark the round completed (single commit per round)

A failing round is rolled back and left open for the next run.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

import structlog

from peer_rounds.database.orm import ContributorRoundCompensation, Round
from peer_rounds.models.jobs import CompletionRunSummary
from peer_rounds.pipelines.cycle_calendar import as_utc
from peer_rounds.scoring.compensation import CompensationCalculator, aggregate_scores
from peer_rounds.scoring.utils import to_money
from peer_rounds.services.redis_cache import RedisCache
from peer_rounds.services.repository import RoundRepository

logger = structlog.get_logger(__name__)


class RoundCompletionEngine:
    """Compute compensations for ended rounds and mark them completed."""

    def __init__(
        self,
        repository: RoundRepository,
        calculator: Optional[CompensationCalculator] = None,
        cache: Optional[RedisCache] = None,
    ) -> None:
        self.repository = repository
        self.calculator = calculator or CompensationCalculator()
        self.cache = cache

    # ── public API ────────────────────────────────────────────────────────────

    def complete_rounds(self, now: Optional[datetime] = None) -> CompletionRunSummary:
        """Complete every uncompleted round with ``end_date <= now``."""
        current = as_utc(now) if now is not None else datetime.now(timezone.utc)
        summary = CompletionRunSummary()

        for round_ in self.repository.list_rounds_due_for_completion(current):
            round_id = round_.id
            try:
                created = self.complete_round(round_)
            except Exception as e:
                self.repository.rollback()
                logger.error("round_completion_failed", round_id=round_id, error=str(e), exc_info=True)
                summary.failed.append(round_id)
                continue

            summary.completed.append(round_id)
            summary.compensations_created += created
            if self.cache is not None:
                self.cache.invalidate_round(round_id)

        logger.info(
            "complete_rounds_finished",
            completed=len(summary.completed),
            failed=len(summary.failed),
            compensations_created=summary.compensations_created,
        )
        return summary

    def complete_round(self, round_: Round) -> int:
        """Complete one round; returns the number of compensation rows written."""
        org = round_.organization

        # ── 1. Aggregate scores per assessed contributor ─────────────────────
        grouped = aggregate_scores(round_.assessments)
        assessed_users = {a.assessed_id: a.assessed for a in round_.assessments}

        # ── 2-3. Compensation rows ────────────────────────────────────────────
        rows: List[ContributorRoundCompensation] = []
        round_fiat = Decimal(0)
        for contributor_id, scores in grouped.items():
            user = assessed_users.get(contributor_id)
            agreement = user.agreement if user is not None else None
            result = self.calculator.calculate(
                scores,
                par=org.par,
                commitment=agreement.commitment if agreement else None,
                market_rate=agreement.market_rate if agreement else None,
                fiat_requested=agreement.fiat_requested if agreement else None,
                contributor_id=contributor_id,
            )
            rows.append(
                ContributorRoundCompensation(
                    round_id=round_.id,
                    contributor_id=contributor_id,
                    cultural_score=float(result.cultural_score),
                    work_score=float(result.work_score),
                    final_score=float(result.final_score),
                    agreement_commitment=int(result.commitment),
                    agreement_market_rate=to_money(result.market_rate),
                    agreement_fiat_requested=result.fiat_requested,
                    tp=result.tp,
                    fiat=result.fiat,
                )
            )
            round_fiat += result.fiat

        # ── 4. Organization funds ─────────────────────────────────────────────
        funds = to_money(org.total_funds)
        if funds > 0:
            org.total_funds = to_money(funds - round_fiat)
            if org.total_funds < 0:
                logger.warning(
                    "organization_funds_negative",
                    org_id=org.id,
                    round_id=round_.id,
                    total_funds=float(org.total_funds),
                )
        elif round_fiat > 0:
            logger.warning(
                "organization_funds_not_deducted",
                org_id=org.id,
                round_id=round_.id,
                total_funds=float(funds),
                round_fiat=float(round_fiat),
            )

        # ── 5. Mark completed and commit everything together ─────────────────
        round_.is_completed = True
        self.repository.add_compensations(rows)
        self.repository.save(round_, org)

        logger.info(
            "round_completed",
            round_id=round_.id,
            org_id=org.id,
            contributors=len(rows),
            round_fiat=float(round_fiat),
        )
        return len(rows)
