"""Round compensation calculator.

Full formula
------------
  base_salary = commitment / 100 × market_rate
  SAM         = (final_score − NEUTRAL_SCORE) × (PAR / 100) / 2
  total_comp  = base_salary × (1 + SAM)
  fiat        = min(fiat_requested, total_comp)       (never below 0)
  tp          = max(0, total_comp − fiat_requested)

Where:
  final_score   = mean of the culture and work averages that have data
  NEUTRAL_SCORE = 3  (score that yields no adjustment)
  PAR           = organization performance adjustment range, 1–100 %

Culture and work scores are averaged separately; a missing or zero score
counts toward neither the total nor the count. Payouts are rounded to cents.
Audit trail emitted via structlog.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

import structlog

from peer_rounds.scoring.utils import mean, to_decimal, to_money

logger = structlog.get_logger(__name__)

# ── Constants ─────────────────────────────────────────────────────────────────
NEUTRAL_SCORE: Decimal = Decimal("3")    # final score with zero adjustment
HUNDRED: Decimal = Decimal(100)


@dataclass
class ScoreAccumulator:
    """Running culture/work totals for one assessed contributor."""

    culture_total: Decimal = Decimal(0)
    culture_count: int = 0
    work_total: Decimal = Decimal(0)
    work_count: int = 0

    def add(self, culture_score: Any, work_score: Any) -> None:
        culture = to_decimal(culture_score)
        if culture > 0:
            self.culture_total += culture
            self.culture_count += 1
        work = to_decimal(work_score)
        if work > 0:
            self.work_total += work
            self.work_count += 1

    @property
    def cultural_score(self) -> Decimal:
        if not self.culture_count:
            return Decimal(0)
        return to_decimal(self.culture_total / self.culture_count)

    @property
    def work_score(self) -> Decimal:
        if not self.work_count:
            return Decimal(0)
        return to_decimal(self.work_total / self.work_count)

    @property
    def final_score(self) -> Decimal:
        present = []
        if self.culture_count:
            present.append(self.cultural_score)
        if self.work_count:
            present.append(self.work_score)
        return mean(present)


def aggregate_scores(assessments: Iterable[Any]) -> Dict[str, ScoreAccumulator]:
    """Group assessments by assessed contributor id.

    Accepts any objects exposing ``assessed_id``, ``culture_score`` and
    ``work_score``. Only contributors with at least one assessment appear.
    """
    grouped: Dict[str, ScoreAccumulator] = {}
    for assessment in assessments:
        accumulator = grouped.setdefault(assessment.assessed_id, ScoreAccumulator())
        accumulator.add(assessment.culture_score, assessment.work_score)
    return grouped


@dataclass
class CompensationResult:
    """Compensation split for one contributor with audit trail."""

    contributor_id: Optional[str]
    cultural_score: Decimal
    work_score: Decimal
    final_score: Decimal
    commitment: Decimal
    market_rate: Decimal
    fiat_requested: Decimal
    base_salary: Decimal
    sam: Decimal
    total_comp: Decimal
    fiat: Decimal
    tp: Decimal

    def to_dict(self) -> dict:
        """Serialise to plain-Python dict (floats) for logging / JSON."""
        return {
            "contributor_id": self.contributor_id,
            "cultural_score": float(self.cultural_score),
            "work_score": float(self.work_score),
            "final_score": float(self.final_score),
            "commitment": float(self.commitment),
            "market_rate": float(self.market_rate),
            "fiat_requested": float(self.fiat_requested),
            "base_salary": float(self.base_salary),
            "sam": float(self.sam),
            "total_comp": float(self.total_comp),
            "fiat": float(self.fiat),
            "tp": float(self.tp),
        }


class CompensationCalculator:
    """Turn aggregated peer scores and an agreement into a fiat/TP split.

    Parameters
    ----------
    neutral_score:
        Final score that produces no adjustment (default 3).
    """

    def __init__(self, neutral_score: float = float(NEUTRAL_SCORE)) -> None:
        self.neutral_score: Decimal = to_decimal(neutral_score)

    # ── public API ────────────────────────────────────────────────────────────

    def score_adjustment(self, final_score: Decimal, par: Any) -> Decimal:
        """SAM for a final score under the organization's PAR."""
        par_fraction = to_decimal(par) / HUNDRED
        return to_decimal((to_decimal(final_score) - self.neutral_score) * (par_fraction / 2), places=6)

    def calculate(
        self,
        scores: ScoreAccumulator,
        par: Any,
        commitment: Any,
        market_rate: Any,
        fiat_requested: Any,
        contributor_id: Optional[str] = None,
    ) -> CompensationResult:
        """Calculate the compensation split.

        Args:
            scores: Accumulated culture/work scores of the contributor.
            par: Organization PAR percentage.
            commitment: Agreement commitment percentage.
            market_rate: Agreement market rate.
            fiat_requested: Agreement fiat requested.
            contributor_id: Used for the audit log only.

        Returns:
            CompensationResult with snapshot inputs and rounded payouts.
        """
        # ── 1. Snapshot inputs (missing values count as 0) ───────────────────
        commitment_d = to_decimal(commitment)
        market_rate_d = to_decimal(market_rate)
        fiat_requested_d = to_money(fiat_requested)

        # ── 2. Scores ─────────────────────────────────────────────────────────
        final_score = scores.final_score

        # ── 3. Base salary and adjustment ─────────────────────────────────────
        base_salary = commitment_d / HUNDRED * market_rate_d
        sam = self.score_adjustment(final_score, par)
        total_comp = to_decimal(base_salary * (1 + sam))

        # ── 4. Fiat / token-points split ──────────────────────────────────────
        fiat = to_money(max(Decimal(0), min(fiat_requested_d, total_comp)))
        tp = to_money(max(Decimal(0), total_comp - fiat_requested_d))

        result = CompensationResult(
            contributor_id=contributor_id,
            cultural_score=scores.cultural_score,
            work_score=scores.work_score,
            final_score=final_score,
            commitment=commitment_d,
            market_rate=market_rate_d,
            fiat_requested=fiat_requested_d,
            base_salary=to_money(base_salary),
            sam=sam,
            total_comp=to_money(total_comp),
            fiat=fiat,
            tp=tp,
        )

        logger.info("compensation_calculated", **result.to_dict())
        return result
