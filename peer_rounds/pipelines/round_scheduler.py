"""Round scheduler: opens the next assessment round for each organization.

Run on an external timer. Every invocation re-reads state from the
repository, so repeated runs are idempotent: an organization with an open
round is never a candidate.

Per organization:
  start       = round_start_time(period, anchor, delay, now)
  window      = beginning_of_today(now) <= start <= now + lookahead
  end         = round_end_time(start, duration)
  next anchor = anchor + 1 period

Round-started emails go out after every organization has been processed,
on a small thread pool, so a slow mail server never delays round creation.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import structlog

from peer_rounds.database.orm import Organization, Round
from peer_rounds.models.jobs import SchedulerRunSummary
from peer_rounds.pipelines.cycle_calendar import (
    as_utc,
    beginning_of_today,
    coerce_period,
    next_compensation_cycle_start,
    round_end_time,
    round_start_time,
)
from peer_rounds.services.notifications import NotificationPort, notify_safely
from peer_rounds.services.repository import RoundRepository

logger = structlog.get_logger(__name__)

# ── Constants ─────────────────────────────────────────────────────────────────
DEFAULT_LOOKAHEAD_DAYS: int = 7
DEFAULT_NOTIFICATION_WORKERS: int = 4


class RoundScheduler:
    """Create rounds for organizations whose next round falls in the lookahead window."""

    def __init__(
        self,
        repository: RoundRepository,
        notifier: NotificationPort,
        lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
        notification_workers: int = DEFAULT_NOTIFICATION_WORKERS,
    ) -> None:
        self.repository = repository
        self.notifier = notifier
        self.lookahead_days = lookahead_days
        self.notification_workers = max(1, notification_workers)

    # ── public API ────────────────────────────────────────────────────────────

    def create_rounds(
        self,
        target_org_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SchedulerRunSummary:
        """Create at most one round per candidate organization.

        Args:
            target_org_id: Restrict the run to one organization.
            now: Clock override.

        Returns:
            SchedulerRunSummary listing created, skipped and failed organizations.
        """
        current = as_utc(now) if now is not None else datetime.now(timezone.utc)
        summary = SchedulerRunSummary()
        started: List[Organization] = []

        for org in self._candidates(target_org_id, summary):
            org_id = org.id
            try:
                created = self._create_round(org, current)
            except Exception as e:
                self.repository.rollback()
                logger.error("round_creation_failed", org_id=org_id, error=str(e), exc_info=True)
                summary.failed.append(org_id)
                continue

            if created is None:
                summary.skipped.append(org_id)
                continue

            summary.created.append(org_id)
            summary.round_ids.append(created.id)
            started.append(org)

        self._notify_round_started(started)

        logger.info(
            "create_rounds_finished",
            created=len(summary.created),
            skipped=len(summary.skipped),
            failed=len(summary.failed),
        )
        return summary

    # ── internals ─────────────────────────────────────────────────────────────

    def _candidates(self, target_org_id: Optional[str], summary: SchedulerRunSummary) -> List[Organization]:
        if target_org_id is None:
            return self.repository.list_organizations_without_open_round()

        org = self.repository.get_organization(target_org_id)
        if org is None:
            logger.warning("organization_not_found", org_id=target_org_id)
            summary.skipped.append(target_org_id)
            return []
        if not org.has_compensation_config:
            logger.info("round_skipped_unconfigured", org_id=org.id)
            summary.skipped.append(org.id)
            return []
        if self.repository.has_open_round(org.id):
            logger.info("round_skipped_open_round_exists", org_id=org.id)
            summary.skipped.append(org.id)
            return []
        return [org]

    def _create_round(self, org: Organization, now: datetime) -> Optional[Round]:
        # ── 1. Start time (raises InvalidCycleError for an unknown period) ───
        period = coerce_period(org.compensation_period)
        anchor = as_utc(org.compensation_start_day)
        start = round_start_time(
            period,
            anchor,
            org.assessment_start_delay_in_days,
            now=now,
        )

        # ── 2. Lookahead window ───────────────────────────────────────────────
        window_end = now + timedelta(days=self.lookahead_days)
        if not (beginning_of_today(now) <= start <= window_end):
            logger.info(
                "round_skipped_outside_window",
                org_id=org.id,
                start=start.isoformat(),
                window_end=window_end.isoformat(),
            )
            return None

        # ── 3. End time and next cycle anchor ─────────────────────────────────
        end = round_end_time(start, org.assessment_duration_in_days)
        next_anchor = next_compensation_cycle_start(anchor, period)

        # ── 4. Persist the round, then advance the anchor (two commits) ──────
        new_round = Round(
            organization_id=org.id,
            round_number=self.repository.count_rounds(org.id) + 1,
            start_date=start,
            end_date=end,
            is_completed=False,
            compensation_cycle_start_date=anchor,
            compensation_cycle_end_date=next_anchor,
        )
        self.repository.save(new_round)

        org.compensation_start_day = next_anchor
        self.repository.save(org)

        logger.info(
            "round_created",
            org_id=org.id,
            round_id=new_round.id,
            round_number=new_round.round_number,
            start=start.isoformat(),
            end=end.isoformat(),
            next_anchor=next_anchor.isoformat(),
        )
        return new_round

    def _notify_round_started(self, orgs: List[Organization]) -> None:
        """Email every contributor of the given organizations; failures are logged only."""
        sends: List[Tuple[Optional[str], str, str]] = []
        for org in orgs:
            try:
                contributors = self.repository.list_contributors(org.id)
            except Exception as e:
                logger.warning("round_notification_lookup_failed", org_id=org.id, error=str(e))
                continue
            sends.extend((user.email, user.username, org.name) for user in contributors)

        if not sends:
            return

        # Addresses are read up front; worker threads never touch the session
        with ThreadPoolExecutor(max_workers=self.notification_workers) as pool:
            results = list(pool.map(
                lambda send: notify_safely(self.notifier.send_round_started, *send),
                sends,
            ))
        logger.info(
            "round_started_notifications_sent",
            organizations=len(orgs),
            sent=sum(results),
            total=len(sends),
        )
