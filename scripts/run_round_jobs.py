"""scripts/run_round_jobs.py

Run the round lifecycle jobs once, for cron-style callers.

Jobs
----
create    RoundScheduler.create_rounds    → open due rounds, advance cycle anchors
complete  RoundCompletionEngine.complete_rounds → compensations for ended rounds
all       create, then complete

Only one invocation should run at a time (one cron entry, or the Airflow DAG
with max_active_runs=1).

Usage
-----
    python scripts/run_round_jobs.py all
    python scripts/run_round_jobs.py create --org-id <organization id>
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import structlog

_project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_project_root))

from dotenv import load_dotenv
load_dotenv(_project_root / ".env")

# ── app imports ───────────────────────────────────────────────────────────────
from peer_rounds.config import get_settings
from peer_rounds.database.connection import SessionLocal
from peer_rounds.pipelines import RoundCompletionEngine, RoundScheduler
from peer_rounds.scoring.compensation import CompensationCalculator
from peer_rounds.services import RoundRepository, get_notifier, get_redis_cache

# ── logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.dev.ConsoleRenderer(),
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)
log = structlog.get_logger("run_round_jobs")

JOBS = ("create", "complete", "all")


def run_jobs(job: str, org_id: str | None = None) -> dict:
    """Run the requested job(s) in a fresh session and return their summaries."""
    settings = get_settings()
    session = SessionLocal()
    results: dict = {}
    try:
        repository = RoundRepository(session)
        if job in ("create", "all"):
            scheduler = RoundScheduler(
                repository,
                get_notifier(),
                lookahead_days=settings.round_lookahead_days,
                notification_workers=settings.notification_workers,
            )
            results["create"] = scheduler.create_rounds(target_org_id=org_id).model_dump()
        if job in ("complete", "all"):
            engine = RoundCompletionEngine(
                repository,
                calculator=CompensationCalculator(neutral_score=settings.neutral_score),
                cache=get_redis_cache(),
            )
            results["complete"] = engine.complete_rounds().model_dump()
    finally:
        session.close()
    return results


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run round lifecycle jobs once")
    parser.add_argument("job", choices=JOBS, help="Which job to run")
    parser.add_argument("--org-id", help="Limit round creation to one organization")
    args = parser.parse_args()

    log.info("round_jobs_started", job=args.job, org_id=args.org_id or "all")
    summaries = run_jobs(args.job, org_id=args.org_id)
    log.info("round_jobs_finished", **summaries)

    failed = sum(len(s.get("failed", [])) for s in summaries.values())
    sys.exit(1 if failed else 0)
