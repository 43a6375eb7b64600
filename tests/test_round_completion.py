"""Tests for the round completion engine."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import text

from peer_rounds.pipelines.round_completion import RoundCompletionEngine
from peer_rounds.scoring.compensation import CompensationCalculator
from peer_rounds.services.redis_cache import CacheKeys

UTC = timezone.utc


@pytest.fixture
def team(make_org, make_user):
    """Organization with three contributors on identical agreements."""
    org = make_org(total_funds=Decimal("5000"))
    alice = make_user(org, username="alice")
    bob = make_user(org, username="bob")
    carol = make_user(org, username="carol")
    return org, alice, bob, carol


@pytest.fixture
def ended_round(make_round):
    def _make(org):
        return make_round(org, datetime(2026, 3, 1, tzinfo=UTC), datetime(2026, 3, 8, 23, 59, tzinfo=UTC))
    return _make


def _rows_by_contributor(repository, round_id):
    return {row.contributor_id: row for row in repository.list_compensations(round_id)}


class TestCompleteRounds:

    def test_computes_compensation_per_assessed_contributor(
        self, repository, team, ended_round, make_assessment, now
    ):
        org, alice, bob, carol = team
        round_ = ended_round(org)
        make_assessment(round_, alice, bob, culture=8, work=8)
        make_assessment(round_, carol, bob, culture=8, work=8)
        make_assessment(round_, bob, alice, culture=3, work=3)

        summary = RoundCompletionEngine(repository).complete_rounds(now=now)

        assert summary.completed == [round_.id]
        assert summary.compensations_created == 2
        rows = _rows_by_contributor(repository, round_.id)
        assert set(rows) == {alice.id, bob.id}
        assert rows[bob.id].final_score == pytest.approx(8.0)
        assert rows[bob.id].fiat == Decimal("1000")
        assert rows[bob.id].tp == Decimal("500")
        assert rows[alice.id].fiat == Decimal("1000")
        assert rows[alice.id].tp == Decimal("0")

    def test_unassessed_contributor_gets_no_row(self, repository, team, ended_round, make_assessment, now):
        org, alice, bob, carol = team
        round_ = ended_round(org)
        make_assessment(round_, alice, bob, culture=5, work=5)

        RoundCompletionEngine(repository).complete_rounds(now=now)

        assert carol.id not in _rows_by_contributor(repository, round_.id)

    def test_zero_scores_ignored_in_averages(self, repository, team, ended_round, make_assessment, now):
        org, alice, bob, carol = team
        round_ = ended_round(org)
        make_assessment(round_, alice, carol, culture=0, work=6)
        make_assessment(round_, bob, carol, culture=4, work=0)

        RoundCompletionEngine(repository).complete_rounds(now=now)

        row = _rows_by_contributor(repository, round_.id)[carol.id]
        assert row.cultural_score == pytest.approx(4.0)
        assert row.work_score == pytest.approx(6.0)
        assert row.final_score == pytest.approx(5.0)
        assert row.tp == Decimal("200")

    def test_agreement_snapshot_stored(self, repository, team, ended_round, make_assessment, now):
        org, alice, bob, carol = team
        round_ = ended_round(org)
        make_assessment(round_, alice, bob, culture=5, work=5)

        RoundCompletionEngine(repository).complete_rounds(now=now)

        row = _rows_by_contributor(repository, round_.id)[bob.id]
        assert row.agreement_commitment == 100
        assert row.agreement_market_rate == Decimal("1000")
        assert row.agreement_fiat_requested == Decimal("1000")

    def test_round_marked_completed(self, repository, db_session, team, ended_round, now):
        org, *_ = team
        round_ = ended_round(org)

        RoundCompletionEngine(repository).complete_rounds(now=now)

        db_session.refresh(round_)
        assert round_.is_completed is True

    def test_round_not_yet_ended_untouched(self, repository, db_session, team, make_round, make_assessment, now):
        org, alice, bob, _ = team
        round_ = make_round(org, now - timedelta(days=1), now + timedelta(days=3))
        make_assessment(round_, alice, bob, culture=5, work=5)

        summary = RoundCompletionEngine(repository).complete_rounds(now=now)

        assert summary.completed == []
        db_session.refresh(round_)
        assert round_.is_completed is False
        assert repository.list_compensations(round_.id) == []

    def test_completed_round_not_reprocessed(self, repository, db_session, team, ended_round, make_assessment, now):
        org, alice, bob, _ = team
        round_ = ended_round(org)
        make_assessment(round_, alice, bob, culture=8, work=8)
        engine = RoundCompletionEngine(repository)
        engine.complete_rounds(now=now)

        # Agreement changes after completion do not touch stored rows
        bob_agreement = repository.get_user(bob.id).agreement
        bob_agreement.market_rate = Decimal("9999")
        db_session.commit()
        second = engine.complete_rounds(now=now)

        assert second.completed == []
        row = _rows_by_contributor(repository, round_.id)[bob.id]
        assert row.agreement_market_rate == Decimal("1000")
        assert len(repository.list_compensations(round_.id)) == 1


class TestOrganizationFunds:

    def test_round_fiat_deducted(self, repository, db_session, team, ended_round, make_assessment, now):
        org, alice, bob, _ = team
        round_ = ended_round(org)
        make_assessment(round_, alice, bob, culture=8, work=8)
        make_assessment(round_, bob, alice, culture=3, work=3)

        RoundCompletionEngine(repository).complete_rounds(now=now)

        db_session.refresh(org)
        assert org.total_funds == Decimal("3000")

    def test_balance_can_go_negative(self, repository, db_session, make_org, make_user, ended_round, make_assessment, now):
        org = make_org(total_funds=Decimal("500"))
        alice = make_user(org)
        bob = make_user(org)
        round_ = ended_round(org)
        make_assessment(round_, alice, bob, culture=3, work=3)

        RoundCompletionEngine(repository).complete_rounds(now=now)

        db_session.refresh(org)
        assert org.total_funds == Decimal("-500")

    def test_no_deduction_when_funds_not_positive(
        self, repository, db_session, make_org, make_user, ended_round, make_assessment, now
    ):
        org = make_org(total_funds=Decimal("0"))
        alice = make_user(org)
        bob = make_user(org)
        round_ = ended_round(org)
        make_assessment(round_, alice, bob, culture=8, work=8)

        summary = RoundCompletionEngine(repository).complete_rounds(now=now)

        assert summary.completed == [round_.id]
        db_session.refresh(org)
        assert org.total_funds == Decimal("0")


class TestFailureHandling:

    def test_failed_round_left_open(self, repository, db_session, team, ended_round, make_assessment, now):
        org, alice, bob, _ = team
        round_ = ended_round(org)
        make_assessment(round_, alice, bob, culture=5, work=5)
        calculator = MagicMock()
        calculator.calculate.side_effect = RuntimeError("boom")

        summary = RoundCompletionEngine(repository, calculator=calculator).complete_rounds(now=now)

        assert summary.failed == [round_.id]
        assert summary.completed == []
        db_session.refresh(round_)
        assert round_.is_completed is False
        assert repository.list_compensations(round_.id) == []

    def test_cache_invalidated_on_completion(self, repository, team, ended_round, fake_cache, now):
        org, *_ = team
        round_ = ended_round(org)
        fake_cache.client.set(CacheKeys.round(round_.id), "{}")

        RoundCompletionEngine(repository, CompensationCalculator(), cache=fake_cache).complete_rounds(now=now)

        assert not fake_cache.client.exists(CacheKeys.round(round_.id))

    def test_unknown_stored_period_does_not_block_completion(
        self, repository, db_session, team, ended_round, make_assessment, now
    ):
        org, alice, bob, _ = team
        round_ = ended_round(org)
        make_assessment(round_, alice, bob, culture=8, work=8)
        db_session.execute(
            text("UPDATE organizations SET compensation_period = 'yearly' WHERE id = :id"),
            {"id": org.id},
        )
        db_session.commit()
        db_session.expire_all()

        summary = RoundCompletionEngine(repository).complete_rounds(now=now)

        assert summary.completed == [round_.id]
        assert summary.compensations_created == 1
