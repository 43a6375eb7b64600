"""Tests for the round query/command service."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from peer_rounds.database.orm import ContributorRoundCompensation
from peer_rounds.models import RoundStatus
from peer_rounds.services.redis_cache import CacheKeys
from peer_rounds.services.round_service import RoundService

UTC = timezone.utc


@pytest.fixture
def service(repository, fake_cache, mock_notifier):
    return RoundService(repository, cache=fake_cache, notifier=mock_notifier)


@pytest.fixture
def team(make_org, make_user):
    org = make_org(name="Acme")
    alice = make_user(org, username="alice")
    bob = make_user(org, username="bob")
    carol = make_user(org, username="carol")
    return org, alice, bob, carol


class TestResults:

    def test_success_result_carries_data(self, service, team, active_round, now):
        org, *_ = team
        round_ = active_round(org)
        result = service.get_current_round(org.id, now=now)

        assert result.success is True
        assert result.status_code == 200
        assert result.data.id == round_.id

    def test_error_result_carries_code(self, service):
        result = service.get_round_by_id("missing")
        assert result.success is False
        assert result.status_code == 404
        assert result.error_code == "not_found"
        assert result.data is None

    def test_unexpected_error_becomes_500(self, repository):
        repository.get_round = MagicMock(side_effect=RuntimeError("db gone"))
        result = RoundService(repository).get_round_by_id("any")
        assert result.success is False
        assert result.status_code == 500
        assert result.error_code == "internal_error"


class TestCurrentRound:

    def test_in_progress(self, service, team, active_round, now):
        org, *_ = team
        active_round(org)
        assert service.get_current_round(org.id, now=now).data.status == RoundStatus.IN_PROGRESS

    def test_not_started_when_start_is_tomorrow(self, service, team, make_round, now):
        org, *_ = team
        make_round(org, now + timedelta(days=1), now + timedelta(days=8))
        result = service.get_current_round(org.id, now=now)
        assert result.success is True
        assert result.data.status == RoundStatus.NOT_STARTED

    def test_awaiting_completion(self, service, team, make_round, now):
        org, *_ = team
        make_round(org, now - timedelta(days=8), now - timedelta(days=1))
        assert service.get_current_round(org.id, now=now).data.status == RoundStatus.AWAITING_COMPLETION

    def test_none_when_all_completed(self, service, team, make_round, now):
        org, *_ = team
        make_round(org, now - timedelta(days=8), now - timedelta(days=1), completed=True)
        result = service.get_current_round(org.id, now=now)
        assert result.status_code == 404


class TestRoundQueries:

    def test_rounds_listed_newest_first(self, service, team, make_round, now):
        org, alice, *_ = team
        make_round(org, now - timedelta(days=30), now - timedelta(days=23), completed=True)
        make_round(org, now - timedelta(days=1), now + timedelta(days=6))

        result = service.get_rounds(wallet_address=alice.wallet_address, now=now)

        assert [r.round_number for r in result.data] == [2, 1]
        assert result.data[0].status == RoundStatus.IN_PROGRESS
        assert result.data[1].status == RoundStatus.COMPLETED

    def test_rounds_need_org_or_wallet(self, service):
        result = service.get_rounds()
        assert result.status_code == 422

    def test_open_round_live_scores(self, service, team, active_round, make_assessment, now):
        org, alice, bob, carol = team
        round_ = active_round(org)
        make_assessment(round_, alice, bob, culture=8, work=6)
        make_assessment(round_, carol, bob, culture=6, work=0)

        detail = service.get_round_by_id(round_.id, now=now).data

        by_id = {c.id: c for c in detail.contributors}
        assert len(by_id) == 3
        assert by_id[bob.id].culture_score == pytest.approx(7.0)
        assert by_id[bob.id].work_score == pytest.approx(6.0)
        assert by_id[bob.id].total_score == pytest.approx(6.5)
        assert by_id[bob.id].fiat == 0.0
        assert by_id[alice.id].has_assessed is True
        assert by_id[bob.id].has_assessed is False
        assert len(detail.submitted_assessments) == 2

    def test_open_round_not_cached(self, service, fake_cache, team, active_round, now):
        org, *_ = team
        round_ = active_round(org)
        service.get_round_by_id(round_.id, now=now)
        assert not fake_cache.client.exists(CacheKeys.round(round_.id))

    def test_completed_round_reads_stored_rows(self, service, db_session, fake_cache, team, make_round, now):
        org, alice, bob, _ = team
        round_ = make_round(org, now - timedelta(days=8), now - timedelta(days=1), completed=True)
        db_session.add(ContributorRoundCompensation(
            round_id=round_.id,
            contributor_id=bob.id,
            cultural_score=8.0,
            work_score=8.0,
            final_score=8.0,
            agreement_commitment=100,
            agreement_market_rate=Decimal("1000"),
            agreement_fiat_requested=Decimal("1000"),
            tp=Decimal("500"),
            fiat=Decimal("1000"),
        ))
        db_session.commit()

        detail = service.get_round_by_id(round_.id, now=now).data

        by_id = {c.id: c for c in detail.contributors}
        assert detail.status == RoundStatus.COMPLETED
        assert by_id[bob.id].team_points == 500.0
        assert by_id[bob.id].fiat == 1000.0
        assert by_id[alice.id].total_score == 0.0
        assert fake_cache.client.exists(CacheKeys.round(round_.id))

    def test_completed_round_served_from_cache(self, service, repository, team, make_round, now):
        org, *_ = team
        round_ = make_round(org, now - timedelta(days=8), now - timedelta(days=1), completed=True)
        first = service.get_round_by_id(round_.id, now=now).data

        repository.get_round = MagicMock(side_effect=AssertionError("should hit cache"))
        second = service.get_round_by_id(round_.id, now=now)

        assert second.success is True
        assert second.data == first

    def test_get_assessments_filters(self, service, team, active_round, make_assessment):
        org, alice, bob, carol = team
        round_ = active_round(org)
        make_assessment(round_, alice, bob, culture=5, work=5)
        make_assessment(round_, alice, carol, culture=5, work=5)
        make_assessment(round_, bob, carol, culture=5, work=5)

        assert len(service.get_assessments(round_.id).data) == 3
        assert len(service.get_assessments(round_.id, assessor_id=alice.id).data) == 2
        assert len(service.get_assessments(round_.id, assessed_id=carol.id).data) == 2


class TestAssessmentCommands:

    def test_add_assessment_created(self, service, team, active_round, now):
        org, alice, bob, _ = team
        round_ = active_round(org)
        result = service.add_assessment(alice.wallet_address, bob.id, 7, 7, now=now)
        assert result.status_code == 201
        assert result.data.round_id == round_.id

    def test_duplicate_is_409(self, service, team, active_round, now):
        org, alice, bob, _ = team
        active_round(org)
        service.add_assessment(alice.wallet_address, bob.id, 7, 7, now=now)
        result = service.add_assessment(alice.wallet_address, bob.id, 7, 7, now=now)
        assert result.status_code == 409
        assert result.error_code == "duplicate_assessment"

    def test_edit_assessment(self, service, team, active_round, now):
        org, alice, bob, _ = team
        round_ = active_round(org)
        created = service.add_assessment(alice.wallet_address, bob.id, 7, 7, now=now).data
        result = service.edit_assessment(alice.wallet_address, round_.id, created.id, 2, 3, now=now)
        assert result.success is True
        assert result.data.work_score == 3.0


class TestReminders:

    def test_remind_all_targets_pending_assessors(self, service, mock_notifier, team, active_round, make_assessment, now):
        org, alice, bob, carol = team
        round_ = active_round(org)
        make_assessment(round_, alice, bob, culture=5, work=5)
        make_assessment(round_, alice, carol, culture=5, work=5)
        make_assessment(round_, bob, alice, culture=5, work=5)

        result = service.remind_to_assess(round_.id, remind_all=True, now=now)

        assert set(result.data.reminded) == {bob.id, carol.id}
        mock_notifier.send_assessment_reminder.assert_any_call("bob@example.com", "bob", "Acme")

    def test_remind_selected_users(self, service, team, active_round, make_user, make_org, now):
        org, alice, bob, _ = team
        round_ = active_round(org)
        outsider = make_user(make_org(name="Other"))

        result = service.remind_to_assess(round_.id, user_ids=[alice.id, outsider.id], now=now)

        assert result.data.reminded == [alice.id]

    def test_reminder_failure_is_swallowed(self, service, mock_notifier, team, active_round, now):
        org, alice, *_ = team
        round_ = active_round(org)
        mock_notifier.send_assessment_reminder.side_effect = RuntimeError("smtp down")

        result = service.remind_to_assess(round_.id, user_ids=[alice.id], now=now)

        assert result.success is True
        assert result.data.reminded == []

    def test_round_must_be_in_progress(self, service, team, make_round, now):
        org, alice, *_ = team
        round_ = make_round(org, now + timedelta(days=1), now + timedelta(days=8))
        result = service.remind_to_assess(round_.id, remind_all=True, now=now)
        assert result.success is False
        assert result.error_code == "round_not_active"


class TestRoundCommands:

    def test_tx_hash_requires_completed_round(self, service, team, active_round):
        org, *_ = team
        round_ = active_round(org)
        result = service.add_token_mint_tx(round_.id, "0xabc")
        assert result.error_code == "round_not_completed"

    def test_tx_hash_recorded_once(self, service, team, make_round, now):
        org, *_ = team
        round_ = make_round(org, now - timedelta(days=8), now - timedelta(days=1), completed=True)

        first = service.add_token_mint_tx(round_.id, "0xabc")
        second = service.add_token_mint_tx(round_.id, "0xdef")

        assert first.success is True
        assert first.data.tx_hash == "0xabc"
        assert second.success is False
        assert second.error_code == "invalid_state"

    def test_edit_round_reschedules(self, service, team, active_round, now):
        org, *_ = team
        round_ = active_round(org)
        new_end = datetime(2026, 3, 20, 23, 59, tzinfo=UTC)

        result = service.edit_round(round_.id, end_date=new_end, now=now)

        assert result.success is True
        assert result.data.end_date == new_end

    def test_edit_round_rejects_inverted_window(self, service, team, active_round, now):
        org, *_ = team
        round_ = active_round(org)
        result = service.edit_round(round_.id, end_date=round_.start_date - timedelta(days=1), now=now)
        assert result.status_code == 422

    def test_edit_completed_round_rejected(self, service, team, make_round, now):
        org, *_ = team
        round_ = make_round(org, now - timedelta(days=8), now - timedelta(days=1), completed=True)
        result = service.edit_round(round_.id, end_date=now + timedelta(days=1), now=now)
        assert result.error_code == "round_completed"
