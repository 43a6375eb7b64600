"""Pytest fixtures and configuration."""
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch
import fakeredis
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from peer_rounds.database.base import Base
from peer_rounds.database.orm import (
    Agreement,
    Assessment,
    Organization,
    Round,
    User,
)
from peer_rounds.models.enums import CompensationPeriod
from peer_rounds.services.redis_cache import RedisCache
from peer_rounds.services.repository import RoundRepository

# Fixed clock: Tuesday 2026-03-10 12:00 UTC
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads (TestClient runs in a worker thread)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = factory()
    yield session
    session.close()


@pytest.fixture
def repository(db_session):
    return RoundRepository(db_session)


@pytest.fixture
def mock_notifier():
    """Notification port double; records sends."""
    return MagicMock()


@pytest.fixture
def fake_cache():
    """RedisCache backed by fakeredis."""
    return RedisCache(host="localhost", port=6379, client=fakeredis.FakeRedis(decode_responses=True))


@pytest.fixture
def mock_redis():
    """Mock Redis cache."""
    mock = MagicMock()
    mock.health_check = MagicMock(return_value=(True, None))
    mock.get = MagicMock(return_value=None)
    mock.set = MagicMock(return_value=True)
    mock.delete = MagicMock(return_value=True)
    return mock


# ── factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_org(db_session):
    def _make(
        name="Acme DAO",
        period=CompensationPeriod.WEEKLY,
        start_day=datetime(2026, 3, 5, tzinfo=timezone.utc),
        duration=7,
        delay=0,
        par=20,
        total_funds=Decimal("0"),
    ):
        org = Organization(
            name=name,
            par=par,
            compensation_period=period,
            compensation_start_day=start_day,
            assessment_duration_in_days=duration,
            assessment_start_delay_in_days=delay,
            total_funds=total_funds,
        )
        db_session.add(org)
        db_session.commit()
        return org
    return _make


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(
        org=None,
        username=None,
        email="__default__",
        is_admin=False,
        agreement=(100, "1000", "1000"),
    ):
        counter["n"] += 1
        n = counter["n"]
        username = username or f"user{n}"
        user = User(
            wallet_address=f"0xABC{n:037d}",
            email=f"{username}@example.com" if email == "__default__" else email,
            username=username,
            is_admin=is_admin,
            organization_id=org.id if org is not None else None,
        )
        db_session.add(user)
        db_session.flush()
        if agreement is not None:
            commitment, market_rate, fiat_requested = agreement
            db_session.add(Agreement(
                user_id=user.id,
                role_name="Engineer",
                responsibilities="Build things",
                commitment=commitment,
                market_rate=Decimal(market_rate),
                fiat_requested=Decimal(fiat_requested),
            ))
        db_session.commit()
        return user
    return _make


@pytest.fixture
def make_round(db_session):
    def _make(org, start, end, number=None, completed=False, tx_hash=None):
        if number is None:
            number = db_session.query(Round).filter(Round.organization_id == org.id).count() + 1
        round_ = Round(
            organization_id=org.id,
            round_number=number,
            start_date=start,
            end_date=end,
            is_completed=completed,
            tx_hash=tx_hash,
            compensation_cycle_start_date=start - timedelta(days=7),
            compensation_cycle_end_date=start,
        )
        db_session.add(round_)
        db_session.commit()
        return round_
    return _make


@pytest.fixture
def make_assessment(db_session):
    def _make(round_, assessor, assessed, culture=None, work=None):
        assessment = Assessment(
            round_id=round_.id,
            assessor_id=assessor.id,
            assessed_id=assessed.id,
            culture_score=culture,
            work_score=work,
        )
        db_session.add(assessment)
        db_session.commit()
        return assessment
    return _make


@pytest.fixture
def active_round(make_round, now):
    """Factory for a round in progress at NOW."""
    def _make(org):
        return make_round(org, now - timedelta(days=1), now + timedelta(days=5))
    return _make


# ── API ──────────────────────────────────────────────────────────────────────


@pytest.fixture
def client(db_session, fake_cache, mock_notifier):
    """Test client on the in-memory database with fakeredis and a mock notifier."""
    from peer_rounds.database.connection import get_db
    from peer_rounds.main import app

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    with patch("peer_rounds.routers.health.get_redis_cache", return_value=fake_cache), \
            patch("peer_rounds.routers.rounds.get_redis_cache", return_value=fake_cache), \
            patch("peer_rounds.routers.jobs.get_redis_cache", return_value=fake_cache), \
            patch("peer_rounds.routers.rounds.get_notifier", return_value=mock_notifier), \
            patch("peer_rounds.routers.jobs.get_notifier", return_value=mock_notifier):
        yield TestClient(app)
    app.dependency_overrides.clear()
