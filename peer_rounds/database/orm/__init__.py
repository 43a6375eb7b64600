"""SQLAlchemy ORM models for the round engine."""
from peer_rounds.database.base import Base
from peer_rounds.database.orm.organization import Organization
from peer_rounds.database.orm.user import User, Agreement
from peer_rounds.database.orm.round import Round
from peer_rounds.database.orm.assessment import Assessment
from peer_rounds.database.orm.compensation import ContributorRoundCompensation

__all__ = [
    "Base",
    "Organization",
    "User",
    "Agreement",
    "Round",
    "Assessment",
    "ContributorRoundCompensation",
]
