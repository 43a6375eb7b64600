"""Contributor round compensation ORM model."""
from sqlalchemy import String, Float, Integer, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from decimal import Decimal
import uuid

from peer_rounds.database.base import Base
from peer_rounds.database.types import UTCDateTime, utcnow


class ContributorRoundCompensation(Base):
    """Per-contributor payout computed when a round completes.

    Agreement fields are snapshotted at computation time and never updated.
    """
    __tablename__ = "contributor_round_compensations"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Fields
    round_id: Mapped[str] = mapped_column(ForeignKey("rounds.id"), index=True)
    contributor_id: Mapped[str] = mapped_column(ForeignKey("users.id"))
    cultural_score: Mapped[float] = mapped_column(Float)
    work_score: Mapped[float] = mapped_column(Float)
    final_score: Mapped[float] = mapped_column(Float)
    agreement_commitment: Mapped[int] = mapped_column(Integer)
    agreement_market_rate: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    agreement_fiat_requested: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    tp: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    fiat: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow
    )

    # Relationships
    round: Mapped["Round"] = relationship(
        "Round",
        back_populates="compensations"
    )
    contributor: Mapped["User"] = relationship("User")

    __table_args__ = (
        UniqueConstraint("round_id", "contributor_id", name="uq_compensation_round_contributor"),
    )

    def __repr__(self):
        return f"<ContributorRoundCompensation(round={self.round_id}, contributor={self.contributor_id})>"
