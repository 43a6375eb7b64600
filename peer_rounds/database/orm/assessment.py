"""Assessment ORM model."""
from sqlalchemy import String, Float, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional
from datetime import datetime
import uuid

from peer_rounds.database.base import Base
from peer_rounds.database.types import UTCDateTime, utcnow


class Assessment(Base):
    """Peer assessment submitted during a round."""
    __tablename__ = "assessments"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Fields
    round_id: Mapped[str] = mapped_column(ForeignKey("rounds.id"), index=True)
    assessor_id: Mapped[str] = mapped_column(ForeignKey("users.id"))
    assessed_id: Mapped[str] = mapped_column(ForeignKey("users.id"))
    culture_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    work_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    feedback_positive: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    feedback_negative: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        onupdate=utcnow
    )

    # Relationships
    round: Mapped["Round"] = relationship(
        "Round",
        back_populates="assessments"
    )
    assessor: Mapped["User"] = relationship(
        "User",
        foreign_keys=[assessor_id]
    )
    assessed: Mapped["User"] = relationship(
        "User",
        foreign_keys=[assessed_id]
    )

    # One assessment per (round, assessor, assessed) is enforced in storage
    __table_args__ = (
        UniqueConstraint("round_id", "assessor_id", "assessed_id", name="uq_assessment_round_pair"),
    )

    def __repr__(self):
        return f"<Assessment(id={self.id}, round={self.round_id}, assessed={self.assessed_id})>"
