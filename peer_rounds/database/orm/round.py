"""Round ORM model."""
from sqlalchemy import String, Integer, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, Optional
from datetime import datetime, timezone
import uuid

from peer_rounds.database.base import Base
from peer_rounds.database.types import UTCDateTime, utcnow
from peer_rounds.models.enums import RoundStatus


class Round(Base):
    """One assessment window within a compensation cycle."""
    __tablename__ = "rounds"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Fields
    organization_id: Mapped[str] = mapped_column(ForeignKey("organizations.id"), index=True)
    round_number: Mapped[int] = mapped_column(Integer)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime, index=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    tx_hash: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    compensation_cycle_start_date: Mapped[datetime] = mapped_column(UTCDateTime)
    compensation_cycle_end_date: Mapped[datetime] = mapped_column(UTCDateTime)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow
    )

    # Relationships
    organization: Mapped["Organization"] = relationship(
        "Organization",
        back_populates="rounds"
    )
    assessments: Mapped[List["Assessment"]] = relationship(
        "Assessment",
        back_populates="round"
    )
    compensations: Mapped[List["ContributorRoundCompensation"]] = relationship(
        "ContributorRoundCompensation",
        back_populates="round"
    )

    __table_args__ = (
        UniqueConstraint("organization_id", "round_number", name="uq_round_org_number"),
    )

    def status_at(self, now: Optional[datetime] = None) -> RoundStatus:
        """Derived lifecycle status at ``now`` (defaults to the current time)."""
        if self.is_completed:
            return RoundStatus.COMPLETED
        current = now or datetime.now(timezone.utc)
        if current < self.start_date:
            return RoundStatus.NOT_STARTED
        if current <= self.end_date:
            return RoundStatus.IN_PROGRESS
        return RoundStatus.AWAITING_COMPLETION

    @property
    def status(self) -> RoundStatus:
        return self.status_at()

    def __repr__(self):
        return f"<Round(id={self.id}, org={self.organization_id}, number={self.round_number})>"
