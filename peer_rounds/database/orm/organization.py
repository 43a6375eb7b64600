"""Organization ORM model."""
from sqlalchemy import String, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import uuid

from peer_rounds.database.base import Base
from peer_rounds.database.types import UTCDateTime, utcnow
from peer_rounds.models.enums import CompensationPeriod


class Organization(Base):
    """Organization table holding the compensation cycle configuration."""
    __tablename__ = "organizations"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Fields
    name: Mapped[str] = mapped_column(String(255), unique=True)
    par: Mapped[int] = mapped_column(Integer, default=20)
    # Stored as the raw period value; resolved with coerce_period() by the
    # scheduler so an unknown value fails one organization, not the load
    compensation_period: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True
    )
    compensation_start_day: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime,
        nullable=True
    )
    assessment_duration_in_days: Mapped[int] = mapped_column(Integer, default=7)
    assessment_start_delay_in_days: Mapped[int] = mapped_column(Integer, default=0)
    total_funds: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow
    )

    # Relationships
    contributors: Mapped[List["User"]] = relationship(
        "User",
        back_populates="organization"
    )
    rounds: Mapped[List["Round"]] = relationship(
        "Round",
        back_populates="organization",
        order_by="Round.round_number"
    )

    @validates("compensation_period")
    def _period_value(self, key, value):
        if isinstance(value, CompensationPeriod):
            return value.value
        return value

    @property
    def has_compensation_config(self) -> bool:
        """Both the cycle period and its anchor day are configured."""
        return self.compensation_period is not None and self.compensation_start_day is not None

    def __repr__(self):
        return f"<Organization(id={self.id}, name={self.name}, period={self.compensation_period})>"
