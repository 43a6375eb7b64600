"""User and Agreement ORM models."""
from sqlalchemy import String, Boolean, Integer, Numeric, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from typing import Optional
from datetime import datetime
from decimal import Decimal
import uuid

from peer_rounds.database.base import Base
from peer_rounds.database.types import UTCDateTime, utcnow


class User(Base):
    """Contributor table; identified by a wallet address."""
    __tablename__ = "users"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Fields
    wallet_address: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    username: Mapped[str] = mapped_column(String(255))
    profile_picture: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    organization_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=True,
        index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow
    )

    # Relationships
    organization: Mapped[Optional["Organization"]] = relationship(
        "Organization",
        back_populates="contributors"
    )
    agreement: Mapped[Optional["Agreement"]] = relationship(
        "Agreement",
        back_populates="user",
        uselist=False
    )

    @validates("wallet_address")
    def _lower_wallet(self, key, value):
        return value.lower() if value else value

    def __repr__(self):
        return f"<User(id={self.id}, wallet={self.wallet_address}, org={self.organization_id})>"


class Agreement(Base):
    """Compensation agreement of a contributor."""
    __tablename__ = "agreements"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Fields
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), unique=True)
    role_name: Mapped[str] = mapped_column(String(255), default="")
    responsibilities: Mapped[str] = mapped_column(Text, default="")
    commitment: Mapped[int] = mapped_column(Integer)  # percent, 1-100
    market_rate: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    fiat_requested: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="agreement"
    )

    def __repr__(self):
        return f"<Agreement(user_id={self.user_id}, commitment={self.commitment})>"
