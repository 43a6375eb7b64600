"""Round repository: persistence port for organizations, rounds and assessments."""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Generator, Iterable, Optional

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from peer_rounds.database.orm import (
    Assessment,
    ContributorRoundCompensation,
    Organization,
    Round,
    User,
)
from peer_rounds.errors import DuplicateAssessmentError, PersistenceError

logger = logging.getLogger(__name__)


class RoundRepository:
    """SQLAlchemy-backed repository satisfying the round engine's query shapes."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _guard(self, action: str) -> Generator[None, None, None]:
        """Translate SQLAlchemy failures into PersistenceError."""
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error during {action}: {e}")
            raise PersistenceError(f"Failed to {action}") from e

    # ================================================================
    # Unit of work
    # ================================================================

    def save(self, *entities) -> None:
        """Add the given entities (if any) and commit."""
        with self._guard("save changes"):
            for entity in entities:
                self.session.add(entity)
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    # ================================================================
    # Organizations
    # ================================================================

    def get_organization(self, org_id: str) -> Optional[Organization]:
        with self._guard("load organization"):
            return self.session.get(Organization, org_id)

    def list_organizations_without_open_round(self) -> list[Organization]:
        """Configured organizations with no round where is_completed is false."""
        open_round = exists().where(
            Round.organization_id == Organization.id,
            Round.is_completed.is_(False),
        )
        stmt = (
            select(Organization)
            .where(
                Organization.compensation_period.is_not(None),
                Organization.compensation_start_day.is_not(None),
                ~open_round,
            )
            .order_by(Organization.created_at)
        )
        with self._guard("list organizations without open round"):
            return list(self.session.scalars(stmt))

    def has_open_round(self, org_id: str) -> bool:
        stmt = select(func.count(Round.id)).where(
            Round.organization_id == org_id,
            Round.is_completed.is_(False),
        )
        with self._guard("check open round"):
            return self.session.scalar(stmt) > 0

    def list_contributors(self, org_id: str) -> list[User]:
        stmt = (
            select(User)
            .where(User.organization_id == org_id)
            .options(selectinload(User.agreement))
            .order_by(User.username)
        )
        with self._guard("list contributors"):
            return list(self.session.scalars(stmt))

    # ================================================================
    # Users
    # ================================================================

    def get_user(self, user_id: str) -> Optional[User]:
        with self._guard("load user"):
            return self.session.get(User, user_id)

    def get_user_by_wallet(self, wallet_address: str) -> Optional[User]:
        if not wallet_address:
            return None
        stmt = select(User).where(User.wallet_address == wallet_address.lower())
        with self._guard("load user by wallet"):
            return self.session.scalars(stmt).first()

    # ================================================================
    # Rounds
    # ================================================================

    def count_rounds(self, org_id: str) -> int:
        stmt = select(func.count(Round.id)).where(Round.organization_id == org_id)
        with self._guard("count rounds"):
            return self.session.scalar(stmt) or 0

    def get_round(self, round_id: str) -> Optional[Round]:
        with self._guard("load round"):
            return self.session.get(Round, round_id)

    def list_rounds(self, org_id: str) -> list[Round]:
        stmt = (
            select(Round)
            .where(Round.organization_id == org_id)
            .order_by(Round.round_number.desc())
        )
        with self._guard("list rounds"):
            return list(self.session.scalars(stmt))

    def get_active_round(self, org_id: str, now: datetime) -> Optional[Round]:
        """Round whose window contains ``now`` and is not completed."""
        stmt = (
            select(Round)
            .where(
                Round.organization_id == org_id,
                Round.is_completed.is_(False),
                Round.start_date <= now,
                Round.end_date >= now,
            )
            .order_by(Round.start_date.desc())
        )
        with self._guard("load active round"):
            return self.session.scalars(stmt).first()

    def get_latest_open_round(self, org_id: str) -> Optional[Round]:
        """Most recent round that has not been completed (started or not)."""
        stmt = (
            select(Round)
            .where(Round.organization_id == org_id, Round.is_completed.is_(False))
            .order_by(Round.round_number.desc())
        )
        with self._guard("load open round"):
            return self.session.scalars(stmt).first()

    def list_rounds_due_for_completion(self, now: datetime) -> list[Round]:
        """Uncompleted rounds whose end date has passed, with assessments,
        assessed-user agreements and organization eagerly loaded."""
        stmt = (
            select(Round)
            .where(Round.is_completed.is_(False), Round.end_date <= now)
            .options(
                selectinload(Round.assessments)
                .selectinload(Assessment.assessed)
                .selectinload(User.agreement),
                selectinload(Round.organization),
            )
            .order_by(Round.end_date)
            .execution_options(populate_existing=True)
        )
        with self._guard("list rounds due for completion"):
            return list(self.session.scalars(stmt))

    # ================================================================
    # Assessments
    # ================================================================

    def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        with self._guard("load assessment"):
            return self.session.get(Assessment, assessment_id)

    def find_assessment(self, round_id: str, assessor_id: str, assessed_id: str) -> Optional[Assessment]:
        stmt = select(Assessment).where(
            Assessment.round_id == round_id,
            Assessment.assessor_id == assessor_id,
            Assessment.assessed_id == assessed_id,
        )
        with self._guard("find assessment"):
            return self.session.scalars(stmt).first()

    def list_assessments(
        self,
        round_id: str,
        assessor_id: Optional[str] = None,
        assessed_id: Optional[str] = None,
    ) -> list[Assessment]:
        stmt = select(Assessment).where(Assessment.round_id == round_id)
        if assessor_id:
            stmt = stmt.where(Assessment.assessor_id == assessor_id)
        if assessed_id:
            stmt = stmt.where(Assessment.assessed_id == assessed_id)
        stmt = stmt.order_by(Assessment.created_at)
        with self._guard("list assessments"):
            return list(self.session.scalars(stmt))

    def add_assessment(self, assessment: Assessment) -> Assessment:
        """Insert an assessment; the storage unique constraint rejects duplicates."""
        try:
            self.session.add(assessment)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"Duplicate assessment rejected by storage: {e}")
            raise DuplicateAssessmentError() from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error during add assessment: {e}")
            raise PersistenceError("Failed to add assessment") from e
        return assessment

    # ================================================================
    # Compensations
    # ================================================================

    def list_compensations(self, round_id: str) -> list[ContributorRoundCompensation]:
        stmt = select(ContributorRoundCompensation).where(
            ContributorRoundCompensation.round_id == round_id
        )
        with self._guard("list compensations"):
            return list(self.session.scalars(stmt))

    def add_compensations(self, rows: Iterable[ContributorRoundCompensation]) -> None:
        """Stage compensation rows; committed with the round by save()."""
        self.session.add_all(list(rows))
