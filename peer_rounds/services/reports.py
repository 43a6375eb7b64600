"""Organization and user CSV reports."""
import csv
from pathlib import Path
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from peer_rounds.database.orm import Organization, User

ORG_REPORT_COLUMNS: Dict[str, str] = {
    "org_name": "Organization Name",
    "created_on": "Date Created",
    "contributor_count": "Contributors",
    "rounds_run": "Rounds Run",
    "completed_rounds_with_tx": "Completed Rounds with TX Hash",
    "agreement_count": "Agreements",
    "admin_email": "Admin Email",
    "admin_name": "Admin Name",
    "par": "PAR",
    "compensation_period": "Compensation Period",
    "compensation_start_day": "Compensation Start Day",
    "assessment_duration_in_days": "Assessment Duration (Days)",
    "assessment_start_delay_in_days": "Assessment Start Delay (Days)",
}

USER_REPORT_COLUMNS: Dict[str, str] = {
    "organization_name": "Organization",
    "email": "Email",
    "username": "Name",
    "registered_on": "Registered On",
    "role_name": "Role Name",
    "responsibilities": "Responsibilities",
    "market_rate": "Market Rate",
    "fiat_requested": "Fiat Requested",
    "commitment": "Commitment",
}

NO_ORGANIZATION = "No Organization"


def _iso(value) -> str:
    return value.isoformat() if value is not None else ""


def build_org_report(session: Session) -> List[dict]:
    """One row per organization with contributor, round and admin stats."""
    stmt = select(Organization).options(
        selectinload(Organization.contributors).selectinload(User.agreement),
        selectinload(Organization.rounds),
    ).order_by(Organization.name)

    rows = []
    for org in session.scalars(stmt):
        contributors = org.contributors or []
        admin = next((u for u in contributors if u.is_admin), None)
        rows.append({
            "org_name": org.name,
            "created_on": _iso(org.created_at),
            "contributor_count": len(contributors),
            "rounds_run": len(org.rounds),
            "completed_rounds_with_tx": sum(1 for r in org.rounds if r.is_completed and r.tx_hash),
            "agreement_count": sum(1 for u in contributors if u.agreement is not None),
            "admin_email": (admin.email or "") if admin else "",
            "admin_name": admin.username if admin else "",
            "par": org.par,
            "compensation_period": org.compensation_period or "",
            "compensation_start_day": _iso(org.compensation_start_day),
            "assessment_duration_in_days": org.assessment_duration_in_days,
            "assessment_start_delay_in_days": org.assessment_start_delay_in_days,
        })
    return rows


def build_user_report(session: Session) -> List[dict]:
    """One row per user with agreement fields, sorted by organization name."""
    stmt = select(User).options(selectinload(User.organization), selectinload(User.agreement))
    users = list(session.scalars(stmt))
    users.sort(key=lambda u: u.organization.name.lower() if u.organization else "")

    rows = []
    for user in users:
        agreement = user.agreement
        rows.append({
            "organization_name": user.organization.name if user.organization else NO_ORGANIZATION,
            "email": user.email or "",
            "username": user.username,
            "registered_on": _iso(user.created_at),
            "role_name": agreement.role_name if agreement else "",
            "responsibilities": agreement.responsibilities if agreement else "",
            "market_rate": agreement.market_rate if agreement else "",
            "fiat_requested": agreement.fiat_requested if agreement else "",
            "commitment": agreement.commitment if agreement else "",
        })
    return rows


def write_csv(path: Path, columns: Dict[str, str], rows: List[dict]) -> Path:
    """Write rows under the human-readable column titles."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(columns.values())
        for row in rows:
            writer.writerow([row[key] for key in columns])
    return path
