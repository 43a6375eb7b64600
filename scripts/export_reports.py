#!/usr/bin/env python
"""
Export organization and user reports to CSV.

Writes reports/org-export-report.csv (contributors, rounds run, completed
rounds with a tx hash, agreements, admin contact, cycle configuration) and
reports/user-export-report.csv (users sorted by organization, with their
agreement fields).

Usage:
    python scripts/export_reports.py [--out-dir reports]
"""

import argparse
import sys
from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_project_root))

from dotenv import load_dotenv
load_dotenv(_project_root / ".env")

from sqlalchemy.exc import SQLAlchemyError

from peer_rounds.database.connection import SessionLocal
from peer_rounds.services.reports import (
    ORG_REPORT_COLUMNS,
    USER_REPORT_COLUMNS,
    build_org_report,
    build_user_report,
    write_csv,
)


def main():
    parser = argparse.ArgumentParser(description="Export organization and user CSV reports")
    parser.add_argument("--out-dir", default=str(_project_root / "reports"), help="Output directory")
    args = parser.parse_args()
    out_dir = Path(args.out_dir)

    session = SessionLocal()
    try:
        org_rows = build_org_report(session)
        user_rows = build_user_report(session)
    except SQLAlchemyError as e:
        print(f"Database error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        session.close()

    org_path = write_csv(out_dir / "org-export-report.csv", ORG_REPORT_COLUMNS, org_rows)
    print(f"Wrote {org_path} ({len(org_rows)} organizations)")
    user_path = write_csv(out_dir / "user-export-report.csv", USER_REPORT_COLUMNS, user_rows)
    print(f"Wrote {user_path} ({len(user_rows)} users)")


if __name__ == "__main__":
    main()
