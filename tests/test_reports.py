"""Tests for the organization and user CSV reports."""
import csv
from datetime import timedelta

from peer_rounds.services.reports import (
    NO_ORGANIZATION,
    ORG_REPORT_COLUMNS,
    USER_REPORT_COLUMNS,
    build_org_report,
    build_user_report,
    write_csv,
)


def test_org_report(db_session, make_org, make_user, make_round, now):
    org = make_org(name="Acme")
    make_user(org, username="alice", is_admin=True)
    make_user(org, username="bob", agreement=None)
    make_round(org, now - timedelta(days=20), now - timedelta(days=13), completed=True, tx_hash="0x1")
    make_round(org, now - timedelta(days=8), now - timedelta(days=1), completed=True)
    make_round(org, now - timedelta(days=1), now + timedelta(days=5))

    [row] = build_org_report(db_session)

    assert row["org_name"] == "Acme"
    assert row["contributor_count"] == 2
    assert row["rounds_run"] == 3
    assert row["completed_rounds_with_tx"] == 1
    assert row["agreement_count"] == 1
    assert row["admin_email"] == "alice@example.com"
    assert row["admin_name"] == "alice"
    assert row["compensation_period"] == "weekly"


def test_user_report_sorted_by_org(db_session, make_org, make_user):
    zeta = make_org(name="zeta")
    alpha = make_org(name="Alpha")
    make_user(zeta, username="zed")
    make_user(alpha, username="al", agreement=None)
    make_user(None, username="loner")

    rows = build_user_report(db_session)

    assert [r["organization_name"] for r in rows] == [NO_ORGANIZATION, "Alpha", "zeta"]
    al = rows[1]
    assert al["role_name"] == ""
    assert rows[2]["role_name"] == "Engineer"
    assert rows[2]["commitment"] == 100


def test_write_csv(tmp_path, db_session, make_org, make_user):
    make_user(make_org(name="Acme"), username="alice")
    path = write_csv(tmp_path / "out" / "users.csv", USER_REPORT_COLUMNS, build_user_report(db_session))

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))

    assert rows[0] == list(USER_REPORT_COLUMNS.values())
    assert rows[1][:3] == ["Acme", "alice@example.com", "alice"]


def test_write_empty_org_report(tmp_path):
    path = write_csv(tmp_path / "orgs.csv", ORG_REPORT_COLUMNS, [])
    assert path.read_text(encoding="utf-8").strip() == ",".join(ORG_REPORT_COLUMNS.values())
