"""
Round lifecycle DAGs: trigger round creation and round completion via the
Peer Rounds API on their own cron schedules.
API base URL: http://api:8000 (Docker network).

Each DAG runs with max_active_runs=1 so at most one job of a kind is active.
"""
from datetime import datetime
import os

import requests
from airflow import DAG
from airflow.operators.python import PythonOperator

API_BASE = os.environ.get("PEER_ROUNDS_API", "http://api:8000")
REQUEST_TIMEOUT = 300

CREATE_ROUNDS_SCHEDULE = os.environ.get("CREATE_ROUNDS_SCHEDULE", "0 * * * *")
COMPLETE_ROUNDS_SCHEDULE = os.environ.get("COMPLETE_ROUNDS_SCHEDULE", "30 * * * *")


def _api_post(path: str) -> dict:
    r = requests.post(f"{API_BASE}{path}", timeout=REQUEST_TIMEOUT)
    r.raise_for_status()
    return r.json()


def trigger_create_rounds(**context):
    summary = _api_post("/api/v1/jobs/create-rounds")
    print(
        f"create-rounds: created={len(summary.get('created', []))} "
        f"skipped={len(summary.get('skipped', []))} failed={summary.get('failed', [])}"
    )


def trigger_complete_rounds(**context):
    summary = _api_post("/api/v1/jobs/complete-rounds")
    print(
        f"complete-rounds: completed={len(summary.get('completed', []))} "
        f"compensations={summary.get('compensations_created', 0)} failed={summary.get('failed', [])}"
    )


with DAG(
    dag_id="create_rounds_dag",
    start_date=datetime(2025, 1, 1),
    schedule=CREATE_ROUNDS_SCHEDULE,
    catchup=False,
    max_active_runs=1,
    tags=["peer-rounds"],
) as create_dag:
    PythonOperator(
        task_id="create_rounds",
        python_callable=trigger_create_rounds,
    )


with DAG(
    dag_id="complete_rounds_dag",
    start_date=datetime(2025, 1, 1),
    schedule=COMPLETE_ROUNDS_SCHEDULE,
    catchup=False,
    max_active_runs=1,
    tags=["peer-rounds"],
) as complete_dag:
    PythonOperator(
        task_id="complete_rounds",
        python_callable=trigger_complete_rounds,
    )
