"""Liveness endpoint reporting database and cache reachability."""
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from peer_rounds.config import get_settings
from peer_rounds.database.connection import get_db
from peer_rounds.models import HealthResponse
from peer_rounds.services import get_redis_cache

router = APIRouter(tags=["Health"])

HEALTHY = "healthy"


def _probe(check: Callable[[], Tuple[bool, Optional[str]]]) -> str:
    try:
        ok, error = check()
    except Exception as e:
        ok, error = False, str(e)
    return HEALTHY if ok else f"unhealthy: {error}"


def _database_check(db: Session) -> Callable[[], Tuple[bool, Optional[str]]]:
    def check():
        db.execute(text("SELECT 1"))
        return True, None
    return check


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Report whether the database and the Redis cache are reachable."
)
def health_check(db: Session = Depends(get_db)):
    """200 when every dependency answers, 503 (degraded) otherwise.

    The cache is best-effort for reads, but a dead cache still marks the
    service degraded so operators notice.
    """
    dependencies = {
        "database": _probe(_database_check(db)),
        "redis": _probe(lambda: get_redis_cache().health_check()),
    }
    all_healthy = all(state == HEALTHY for state in dependencies.values())

    response = HealthResponse(
        status=HEALTHY if all_healthy else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=get_settings().app_version,
        dependencies=dependencies,
    )
    if not all_healthy:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=response.model_dump())
    return response
