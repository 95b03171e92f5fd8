"""Health, liveness and readiness probes for database and redis connectivity."""

from typing import Annotated

import redis
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.cache import check_redis_connected, get_redis
from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse, LivenessResponse

router = APIRouter()


def _check(db: Session, client: redis.Redis, response: Response) -> HealthResponse:
    db_ok = check_db_connected(db)
    redis_ok = check_redis_connected(client)
    healthy = db_ok and redis_ok
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="ok" if healthy else "degraded",
        environment=settings.APP_ENV,
        database="connected" if db_ok else "disconnected",
        redis="connected" if redis_ok else "disconnected",
    )


@router.get("", response_model=HealthResponse)
def get_health(
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    client: Annotated[redis.Redis, Depends(get_redis)],
) -> HealthResponse:
    """
    Return service health status with database and redis connectivity.
    Used by load balancers and monitoring; 503 when either dependency is down.
    """
    return _check(db, client, response)


@router.get("/live", response_model=LivenessResponse)
def live() -> LivenessResponse:
    """Liveness probe: the process is up."""
    return LivenessResponse()


@router.get("/ready", response_model=HealthResponse)
def ready(
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    client: Annotated[redis.Redis, Depends(get_redis)],
) -> HealthResponse:
    """Readiness probe: same checks as /health."""
    return _check(db, client, response)
