"""Health check endpoint with database connectivity check."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter, Request

from tasktrack.schemas.health import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def get_health(request: Request) -> HealthResponse:
    """
    Return service health status, uptime and database connectivity.
    Unauthenticated and exempt from rate limiting; used by load balancers and monitoring.
    """
    state = request.app.state
    db_status = "connected" if state.db.is_connected() else "disconnected"
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(UTC),
        uptime=round(time.monotonic() - state.started_at, 3),
        environment=state.settings.APP_ENV,
        version=state.settings.APP_VERSION,
        database=db_status,
    )
