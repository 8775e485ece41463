"""
ExtraBeam Backend - Health Check Routes
=======================================

What:  Liveness/readiness probes.
How:   GET /health runs `SELECT 1` and reads the mail circuit breaker;
       GET /api/health is the lightweight probe used by the frontend.

Status levels:
    healthy    database reachable, mail circuit closed
    degraded   database reachable, mail circuit open (e-mails are failing)
    unhealthy  database unreachable
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from extrabeam import __version__
from extrabeam.database import engine
from extrabeam.schemas.system import ApiHealthResponse, HealthResponse
from extrabeam.services.circuit_breaker import CircuitBreaker
from extrabeam.services.mailer_service import mailer_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Database connectivity, mail circuit state and uptime.",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    mailer_state = mailer_service.circuit_breaker.state
    if mailer_state == CircuitBreaker.OPEN and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        mailer=mailer_state,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get(
    "/api/health",
    response_model=ApiHealthResponse,
    summary="API liveness probe",
)
async def api_health() -> ApiHealthResponse:
    return ApiHealthResponse(
        ok=True,
        service="extrabeam-api",
        method="GET",
        timestamp=datetime.now(timezone.utc),
    )
