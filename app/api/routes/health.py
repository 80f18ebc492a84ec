"""
Health Check Endpoints

Provides a plain-text liveness check and a readiness probe that verifies
the patient store is reachable.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncEngine

from app.api.dependencies import get_engine
from app.infra.database import check_db_health

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


class ReadyResponse(BaseModel):
    """Readiness check response with dependency status."""
    status: str
    timestamp: datetime
    checks: dict[str, str]


@router.get(
    "",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the application is running. Does not check dependencies.",
)
async def health() -> str:
    """
    Basic health check.

    Always returns 200 if the application is running.
    Use /health/ready for dependency checks.
    """
    return "Server is healthy!"


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Checks database connectivity. Returns 503 if it is unavailable.",
    responses={
        200: {"description": "All dependencies are ready"},
        503: {"description": "The patient store is unavailable"},
    },
)
async def ready(engine: AsyncEngine = Depends(get_engine)) -> ReadyResponse:
    """
    Readiness probe for load balancers.

    Returns 503 if the patient store cannot be reached.
    """
    db_ok = await check_db_health(engine)
    if not db_ok:
        logger.warning("Readiness check: Database unhealthy")

    response = ReadyResponse(
        status="ready" if db_ok else "not_ready",
        timestamp=datetime.now(timezone.utc),
        checks={"database": "ok" if db_ok else "failed"},
    )

    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(mode="json"),
        )

    return response
