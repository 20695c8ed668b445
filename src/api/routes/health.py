"""Health check endpoints for the sale audit API.

Provides system health status including the sale ledger connection and
whether the report and email collaborators are configured.
"""

from datetime import datetime, timezone
import time
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from src import __version__
from src.api.dependencies import get_supabase
from src.api.models import HealthCheckResponse, HealthStatus
from src.config.settings import get_settings, Settings

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Health"])

# Track server start time for uptime calculation
_server_start_time: Optional[float] = None


def set_server_start_time() -> None:
    """Set the server start time. Called on application startup."""
    global _server_start_time
    _server_start_time = time.time()


def get_uptime_seconds() -> Optional[float]:
    """Get server uptime in seconds."""
    if _server_start_time is None:
        return None
    return time.time() - _server_start_time


async def check_supabase_health(client: Client, table: str) -> HealthStatus:
    """Check Supabase connectivity with a one-row read of the sales table."""
    start_time = time.time()
    try:
        client.table(table).select("order_id").limit(1).execute()
        latency = (time.time() - start_time) * 1000

        return HealthStatus(
            status="healthy",
            latency_ms=round(latency, 2),
            message="Connected to Supabase",
        )
    except Exception as e:
        latency = (time.time() - start_time) * 1000
        logger.error("supabase_health_check_failed", error=str(e))
        return HealthStatus(
            status="unhealthy",
            latency_ms=round(latency, 2),
            message=f"Supabase connection failed: {str(e)[:100]}",
        )


def check_llm_config(settings: Settings) -> HealthStatus:
    """Reports are still produced without a key, but only as fallbacks."""
    if settings.groq_api_key:
        return HealthStatus(status="healthy", message=f"Model {settings.llm_model}")
    return HealthStatus(
        status="degraded",
        message="GROQ_API_KEY not set; fallback reports only",
    )


def check_email_config(settings: Settings) -> HealthStatus:
    if settings.sendgrid_api_key:
        return HealthStatus(status="healthy", message=f"Sending as {settings.from_email}")
    return HealthStatus(
        status="degraded",
        message="SENDGRID_API_KEY not set; every delivery will fail",
    )


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health Check",
    description="Check the health status of the API and its dependencies.",
)
async def health_check(
    settings: Settings = Depends(get_settings),
    supabase: Client = Depends(get_supabase),
) -> HealthCheckResponse:
    """
    Perform a health check of all system components.

    Returns the status of:
    - Supabase (sale ledger)
    - LLM (audit report generation)
    - SendGrid (audit email delivery)
    """
    services = {
        "supabase": await check_supabase_health(supabase, settings.sales_table),
        "llm": check_llm_config(settings),
        "email": check_email_config(settings),
    }

    # Determine overall status
    statuses = [s.status for s in services.values()]
    if all(s == "healthy" for s in statuses):
        overall_status = "healthy"
    elif any(s == "unhealthy" for s in statuses):
        overall_status = "unhealthy"
    else:
        overall_status = "degraded"

    return HealthCheckResponse(
        status=overall_status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        services=services,
        uptime_seconds=get_uptime_seconds(),
    )


@router.get(
    "/health/live",
    summary="Liveness Check",
    description="Simple liveness check for container orchestration.",
)
async def liveness() -> dict:
    """
    Simple liveness probe.

    Returns 200 if the service is alive.
    """
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Check if the service is ready to accept traffic.",
)
async def readiness(
    settings: Settings = Depends(get_settings),
    supabase: Client = Depends(get_supabase),
) -> dict:
    """
    Readiness probe.

    Returns 200 only if the sale ledger is reachable.
    """
    supabase_status = await check_supabase_health(supabase, settings.sales_table)

    if supabase_status.status == "unhealthy":
        raise HTTPException(
            status_code=503,
            detail="Service not ready: database unavailable",
        )

    return {"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}
