"""
Prometheus metrics for sale audit pipeline observability.

Provides standardized metrics for the intake workflow, its collaborators,
and the API surface.

Usage:
    from src.monitoring.metrics import track_ledger_operation

    with track_ledger_operation("upsert"):
        client.table("sales").upsert(row).execute()

    # Or manually
    SALES_PROCESSED.labels(outcome="delivered").inc()
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)
from starlette.applications import Starlette
from starlette.responses import Response
from starlette.routing import Route


# =============================================================================
# Metric Definitions
# =============================================================================

SALES_PROCESSED = Counter(
    "saleaudit_sales_processed_total",
    "Sale notifications that completed the intake workflow",
    ["outcome"],
)

REPORT_GENERATIONS = Counter(
    "saleaudit_report_generations_total",
    "Audit report generation attempts",
    ["mode"],
)

REPORT_GENERATION_DURATION = Histogram(
    "saleaudit_report_generation_duration_seconds",
    "Duration of the LLM report generation call",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
)

EMAIL_DELIVERIES = Counter(
    "saleaudit_email_deliveries_total",
    "Audit email delivery attempts",
    ["status"],
)

LEDGER_OPERATIONS = Counter(
    "saleaudit_ledger_operations_total",
    "Sale ledger operations",
    ["operation", "status"],
)

LEDGER_LATENCY = Histogram(
    "saleaudit_ledger_latency_seconds",
    "Latency of sale ledger operations",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

API_REQUEST_DURATION = Histogram(
    "saleaudit_api_request_duration_seconds",
    "Duration of API requests in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

API_REQUEST_TOTAL = Counter(
    "saleaudit_api_request_total",
    "Total number of API requests",
    ["method", "endpoint", "status_code"],
)


# =============================================================================
# Tracking Context Managers
# =============================================================================


@contextmanager
def track_api_request(
    method: str,
    endpoint: str,
) -> Generator[dict, None, None]:
    """
    Context manager to track API request duration and status.

    Usage:
        with track_api_request("POST", "/api/v1/process-sale") as ctx:
            response = await call_endpoint()
            ctx["status_code"] = response.status_code
    """
    start_time = time.perf_counter()
    context = {"status_code": "500"}  # Default to error
    try:
        yield context
    finally:
        duration = time.perf_counter() - start_time
        status_code = str(context.get("status_code", "500"))
        API_REQUEST_DURATION.labels(
            method=method,
            endpoint=endpoint,
            status_code=status_code,
        ).observe(duration)
        API_REQUEST_TOTAL.labels(
            method=method,
            endpoint=endpoint,
            status_code=status_code,
        ).inc()


@contextmanager
def track_ledger_operation(operation: str) -> Generator[None, None, None]:
    """
    Context manager to track sale ledger operations.

    Usage:
        with track_ledger_operation("select_recent"):
            rows = client.table("sales").select("*").execute()
    """
    start_time = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        duration = time.perf_counter() - start_time
        LEDGER_OPERATIONS.labels(operation=operation, status=status).inc()
        LEDGER_LATENCY.labels(operation=operation).observe(duration)


def record_report_generation(is_fallback: bool, duration: float) -> None:
    """Record one report generation attempt and its duration."""
    REPORT_GENERATIONS.labels(mode="fallback" if is_fallback else "model").inc()
    REPORT_GENERATION_DURATION.observe(duration)


def record_email_delivery(delivered: bool) -> None:
    """Record one email delivery attempt."""
    EMAIL_DELIVERIES.labels(status="delivered" if delivered else "failed").inc()


def record_sale_processed(delivered: bool) -> None:
    """Record a sale that made it through the whole workflow."""
    SALES_PROCESSED.labels(outcome="delivered" if delivered else "undelivered").inc()


# =============================================================================
# Metrics Endpoint
# =============================================================================


async def metrics_endpoint(request) -> Response:
    """Prometheus metrics endpoint handler."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


def get_metrics_app() -> Starlette:
    """
    Get a Starlette app for serving metrics.

    Mount this at /metrics in your main app:
        from src.monitoring.metrics import get_metrics_app
        app.mount("/metrics", get_metrics_app())
    """
    return Starlette(
        routes=[
            Route("/", metrics_endpoint),
        ]
    )
