"""
Monitoring and observability for the sale audit pipeline.

Provides Prometheus metrics for the intake workflow, its collaborators
and the API surface.

Usage:
    from src.monitoring import record_sale_processed, track_ledger_operation

    with track_ledger_operation("upsert"):
        ...

    record_sale_processed(delivered=True)
"""

from src.monitoring.metrics import (
    API_REQUEST_DURATION,
    EMAIL_DELIVERIES,
    LEDGER_OPERATIONS,
    REPORT_GENERATIONS,
    SALES_PROCESSED,
    track_api_request,
    track_ledger_operation,
    record_report_generation,
    record_email_delivery,
    record_sale_processed,
    get_metrics_app,
)

__all__ = [
    # Prometheus metrics
    "API_REQUEST_DURATION",
    "EMAIL_DELIVERIES",
    "LEDGER_OPERATIONS",
    "REPORT_GENERATIONS",
    "SALES_PROCESSED",
    # Context managers
    "track_api_request",
    "track_ledger_operation",
    # Helper functions
    "record_report_generation",
    "record_email_delivery",
    "record_sale_processed",
    "get_metrics_app",
]
