"""
Data Models and Schemas.

Core entities shared by the intake workflow, the collaborators it drives,
and the dashboard aggregation:

- SaleNotification: parsed storefront webhook body
- SaleRecord: the one persisted record per order
- AuditReport: report generator result (model output or fallback)
- DeliveryResult: email delivery outcome
"""

from src.models.schemas import (
    BUSINESS_URL_NOT_PROVIDED,
    DEFAULT_CURRENCY,
    AuditReport,
    DeliveryResult,
    SaleNotification,
    SaleRecord,
)

__all__ = [
    "BUSINESS_URL_NOT_PROVIDED",
    "DEFAULT_CURRENCY",
    "AuditReport",
    "DeliveryResult",
    "SaleNotification",
    "SaleRecord",
]
