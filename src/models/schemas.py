"""Pydantic models for the sale audit pipeline's core entities."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CURRENCY = "ZAR"
BUSINESS_URL_NOT_PROVIDED = "Not provided"


# =============================================================================
# Base Models
# =============================================================================


class BaseEntity(BaseModel):
    """Base model with common fields and conversion methods."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    def to_row(self) -> dict[str, Any]:
        """Convert model to a JSON-safe database row.

        PostgREST accepts neither Decimal nor datetime objects, so they are
        converted here. None values are kept so an upsert overwrites them.
        """
        result = {}
        for key, value in self.model_dump().items():
            if isinstance(value, Decimal):
                result[key] = float(value)
            elif isinstance(value, datetime):
                result[key] = value.isoformat()
            else:
                result[key] = value
        return result


# =============================================================================
# Intake
# =============================================================================


class SaleNotification(BaseEntity):
    """A parsed purchase notification from the storefront webhook."""

    order_id: str = Field(..., description="Storefront sale id or generated ORD-<millis>")
    email: Optional[str] = Field(None, description="Customer email address")
    business_url: str = Field(
        BUSINESS_URL_NOT_PROVIDED,
        description="Customer business URL with scheme and www. removed",
    )
    amount: Decimal = Field(
        Decimal("0.00"),
        description="Price in major units, two decimal places",
    )
    currency: str = Field(DEFAULT_CURRENCY, description="ISO currency code")


class SaleRecord(BaseEntity):
    """One persisted record per processed order.

    ``timestamp`` is assigned by the database on write and is therefore
    only populated on records read back from the ledger.
    """

    order_id: str
    customer_email: Optional[str] = None
    business_url: str = BUSINESS_URL_NOT_PROVIDED
    amount: Decimal = Decimal("0.00")
    currency: str = DEFAULT_CURRENCY
    audit_generated: bool = False
    email_delivered: bool = False
    timestamp: Optional[datetime] = None

    def to_row(self) -> dict[str, Any]:
        row = super().to_row()
        # Server-assigned; never sent by the client.
        row.pop("timestamp", None)
        return row


# =============================================================================
# Collaborator Results
# =============================================================================


class AuditReport(BaseModel):
    """Result of a report generation attempt."""

    business_url: str
    content: str
    is_fallback: bool = Field(
        False, description="True when the placeholder report was substituted"
    )


class DeliveryResult(BaseModel):
    """Outcome of an audit email delivery attempt."""

    delivered: bool
    message_id: Optional[str] = Field(None, description="Provider message id")
    error: Optional[str] = Field(None, description="Provider or transport error")
