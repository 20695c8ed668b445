"""
Sales Summary Aggregator.

Read-only dashboard view over the sale ledger: the latest N sales projected
with display defaults, plus revenue and delivery-rate metrics. Access is
gated by a pre-shared key that is checked before anything is read.
"""

import secrets
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union
from zoneinfo import ZoneInfo

import structlog
from pydantic import BaseModel, ConfigDict, Field

from src.core.exceptions import UnauthorizedError
from src.models.schemas import DEFAULT_CURRENCY
from src.services.sale_ledger import SaleLedger

logger = structlog.get_logger(__name__)

NOT_AVAILABLE = "N/A"
DISPLAY_TIMESTAMP_FORMAT = "%Y/%m/%d, %H:%M:%S"


# =============================================================================
# Models
# =============================================================================


class SaleView(BaseModel):
    """A sale as shown on the dashboard, with defaults for missing fields."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    order_id: str = Field(..., alias="orderId")
    customer_email: str = Field(NOT_AVAILABLE, alias="customerEmail")
    business_url: str = Field(NOT_AVAILABLE, alias="businessUrl")
    amount: float = 0
    currency: str = DEFAULT_CURRENCY
    audit_generated: bool = Field(False, alias="auditGenerated")
    email_delivered: bool = Field(False, alias="emailDelivered")
    timestamp: str = NOT_AVAILABLE


class SummaryMetrics(BaseModel):
    """Headline numbers for the dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    total_revenue: str = Field(..., alias="totalRevenue")
    total_sales: int = Field(..., alias="totalSales")
    # "66.7" when there are sales, the integer 0 when there are none.
    success_rate: Union[str, int] = Field(..., alias="successRate")
    successful_deliveries: int = Field(..., alias="successfulDeliveries")


class SalesSummary(BaseModel):
    """Dashboard payload."""

    model_config = ConfigDict(populate_by_name=True)

    summary: SummaryMetrics
    recent_sales: list[SaleView] = Field(default_factory=list, alias="recentSales")


# =============================================================================
# Helpers
# =============================================================================


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def format_timestamp(value: Any, tz: ZoneInfo) -> str:
    """Render a stored timestamp for display, or "N/A" if absent."""
    dt = _parse_timestamp(value)
    if dt is None:
        return NOT_AVAILABLE
    return dt.astimezone(tz).strftime(DISPLAY_TIMESTAMP_FORMAT)


def _to_decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


def project_sale(row: Mapping[str, Any], tz: ZoneInfo) -> SaleView:
    """Project a ledger row into its dashboard view."""
    row_id = str(row.get("id") or row.get("order_id") or "")
    amount = _to_decimal(row.get("amount"))
    return SaleView(
        id=row_id,
        order_id=row.get("order_id") or row_id,
        customer_email=row.get("customer_email") or NOT_AVAILABLE,
        business_url=row.get("business_url") or NOT_AVAILABLE,
        amount=float(amount),
        currency=row.get("currency") or DEFAULT_CURRENCY,
        audit_generated=bool(row.get("audit_generated")),
        email_delivered=bool(row.get("email_delivered")),
        timestamp=format_timestamp(row.get("timestamp"), tz),
    )


def compute_metrics(rows: list[Mapping[str, Any]]) -> SummaryMetrics:
    """Compute revenue, count and delivery rate over the given rows."""
    total_revenue = sum((_to_decimal(row.get("amount")) for row in rows), Decimal("0"))
    total_sales = len(rows)
    successful = sum(1 for row in rows if row.get("email_delivered") is True)

    success_rate: Union[str, int] = 0
    if total_sales > 0:
        success_rate = f"{successful / total_sales * 100:.1f}"

    return SummaryMetrics(
        total_revenue=f"{total_revenue:.2f}",
        total_sales=total_sales,
        success_rate=success_rate,
        successful_deliveries=successful,
    )


# =============================================================================
# Aggregator
# =============================================================================


class SalesSummaryAggregator:
    """Builds the dashboard summary from the sale ledger."""

    def __init__(
        self,
        ledger: SaleLedger,
        secret_key: Optional[str],
        *,
        display_timezone: str = "UTC",
        default_limit: int = 50,
    ):
        self.ledger = ledger
        self._secret_key = secret_key
        self.display_tz = ZoneInfo(display_timezone)
        self.default_limit = default_limit

    def authorize(self, key: Optional[str]) -> None:
        """
        Check a caller-supplied key against the configured secret.

        Raises:
            UnauthorizedError: If the key is missing or wrong, or no secret
                is configured.
        """
        if not self._secret_key:
            logger.error("dashboard_secret_not_configured")
            raise UnauthorizedError()
        if not key or not secrets.compare_digest(key.encode(), self._secret_key.encode()):
            logger.warning("dashboard_unauthorized")
            raise UnauthorizedError()

    def summarize(self, key: Optional[str], limit: Optional[int] = None) -> SalesSummary:
        """
        Authorize, then aggregate the most recent sales.

        Args:
            key: Pre-shared dashboard key from the caller.
            limit: Number of recent sales to include (default 50).

        Raises:
            UnauthorizedError: Before any read, if ``key`` is rejected.
            LedgerReadError: If the ledger cannot be read.
        """
        self.authorize(key)

        limit = limit or self.default_limit
        logger.info("dashboard_data_requested", limit=limit)
        rows = self.ledger.recent(limit)

        return SalesSummary(
            summary=compute_metrics(rows),
            recent_sales=[project_sale(row, self.display_tz) for row in rows],
        )
