"""
Sale Intake Workflow.

Drives one storefront purchase notification through the pipeline:

    validate method -> parse -> generate report -> deliver email -> persist -> respond

Each step runs strictly after the previous one. Generation, delivery and
persistence absorb their own failures, so once parsing succeeds the caller
always gets a result; the only exceptions that leave ``process`` are
``MethodNotAllowedError``, ``IntakeParseError`` and programming defects.
"""

import re
import time
from decimal import Decimal
from typing import Callable, Mapping, Optional, Union
from urllib.parse import parse_qsl

import structlog
from pydantic import BaseModel, Field

from src.core.exceptions import IntakeParseError, MethodNotAllowedError
from src.delivery.email_service import EmailService
from src.models.schemas import (
    BUSINESS_URL_NOT_PROVIDED,
    DEFAULT_CURRENCY,
    SaleNotification,
    SaleRecord,
)
from src.monitoring.metrics import record_sale_processed
from src.services.report_generator import AuditReportGenerator
from src.services.sale_ledger import SaleLedger

logger = structlog.get_logger(__name__)

ACCEPTED_METHOD = "POST"
WORKFLOW_COMPLETE_MESSAGE = "Audit workflow complete."

# Storefront form keys, in order of preference for the business URL.
WEBSITE_FIELD_KEYS = ("custom_fields[website]", "website")

_URL_PREFIX = re.compile(r"^(https?://)?(www\.)?")
_LEADING_INTEGER = re.compile(r"^[+-]?\d+")
_CENTS = Decimal("0.01")


# =============================================================================
# Parsing
# =============================================================================


def current_epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def normalize_business_url(raw_url: Optional[str]) -> str:
    """Strip an optional http(s):// scheme and then an optional www. prefix.

    >>> normalize_business_url("https://www.example.com")
    'example.com'
    """
    if not raw_url:
        return BUSINESS_URL_NOT_PROVIDED
    return _URL_PREFIX.sub("", raw_url, count=1)


def parse_minor_units(price: Optional[str]) -> Decimal:
    """Convert an integer price in minor units (cents) to a 2dp amount.

    Only the leading integer is read, so "1999" and "1999.0" both give
    19.99. An absent or empty price is 0.00.

    Raises:
        IntakeParseError: If the price has no leading integer.
    """
    if price is None or not price.strip():
        return Decimal("0.00")

    match = _LEADING_INTEGER.match(price.strip())
    if match is None:
        raise IntakeParseError(f"Invalid price: {price!r}", {"price": price})

    return (Decimal(int(match.group())) / 100).quantize(_CENTS)


def decode_form_body(body: Union[bytes, str, None]) -> dict[str, str]:
    """Decode a form-encoded body into a flat mapping; last value wins."""
    if body is None:
        return {}
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise IntakeParseError("Notification body is not valid UTF-8") from e
    return dict(parse_qsl(body, keep_blank_values=True))


def parse_notification(
    fields: Mapping[str, str],
    *,
    now_millis: Callable[[], int] = current_epoch_millis,
    default_currency: str = DEFAULT_CURRENCY,
) -> SaleNotification:
    """Build a SaleNotification from decoded storefront form fields."""
    order_id = fields.get("sale_id") or f"ORD-{now_millis()}"

    raw_url = next((fields[key] for key in WEBSITE_FIELD_KEYS if fields.get(key)), None)

    return SaleNotification(
        order_id=order_id,
        email=fields.get("email") or None,
        business_url=normalize_business_url(raw_url),
        amount=parse_minor_units(fields.get("price")),
        currency=fields.get("currency") or default_currency,
    )


# =============================================================================
# Workflow
# =============================================================================


class SaleProcessingResult(BaseModel):
    """Response body for a notification that completed the pipeline."""

    success: bool = Field(..., description="Whether the audit email was delivered")
    message: str = WORKFLOW_COMPLETE_MESSAGE
    order_id: str


class SaleWorkflow:
    """Sequences report generation, delivery and persistence for one sale."""

    def __init__(
        self,
        generator: AuditReportGenerator,
        email_service: EmailService,
        ledger: SaleLedger,
        *,
        default_currency: str = DEFAULT_CURRENCY,
        now_millis: Callable[[], int] = current_epoch_millis,
    ):
        self.generator = generator
        self.email_service = email_service
        self.ledger = ledger
        self.default_currency = default_currency
        self._now_millis = now_millis

    async def process(
        self, method: str, body: Union[bytes, str, None],
    ) -> SaleProcessingResult:
        """
        Process one sale notification.

        Args:
            method: HTTP method of the inbound request.
            body: Raw form-encoded request body.

        Returns:
            SaleProcessingResult whose ``success`` is the delivery outcome.

        Raises:
            MethodNotAllowedError: For anything but POST, before any side effect.
            IntakeParseError: If the body cannot be parsed, before any side effect.
        """
        if method.upper() != ACCEPTED_METHOD:
            logger.warning("sale_intake_method_rejected", method=method)
            raise MethodNotAllowedError(method)

        notification = parse_notification(
            decode_form_body(body),
            now_millis=self._now_millis,
            default_currency=self.default_currency,
        )
        log = logger.bind(order_id=notification.order_id)
        log.info(
            "sale_processing_started",
            business_url=notification.business_url,
            amount=str(notification.amount),
            currency=notification.currency,
        )

        report = await self.generator.generate(notification.business_url)

        delivery = await self.email_service.send_audit_email(
            to_email=notification.email,
            business_url=notification.business_url,
            report_content=report.content,
            order_id=notification.order_id,
        )

        persisted = self.ledger.record(
            SaleRecord(
                order_id=notification.order_id,
                customer_email=notification.email,
                business_url=notification.business_url,
                amount=notification.amount,
                currency=notification.currency,
                audit_generated=True,
                email_delivered=delivery.delivered,
            )
        )

        record_sale_processed(delivery.delivered)
        log.info(
            "sale_processing_finished",
            report_fallback=report.is_fallback,
            email_delivered=delivery.delivered,
            persisted=persisted,
        )

        return SaleProcessingResult(
            success=delivery.delivered,
            order_id=notification.order_id,
        )
