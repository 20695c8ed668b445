"""
SendGrid email delivery for audit reports.

Sends the generated audit to the customer as an HTML + plain text email.
Every failure (provider rejection, transport fault, missing recipient or
credentials) is caught here and reported through ``DeliveryResult``; nothing
raises past ``send_audit_email``.
"""

import asyncio
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup
from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Category, CustomArg, From, Mail, ReplyTo, To

from src.config.settings import get_settings
from src.core.exceptions import DeliveryError
from src.models.schemas import DeliveryResult
from src.monitoring.metrics import record_email_delivery

logger = structlog.get_logger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

AUDIT_TAG_NAME = "audit"

_TAG_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def sanitize_tag_value(value: str) -> str:
    """Replace every character outside [A-Za-z0-9_-] with an underscore."""
    return _TAG_UNSAFE_CHARS.sub("_", value)


def report_to_html(report_content: str) -> Markup:
    """Escape report text and turn newlines into <br> tags."""
    return Markup("<br>").join(report_content.split("\n"))


class EmailService:
    """Delivers audit reports through SendGrid.

    Example:
        service = EmailService()
        result = await service.send_audit_email(
            to_email="owner@acme.io",
            business_url="acme.io",
            report_content="...",
            order_id="ORD-1",
        )
        if not result.delivered:
            print(result.error)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        reply_to_email: Optional[str] = None,
        client: Optional[SendGridAPIClient] = None,
    ):
        settings = get_settings()
        self._api_key = api_key or (
            settings.sendgrid_api_key.get_secret_value()
            if settings.sendgrid_api_key
            else None
        )
        self.from_email = from_email or settings.from_email
        self.from_name = from_name or settings.from_name
        self.reply_to_email = reply_to_email or settings.reply_to_email
        self._client = client

        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(enabled_extensions=["html"]),
        )
        self._audit_tpl = self._env.get_template("audit_email.html")

    def _ensure_client(self) -> SendGridAPIClient:
        if self._client is None:
            if not self._api_key:
                raise DeliveryError("SendGrid API key not configured")
            self._client = SendGridAPIClient(self._api_key)
        return self._client

    # -----------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------

    def build_subject(self, business_url: str) -> str:
        return (
            f"Your AI-Powered Business Automation Audit for {business_url} "
            f"| {self.from_name}"
        )

    def render_audit_email(
        self, business_url: str, report_content: str, order_id: str,
    ) -> tuple[str, str, str]:
        """Render the audit email.

        Returns:
            Tuple of (subject, html_body, plain_text_body).
        """
        subject = self.build_subject(business_url)
        html = self._audit_tpl.render(
            subject=subject,
            business_url=business_url,
            report_html=report_to_html(report_content),
            order_id=order_id,
            brand=self.from_name,
            year=datetime.now().year,
        )
        plain = f"AI Audit for {business_url}\n\n{report_content}"
        return subject, html, plain

    def build_message(
        self,
        to_email: str,
        business_url: str,
        report_content: str,
        order_id: str,
    ) -> Mail:
        """Build the SendGrid message, tagged with the sanitized order id."""
        subject, html, plain = self.render_audit_email(
            business_url, report_content, order_id,
        )
        message = Mail(
            from_email=From(self.from_email, self.from_name),
            to_emails=To(to_email),
            subject=subject,
            html_content=html,
            plain_text_content=plain,
        )
        message.custom_arg = CustomArg(AUDIT_TAG_NAME, sanitize_tag_value(order_id))
        message.category = Category(AUDIT_TAG_NAME)
        if self.reply_to_email:
            message.reply_to = ReplyTo(self.reply_to_email)
        return message

    # -----------------------------------------------------------------
    # Delivery
    # -----------------------------------------------------------------

    async def _send(self, message: Mail) -> Optional[str]:
        """Send one message and return the provider message id.

        Raises:
            DeliveryError: When SendGrid rejects the message or is unreachable.
        """
        client = self._ensure_client()
        try:
            response = await asyncio.to_thread(client.send, message)
        except HTTPError as e:
            raise DeliveryError(
                f"SendGrid error {e.status_code}: {e.body!r}",
                status_code=e.status_code,
            ) from e
        except OSError as e:
            raise DeliveryError(f"SendGrid request failed: {e}") from e

        if response.status_code >= 300:
            raise DeliveryError(
                f"SendGrid error {response.status_code}",
                status_code=response.status_code,
            )

        headers = response.headers or {}
        return headers.get("X-Message-Id")

    async def send_audit_email(
        self,
        to_email: Optional[str],
        business_url: str,
        report_content: str,
        order_id: str,
    ) -> DeliveryResult:
        """
        Email an audit report to the customer.

        Args:
            to_email: Recipient address. A missing address fails delivery.
            business_url: Normalized business URL the audit is about.
            report_content: Report text; newlines become line breaks in HTML.
            order_id: Order identifier, attached as a sanitized tag.

        Returns:
            DeliveryResult with ``delivered`` and either the provider message
            id or the error message.
        """
        try:
            if not to_email:
                raise DeliveryError("No recipient email address")
            message = self.build_message(to_email, business_url, report_content, order_id)
            message_id = await self._send(message)
        except DeliveryError as e:
            logger.error(
                "audit_email_failed",
                order_id=order_id,
                error=e.message,
                status_code=e.status_code,
            )
            record_email_delivery(False)
            return DeliveryResult(delivered=False, error=e.message)
        except Exception as e:
            logger.error(
                "audit_email_failed",
                order_id=order_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            record_email_delivery(False)
            return DeliveryResult(delivered=False, error=str(e))

        logger.info("audit_email_sent", order_id=order_id, message_id=message_id)
        record_email_delivery(True)
        return DeliveryResult(delivered=True, message_id=message_id)


# =============================================================================
# Singleton
# =============================================================================

_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the singleton EmailService."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service


def reset_email_service() -> None:
    """Reset the singleton (for testing)."""
    global _email_service
    _email_service = None
