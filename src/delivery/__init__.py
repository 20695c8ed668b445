"""
Audit Delivery.

This module handles delivery of generated audit reports to customers:

- email_service: SendGrid-based email delivery
- templates/audit_email.html: Jinja2 HTML body for the audit email

Example:
    from src.delivery import EmailService, get_email_service

    email_service = get_email_service()
    result = await email_service.send_audit_email(
        to_email="owner@acme.io",
        business_url="acme.io",
        report_content="...",
        order_id="ORD-1",
    )
"""

from src.delivery.email_service import (
    EmailService,
    get_email_service,
    reset_email_service,
    sanitize_tag_value,
)

__all__ = [
    "EmailService",
    "get_email_service",
    "reset_email_service",
    "sanitize_tag_value",
]
