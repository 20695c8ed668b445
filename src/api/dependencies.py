"""FastAPI dependency injection providers.

This module provides dependency functions for injecting services into route handlers.
Process-wide clients are created once on first use and reused across requests.
"""

from typing import Optional

from fastapi import Depends
from supabase import create_client, Client

from src.config.settings import Settings, get_settings
from src.core.exceptions import ConfigurationError
from src.delivery.email_service import EmailService, get_email_service
from src.services.report_generator import AuditReportGenerator, get_report_generator
from src.services.sale_ledger import SaleLedger
from src.services.sale_workflow import SaleWorkflow
from src.services.sales_summary import SalesSummaryAggregator

# Global instances for singleton pattern
_supabase_client: Optional[Client] = None


def get_supabase() -> Client:
    """
    Get Supabase client instance.

    Uses a singleton pattern to reuse the same client across requests.

    Returns:
        Authenticated Supabase client.

    Raises:
        ConfigurationError: If the Supabase credentials are empty.
    """
    global _supabase_client

    if _supabase_client is None:
        settings = get_settings()
        key = settings.supabase_key.get_secret_value()
        if not settings.supabase_url or not key:
            raise ConfigurationError("Supabase credentials are not configured", "supabase_url")
        _supabase_client = create_client(settings.supabase_url, key)

    return _supabase_client


def get_sale_ledger(supabase: Client = Depends(get_supabase)) -> SaleLedger:
    """Get the sale ledger bound to the shared Supabase client."""
    return SaleLedger(supabase, get_settings().sales_table)


def get_sale_workflow(
    generator: AuditReportGenerator = Depends(get_report_generator),
    email_service: EmailService = Depends(get_email_service),
    ledger: SaleLedger = Depends(get_sale_ledger),
) -> SaleWorkflow:
    """Assemble the intake workflow from its collaborators."""
    return SaleWorkflow(
        generator,
        email_service,
        ledger,
        default_currency=get_settings().default_currency,
    )


def get_summary_aggregator(
    ledger: SaleLedger = Depends(get_sale_ledger),
) -> SalesSummaryAggregator:
    """Assemble the dashboard aggregator."""
    settings: Settings = get_settings()
    secret = (
        settings.dashboard_secret_key.get_secret_value()
        if settings.dashboard_secret_key
        else None
    )
    return SalesSummaryAggregator(
        ledger,
        secret,
        display_timezone=settings.dashboard_timezone,
        default_limit=settings.dashboard_default_limit,
    )


def reset_dependencies() -> None:
    """
    Reset all global dependency instances.

    Useful for testing or application shutdown.
    """
    global _supabase_client
    _supabase_client = None
