"""Integration test configuration.

The app runs in-process through FastAPI's TestClient with its Supabase,
LLM and SendGrid collaborators swapped for in-memory stand-ins via
``app.dependency_overrides``. The lifespan is not entered.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_sale_workflow, get_summary_aggregator, get_supabase
from src.api.main import app
from src.delivery.email_service import EmailService
from src.services.report_generator import AuditReportGenerator
from src.services.sale_workflow import SaleWorkflow
from src.services.sales_summary import SalesSummaryAggregator
from tests.conftest import DASHBOARD_KEY


@pytest.fixture
def workflow(failing_llm_transport, sendgrid_client, sale_ledger) -> SaleWorkflow:
    """Workflow with the LLM down and SendGrid accepting mail."""
    generator = AuditReportGenerator(
        "test-groq-key",
        api_url="https://llm.test/v1/chat/completions",
        client=httpx.AsyncClient(transport=failing_llm_transport),
    )
    email_service = EmailService(
        "SG.test-key",
        from_email="audits@example.com",
        from_name="Sale Audit",
        client=sendgrid_client,
    )
    return SaleWorkflow(generator, email_service, sale_ledger)


@pytest.fixture
def aggregator(sale_ledger) -> SalesSummaryAggregator:
    return SalesSummaryAggregator(sale_ledger, DASHBOARD_KEY)


@pytest.fixture
def client(workflow, aggregator, fake_supabase):
    """TestClient wired to the in-memory collaborators."""
    app.dependency_overrides[get_sale_workflow] = lambda: workflow
    app.dependency_overrides[get_summary_aggregator] = lambda: aggregator
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
