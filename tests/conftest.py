"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- fake_supabase: in-memory stand-in for the Supabase table API
- sale_ledger: SaleLedger bound to fake_supabase
- sendgrid_client: mocked SendGridAPIClient accepting every message
- llm_transport / failing_llm_transport: httpx transports for the LLM API
- sample_form_body: the storefront notification used across tests
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from unittest.mock import MagicMock

# Settings are read at import time by the API module.
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-service-role-key")
os.environ.setdefault("GROQ_API_KEY", "test-groq-key")
os.environ.setdefault("SENDGRID_API_KEY", "SG.test-key")
os.environ.setdefault("DASHBOARD_SECRET_KEY", "test-dashboard-key")
os.environ.setdefault("DASHBOARD_TIMEZONE", "UTC")
os.environ.setdefault("APP_ENV", "development")

import httpx
import pytest

from src.services.sale_ledger import SaleLedger

DASHBOARD_KEY = "test-dashboard-key"


# =============================================================================
# In-memory Supabase
# =============================================================================


class FakeResponse:
    def __init__(self, data: list[dict[str, Any]]):
        self.data = data


class FakeQuery:
    """Supports the subset of the postgrest builder the ledger uses."""

    def __init__(self, store: "FakeSupabase", table: str):
        self._store = store
        self._table = table
        self._op: Optional[str] = None
        self._row: Optional[dict] = None
        self._on_conflict: Optional[str] = None
        self._order: Optional[tuple[str, bool]] = None
        self._limit: Optional[int] = None

    def upsert(self, row: dict, on_conflict: str = ""):
        self._op = "upsert"
        self._row = dict(row)
        self._on_conflict = on_conflict
        return self

    def select(self, *columns: str):
        self._op = "select"
        return self

    def order(self, column: str, desc: bool = False):
        self._order = (column, desc)
        return self

    def limit(self, size: int):
        self._limit = size
        return self

    def execute(self) -> FakeResponse:
        if self._store.fail_with is not None:
            raise self._store.fail_with

        rows = self._store.tables.setdefault(self._table, {})
        if self._op == "upsert":
            key = self._row[self._on_conflict]
            self._row["timestamp"] = self._store.next_timestamp()
            rows[key] = self._row
            return FakeResponse([self._row])

        result = list(rows.values())
        if self._order:
            column, desc = self._order
            result.sort(key=lambda r: r.get(column) or "", reverse=desc)
        if self._limit is not None:
            result = result[: self._limit]
        return FakeResponse(result)


class FakeSupabase:
    """Keyed rows per table with a server-assigned, increasing timestamp."""

    def __init__(self):
        self.tables: dict[str, dict[str, dict]] = {}
        self.fail_with: Optional[Exception] = None
        self.calls: list[str] = []
        self._clock = datetime(2026, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

    def next_timestamp(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def table(self, name: str) -> FakeQuery:
        self.calls.append(name)
        return FakeQuery(self, name)

    def rows(self, table: str = "sales") -> list[dict]:
        return list(self.tables.get(table, {}).values())


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    """Return an empty in-memory Supabase."""
    return FakeSupabase()


@pytest.fixture
def sale_ledger(fake_supabase) -> SaleLedger:
    """Return a SaleLedger backed by fake_supabase."""
    return SaleLedger(fake_supabase, "sales")


# =============================================================================
# SendGrid
# =============================================================================


def make_sendgrid_client(status_code: int = 202, message_id: str = "sg-msg-1") -> MagicMock:
    client = MagicMock()
    response = MagicMock()
    response.status_code = status_code
    response.headers = {"X-Message-Id": message_id}
    client.send.return_value = response
    return client


@pytest.fixture
def sendgrid_client() -> MagicMock:
    """Return a SendGrid client that accepts every message."""
    return make_sendgrid_client()


# =============================================================================
# LLM
# =============================================================================


def completion_payload(content: Any) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}},
        ],
    }


@pytest.fixture
def llm_requests() -> list[httpx.Request]:
    """Requests seen by the LLM transports."""
    return []


@pytest.fixture
def llm_transport(llm_requests) -> httpx.MockTransport:
    """LLM API that answers every request with a fixed audit."""

    def handler(request: httpx.Request) -> httpx.Response:
        llm_requests.append(request)
        return httpx.Response(200, json=completion_payload("# Audit\nAutomate invoicing."))

    return httpx.MockTransport(handler)


@pytest.fixture
def failing_llm_transport(llm_requests) -> httpx.MockTransport:
    """LLM API that is down."""

    def handler(request: httpx.Request) -> httpx.Response:
        llm_requests.append(request)
        return httpx.Response(503, json={"error": {"message": "over capacity"}})

    return httpx.MockTransport(handler)


# =============================================================================
# Sample Data
# =============================================================================


@pytest.fixture
def sample_form_body() -> str:
    """Return the storefront notification used in the end-to-end scenario."""
    return (
        "email=a@b.com&sale_id=ORD-1"
        "&custom_fields[website]=https://www.acme.io&price=5000"
    )
