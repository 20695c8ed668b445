"""End-to-end tests for the HTTP surface."""

import pytest

from tests.conftest import DASHBOARD_KEY

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}
INTAKE_URL = "/api/v1/process-sale"
DASHBOARD_URL = "/api/v1/dashboard"


class TestProcessSale:
    """Sale intake webhook."""

    def test_end_to_end_with_llm_down(
        self, client, sample_form_body, fake_supabase, sendgrid_client, llm_requests,
    ):
        response = client.post(INTAKE_URL, content=sample_form_body, headers=FORM_HEADERS)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Audit workflow complete.",
            "order_id": "ORD-1",
        }
        assert len(llm_requests) == 1
        sendgrid_client.send.assert_called_once()

        row, = fake_supabase.rows()
        assert row["order_id"] == "ORD-1"
        assert row["customer_email"] == "a@b.com"
        assert row["business_url"] == "acme.io"
        assert row["amount"] == 50.0
        assert row["currency"] == "ZAR"
        assert row["audit_generated"] is True
        assert row["email_delivered"] is True
        assert row["timestamp"]

    def test_delivery_failure_reported_in_body(
        self, client, sample_form_body, fake_supabase, sendgrid_client,
    ):
        sendgrid_client.send.return_value.status_code = 500

        response = client.post(INTAKE_URL, content=sample_form_body, headers=FORM_HEADERS)

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert fake_supabase.rows()[0]["email_delivered"] is False

    def test_repeated_notification_keeps_one_record(
        self, client, sample_form_body, fake_supabase, sendgrid_client,
    ):
        client.post(INTAKE_URL, content=sample_form_body, headers=FORM_HEADERS)
        client.post(INTAKE_URL, content=sample_form_body, headers=FORM_HEADERS)

        assert len(fake_supabase.rows()) == 1
        assert sendgrid_client.send.call_count == 2

    def test_ledger_outage_does_not_change_response(
        self, client, sample_form_body, fake_supabase,
    ):
        fake_supabase.fail_with = RuntimeError("quota exceeded")

        response = client.post(INTAKE_URL, content=sample_form_body, headers=FORM_HEADERS)

        assert response.status_code == 200
        assert response.json()["success"] is True

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH", "OPTIONS"])
    def test_non_post_is_rejected(self, client, method, fake_supabase, sendgrid_client):
        response = client.request(method, INTAKE_URL)

        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}
        assert response.headers["allow"] == "POST"
        assert fake_supabase.rows() == []
        sendgrid_client.send.assert_not_called()

    def test_head_is_rejected(self, client, fake_supabase):
        response = client.head(INTAKE_URL)

        assert response.status_code == 405
        assert response.headers["allow"] == "POST"
        assert fake_supabase.rows() == []

    def test_invalid_price_is_bad_request(self, client, fake_supabase):
        response = client.post(INTAKE_URL, content="email=a@b.com&price=abc", headers=FORM_HEADERS)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid notification"
        assert fake_supabase.rows() == []


class TestDashboard:
    """Key-gated summary."""

    def test_unauthorized_without_key(self, client):
        response = client.get(DASHBOARD_URL)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_unauthorized_with_wrong_key(self, client, fake_supabase):
        response = client.get(DASHBOARD_URL, params={"key": "nope"})

        assert response.status_code == 401
        assert fake_supabase.calls == []

    def test_empty_summary(self, client):
        response = client.get(DASHBOARD_URL, params={"key": DASHBOARD_KEY})

        assert response.status_code == 200
        assert response.json() == {
            "summary": {
                "totalRevenue": "0.00",
                "totalSales": 0,
                "successRate": 0,
                "successfulDeliveries": 0,
            },
            "recentSales": [],
        }

    def test_summary_after_sale(self, client, sample_form_body):
        client.post(INTAKE_URL, content=sample_form_body, headers=FORM_HEADERS)

        response = client.get(DASHBOARD_URL, params={"key": DASHBOARD_KEY})

        body = response.json()
        assert body["summary"] == {
            "totalRevenue": "50.00",
            "totalSales": 1,
            "successRate": "100.0",
            "successfulDeliveries": 1,
        }
        assert body["recentSales"] == [{
            "id": "ORD-1",
            "orderId": "ORD-1",
            "customerEmail": "a@b.com",
            "businessUrl": "acme.io",
            "amount": 50.0,
            "currency": "ZAR",
            "auditGenerated": True,
            "emailDelivered": True,
            "timestamp": "2026/01/15, 10:00:01",
        }]

    def test_read_failure(self, client, fake_supabase):
        fake_supabase.fail_with = ConnectionError("network down")

        response = client.get(DASHBOARD_URL, params={"key": DASHBOARD_KEY})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch data"

    def test_limit_out_of_range(self, client):
        response = client.get(DASHBOARD_URL, params={"key": DASHBOARD_KEY, "limit": 0})

        assert response.status_code == 422


class TestHealth:
    """Probes."""

    def test_liveness(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_health_reports_services(self, client):
        response = client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert set(body["services"]) == {"supabase", "llm", "email"}
