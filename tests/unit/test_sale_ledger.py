"""Unit tests for the Supabase-backed sale ledger."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from src.core.exceptions import LedgerReadError
from src.models.schemas import SaleRecord
from src.services.sale_ledger import SaleLedger


def make_record(order_id: str = "ORD-1", **overrides) -> SaleRecord:
    fields = {
        "order_id": order_id,
        "customer_email": "a@b.com",
        "business_url": "acme.io",
        "amount": Decimal("50.00"),
        "currency": "ZAR",
        "audit_generated": True,
        "email_delivered": True,
    }
    fields.update(overrides)
    return SaleRecord(**fields)


class TestRecord:
    """Best-effort writes."""

    def test_upserts_on_order_id_without_timestamp(self):
        client = MagicMock()
        client.table.return_value.upsert.return_value.execute.return_value = MagicMock(
            data=[], error=None,
        )
        ledger = SaleLedger(client, "sales")

        assert ledger.record(make_record()) is True

        client.table.assert_called_with("sales")
        row, = client.table.return_value.upsert.call_args.args
        assert client.table.return_value.upsert.call_args.kwargs == {"on_conflict": "order_id"}
        assert row == {
            "order_id": "ORD-1",
            "customer_email": "a@b.com",
            "business_url": "acme.io",
            "amount": 50.0,
            "currency": "ZAR",
            "audit_generated": True,
            "email_delivered": True,
        }

    def test_same_order_overwrites(self, sale_ledger, fake_supabase):
        sale_ledger.record(make_record(email_delivered=False))
        sale_ledger.record(make_record(email_delivered=True, amount=Decimal("75.00")))

        rows = fake_supabase.rows()
        assert len(rows) == 1
        assert rows[0]["email_delivered"] is True
        assert rows[0]["amount"] == 75.0

    def test_write_exception_is_swallowed(self, sale_ledger, fake_supabase):
        fake_supabase.fail_with = RuntimeError("quota exceeded")

        assert sale_ledger.record(make_record()) is False

    def test_response_error_is_swallowed(self):
        client = MagicMock()
        client.table.return_value.upsert.return_value.execute.return_value = MagicMock(
            data=None, error="permission denied",
        )
        ledger = SaleLedger(client, "sales")

        assert ledger.record(make_record()) is False


class TestRecent:
    """Reads for aggregation."""

    def test_newest_first_and_limited(self, sale_ledger):
        for n in range(1, 5):
            sale_ledger.record(make_record(f"ORD-{n}"))

        rows = sale_ledger.recent(2)

        assert [r["order_id"] for r in rows] == ["ORD-4", "ORD-3"]

    def test_empty_ledger(self, sale_ledger):
        assert sale_ledger.recent(50) == []

    def test_read_fault_raises(self, sale_ledger, fake_supabase):
        fake_supabase.fail_with = ConnectionError("network down")

        with pytest.raises(LedgerReadError):
            sale_ledger.recent(50)


class TestSaleRecordModel:
    """Row conversion and construction from attributes."""

    def test_validates_from_attributes(self):
        source = MagicMock(
            order_id="ORD-7",
            customer_email=None,
            business_url="acme.io",
            amount=Decimal("19.99"),
            currency="ZAR",
            audit_generated=True,
            email_delivered=False,
            timestamp=None,
        )

        record = SaleRecord.model_validate(source)

        assert record.order_id == "ORD-7"
        assert record.to_row()["amount"] == 19.99
        assert "timestamp" not in record.to_row()

    def test_model_config_flags(self):
        assert SaleRecord.model_config["from_attributes"] is True
        assert SaleRecord.model_config["populate_by_name"] is True
