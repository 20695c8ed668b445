"""
Sale Ledger (persistence).

One row per processed order in the Supabase ``sales`` table, keyed by
``order_id``. Writes are upserts, so a re-sent notification overwrites the
existing row instead of duplicating it. ``timestamp`` is assigned by the
database (column default plus trigger, see scripts/setup_supabase.py).

Writing is best-effort: ``record`` logs and swallows every failure, because
the customer-facing outcome has already been decided by the time it runs.
Reading is not: ``recent`` raises ``LedgerReadError``.
"""

from typing import Any, Optional

import structlog
from supabase import Client

from src.config.settings import get_settings
from src.core.exceptions import LedgerReadError, LedgerWriteError
from src.models.schemas import SaleRecord
from src.monitoring.metrics import track_ledger_operation

logger = structlog.get_logger(__name__)

ORDER_KEY_COLUMN = "order_id"
TIMESTAMP_COLUMN = "timestamp"


class SaleLedger:
    """Supabase-backed store of sale records."""

    def __init__(self, client: Client, table: Optional[str] = None):
        self._client = client
        self.table = table or get_settings().sales_table

    def _upsert(self, sale: SaleRecord) -> None:
        try:
            with track_ledger_operation("upsert"):
                response = (
                    self._client.table(self.table)
                    .upsert(sale.to_row(), on_conflict=ORDER_KEY_COLUMN)
                    .execute()
                )
        except Exception as e:
            raise LedgerWriteError(
                f"Failed to write sale {sale.order_id}: {e}",
                {"order_id": sale.order_id},
            ) from e

        error = getattr(response, "error", None)
        if error:
            raise LedgerWriteError(
                f"Failed to write sale {sale.order_id}: {error}",
                {"order_id": sale.order_id},
            )

    def record(self, sale: SaleRecord) -> bool:
        """
        Persist a sale record, overwriting any row with the same order id.

        Never raises.

        Returns:
            True if the write landed, False if it was logged and dropped.
        """
        try:
            self._upsert(sale)
        except LedgerWriteError as e:
            logger.error(
                "sale_record_write_failed",
                order_id=sale.order_id,
                table=self.table,
                error=e.message,
            )
            return False

        logger.info("sale_recorded", order_id=sale.order_id, table=self.table)
        return True

    def recent(self, limit: int) -> list[dict[str, Any]]:
        """
        Fetch the most recent sale rows, newest first.

        Args:
            limit: Maximum number of rows.

        Raises:
            LedgerReadError: If the store cannot be queried.
        """
        try:
            with track_ledger_operation("select_recent"):
                response = (
                    self._client.table(self.table)
                    .select("*")
                    .order(TIMESTAMP_COLUMN, desc=True)
                    .limit(limit)
                    .execute()
                )
        except Exception as e:
            logger.error("sale_records_read_failed", table=self.table, error=str(e))
            raise LedgerReadError(f"Failed to read sales: {e}", {"table": self.table}) from e

        return list(response.data or [])
