"""
Purchase ledger: the persistent record of reconciled lesson payments.

The `paystack_reference` column carries a UNIQUE constraint in the database;
inserting a second row for the same reference fails with a unique violation,
which is surfaced here as DuplicateReferenceError.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
import logfire
from postgrest.exceptions import APIError
from supabase import Client

from signlearn_server.core.config.general_config import settings
from signlearn_server.core.exceptions import DuplicateReferenceError, PersistenceError
from signlearn_server.core.models.payment_models import PurchaseRecord
from signlearn_server.core.service.supabase_connectors.supabase_client import get_supabase_service_role_client

UNIQUE_VIOLATION_CODE = "23505"
SUCCESS_STATUS = "success"


class PurchaseLedger(ABC):
    """Storage contract for purchase records. Implementations are blocking."""

    @abstractmethod
    def find_by_reference(self, reference: str) -> Optional[PurchaseRecord]:
        """Return the record for a payment reference, if any."""

    @abstractmethod
    def insert(self, record: PurchaseRecord) -> PurchaseRecord:
        """
        Persist a new record.

        Raises:
            DuplicateReferenceError: If a record with the same reference exists
            PersistenceError: For any other storage failure
        """

    @abstractmethod
    def list_by_email(self, email: str) -> List[PurchaseRecord]:
        """Successful purchases recorded for an email, case-insensitively."""


def record_to_row(record: PurchaseRecord) -> Dict[str, Any]:
    row = {
        "paystack_reference": record.reference,
        "user_email": record.user_email.lower(),
        "user_id": record.user_id,
        "lesson_id": record.lesson_id,
        "amount_pesewas": record.amount_minor_units,
        "amount_ghs": str((Decimal(record.amount_minor_units) / 100).quantize(Decimal("0.01"))),
        "currency": record.currency,
        "payment_status": record.payment_status,
        "transaction_date": record.transaction_timestamp.isoformat() if record.transaction_timestamp else None,
        "metadata": record.metadata,
    }
    if record.recorded_at:
        row["created_at"] = record.recorded_at.isoformat()
    return row


def row_to_record(row: Dict[str, Any]) -> PurchaseRecord:
    return PurchaseRecord(
        reference=row["paystack_reference"],
        user_email=row["user_email"],
        user_id=row.get("user_id"),
        lesson_id=row["lesson_id"],
        amount_minor_units=row["amount_pesewas"],
        currency=row.get("currency") or "GHS",
        payment_status=row["payment_status"],
        transaction_timestamp=row.get("transaction_date"),
        recorded_at=row.get("created_at"),
        metadata=row.get("metadata") or {},
    )


class SupabasePurchaseLedger(PurchaseLedger):
    """Purchase ledger backed by the Supabase `lesson_purchases` table."""

    def __init__(self, client: Optional[Client] = None, table_name: Optional[str] = None):
        self.client = client or get_supabase_service_role_client()
        self.table_name = table_name or settings.PURCHASES_TABLE_NAME

    def find_by_reference(self, reference: str) -> Optional[PurchaseRecord]:
        try:
            result = self.client.from_(self.table_name)\
                .select("*")\
                .eq("paystack_reference", reference)\
                .limit(1)\
                .execute()
        except APIError as e:
            logfire.error(f"Failed to look up purchase {reference}: {e.message}", code=e.code)
            raise PersistenceError(reference=reference) from e
        except httpx.HTTPError as e:
            logfire.error(f"Supabase unreachable looking up purchase {reference}: {str(e)}")
            raise PersistenceError(reference=reference) from e

        if not result.data:
            return None
        return row_to_record(result.data[0])

    def insert(self, record: PurchaseRecord) -> PurchaseRecord:
        try:
            result = self.client.from_(self.table_name)\
                .insert(record_to_row(record))\
                .execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION_CODE:
                logfire.info(f"Purchase {record.reference} already recorded by a concurrent request")
                raise DuplicateReferenceError(reference=record.reference) from e
            logfire.error(
                f"Failed to insert purchase record: {e.message}",
                extra={"reference": record.reference, "code": e.code, "details": e.details}
            )
            raise PersistenceError(reference=record.reference) from e
        except httpx.HTTPError as e:
            logfire.error(f"Supabase unreachable inserting purchase {record.reference}: {str(e)}")
            raise PersistenceError(reference=record.reference) from e

        if not result.data:
            logfire.error(f"Insert of purchase {record.reference} returned no row")
            raise PersistenceError(reference=record.reference)
        return row_to_record(result.data[0])

    def list_by_email(self, email: str) -> List[PurchaseRecord]:
        try:
            result = self.client.from_(self.table_name)\
                .select("*")\
                .eq("user_email", email.strip().lower())\
                .eq("payment_status", SUCCESS_STATUS)\
                .execute()
        except APIError as e:
            logfire.error(f"Error fetching purchases: {e.message}", code=e.code)
            raise PersistenceError() from e
        except httpx.HTTPError as e:
            logfire.error(f"Supabase unreachable fetching purchases: {str(e)}")
            raise PersistenceError() from e

        purchases = [row_to_record(row) for row in result.data or []]
        logfire.debug(f"Found {len(purchases)} purchases")
        return purchases
