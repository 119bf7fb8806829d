from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx

import pytest
from postgrest.exceptions import APIError

from signlearn_server.core.exceptions import DuplicateReferenceError, PersistenceError
from signlearn_server.core.models.payment_models import PurchaseRecord
from signlearn_server.core.service.supabase_connectors.purchase_ledger import (
    SupabasePurchaseLedger,
    record_to_row,
    row_to_record,
)

ROW = {
    "id": "4c1d0a5e-0000-4000-8000-000000000001",
    "paystack_reference": "advanced-2-1700",
    "user_email": "learner@example.com",
    "user_id": None,
    "lesson_id": "advanced-2",
    "amount_pesewas": 1500,
    "amount_ghs": "15.00",
    "currency": "GHS",
    "payment_status": "success",
    "transaction_date": "2025-01-15T10:30:00+00:00",
    "metadata": {"reference": "advanced-2-1700"},
    "created_at": "2025-01-15T10:31:02.123456+00:00",
}


def make_record(**overrides) -> PurchaseRecord:
    data = {
        "reference": "advanced-2-1700",
        "user_email": "Learner@Example.com",
        "lesson_id": "advanced-2",
        "amount_minor_units": 1505,
        "currency": "GHS",
        "payment_status": "success",
        "transaction_timestamp": datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc),
        "metadata": {"reference": "advanced-2-1700"},
    }
    data.update(overrides)
    return PurchaseRecord(**data)


def api_error(code: str) -> APIError:
    return APIError({"message": "error", "code": code, "hint": None, "details": "detail"})


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def table(client):
    table = MagicMock()
    client.from_.return_value = table
    # Query builders return themselves until execute()
    for method in ("select", "eq", "limit", "insert"):
        getattr(table, method).return_value = table
    return table


class TestRowMapping:
    """Test suite for ledger row mapping."""

    def test_record_to_row(self):
        row = record_to_row(make_record())
        assert row["paystack_reference"] == "advanced-2-1700"
        assert row["user_email"] == "learner@example.com"
        assert row["amount_pesewas"] == 1505
        assert row["amount_ghs"] == "15.05"
        assert row["transaction_date"] == "2025-01-15T10:30:00+00:00"
        assert "created_at" not in row

    def test_row_to_record(self):
        record = row_to_record(ROW)
        assert record.reference == "advanced-2-1700"
        assert record.amount_minor_units == 1500
        assert record.transaction_timestamp == datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert record.recorded_at.year == 2025
        assert record.level == "advanced"


class TestSupabasePurchaseLedger:
    """Test suite for SupabasePurchaseLedger."""

    def test_find_by_reference(self, client, table):
        table.execute.return_value = MagicMock(data=[ROW])
        ledger = SupabasePurchaseLedger(client=client, table_name="lesson_purchases")

        record = ledger.find_by_reference("advanced-2-1700")

        client.from_.assert_called_with("lesson_purchases")
        table.eq.assert_called_with("paystack_reference", "advanced-2-1700")
        assert record.lesson_id == "advanced-2"

    def test_find_by_reference_missing(self, client, table):
        table.execute.return_value = MagicMock(data=[])
        assert SupabasePurchaseLedger(client=client).find_by_reference("nope") is None

    def test_insert_returns_stored_row(self, client, table):
        table.execute.return_value = MagicMock(data=[ROW])
        record = SupabasePurchaseLedger(client=client).insert(make_record())
        assert record.recorded_at is not None
        inserted_row = table.insert.call_args.args[0]
        assert inserted_row["user_email"] == "learner@example.com"

    def test_unique_violation_is_duplicate_reference(self, client, table):
        table.execute.side_effect = api_error("23505")
        with pytest.raises(DuplicateReferenceError):
            SupabasePurchaseLedger(client=client).insert(make_record())

    def test_other_insert_failure_is_persistence_error(self, client, table):
        table.execute.side_effect = api_error("42501")
        with pytest.raises(PersistenceError):
            SupabasePurchaseLedger(client=client).insert(make_record())

    def test_list_by_email_filters_success_and_lowercases(self, client, table):
        table.execute.return_value = MagicMock(data=[ROW])
        records = SupabasePurchaseLedger(client=client).list_by_email(" Learner@Example.COM ")

        table.eq.assert_any_call("user_email", "learner@example.com")
        table.eq.assert_any_call("payment_status", "success")
        assert [r.lesson_id for r in records] == ["advanced-2"]

    def test_unreachable_database_on_insert_is_persistence_error(self, client, table):
        table.execute.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(PersistenceError) as exc_info:
            SupabasePurchaseLedger(client=client).insert(make_record())
        assert exc_info.value.reference == "advanced-2-1700"

    def test_timeout_on_lookup_is_persistence_error(self, client, table):
        table.execute.side_effect = httpx.ReadTimeout("timed out")
        with pytest.raises(PersistenceError) as exc_info:
            SupabasePurchaseLedger(client=client).find_by_reference("advanced-2-1700")
        assert exc_info.value.reference == "advanced-2-1700"

    def test_unreachable_database_on_listing_is_persistence_error(self, client, table):
        table.execute.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(PersistenceError):
            SupabasePurchaseLedger(client=client).list_by_email("learner@example.com")
