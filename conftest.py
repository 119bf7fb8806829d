import os
import threading
from typing import Dict, List, Optional

import logfire
import pytest

os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_mock")

from E2E_tests.mock_service import MockPaystackService  # noqa: E402
from signlearn_server.core.exceptions import DuplicateReferenceError, PersistenceError  # noqa: E402
from signlearn_server.core.models.payment_models import PurchaseRecord  # noqa: E402
from signlearn_server.core.service.supabase_connectors.purchase_ledger import PurchaseLedger  # noqa: E402

logfire.configure(send_to_logfire=False, console=False)


class InMemoryPurchaseLedger(PurchaseLedger):
    """
    Ledger kept in a dict, with the same uniqueness contract as the database.

    `stale_reads` makes the next N lookups miss, which reproduces a concurrent
    writer committing between our read and our insert.
    """

    def __init__(self, stale_reads: int = 0, fail_inserts: bool = False):
        self.rows: Dict[str, PurchaseRecord] = {}
        self.stale_reads = stale_reads
        self.fail_inserts = fail_inserts
        self.insert_attempts = 0
        self._lock = threading.Lock()

    def find_by_reference(self, reference: str) -> Optional[PurchaseRecord]:
        with self._lock:
            if self.stale_reads > 0:
                self.stale_reads -= 1
                return None
            return self.rows.get(reference)

    def insert(self, record: PurchaseRecord) -> PurchaseRecord:
        with self._lock:
            self.insert_attempts += 1
            if self.fail_inserts:
                raise PersistenceError(reference=record.reference)
            if record.reference in self.rows:
                raise DuplicateReferenceError(reference=record.reference)
            stored = record.model_copy(update={"user_email": record.user_email.lower()})
            self.rows[record.reference] = stored
            return stored

    def list_by_email(self, email: str) -> List[PurchaseRecord]:
        with self._lock:
            return [
                row for row in self.rows.values()
                if row.user_email == email.strip().lower() and row.payment_status == "success"
            ]


@pytest.fixture
def ledger():
    return InMemoryPurchaseLedger()


@pytest.fixture
def paystack():
    return MockPaystackService()


@pytest.fixture
def make_ledger():
    return InMemoryPurchaseLedger
