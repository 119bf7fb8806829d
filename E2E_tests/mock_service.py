import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx


class AbstractMockService(ABC):
    """
    Abstract base class for mock services used to test the payment flow end to end. These services expose
    an httpx transport that simulates the behavior of a real external service.
    """
    @abstractmethod
    def __init__(self):
        """
        Initialize the mock service.
        """
        pass

    @abstractmethod
    def transport(self) -> httpx.AsyncBaseTransport:
        """
        Transport to hand to the client under test instead of the network.
        """
        pass


class MockPaystackService(AbstractMockService):
    """
    Simulates Paystack's transaction/verify endpoint.

    Transactions are registered by reference; unknown references answer 404 like Paystack does.
    Every request is recorded in `calls` so tests can assert on what was sent.
    """

    SECRET_KEY = "sk_test_mock"

    def __init__(self):
        super().__init__()
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.raw_responses: Dict[str, httpx.Response] = {}
        self.errors: Dict[str, Exception] = {}
        self.calls: list[httpx.Request] = []

    def add_transaction(
        self,
        reference: str,
        amount: int,
        status: str = "success",
        email: Optional[str] = "learner@example.com",
        lesson_id: Optional[str] = None,
        currency: str = "GHS",
        transaction_date: str = "2025-01-15T10:30:00.000Z",
        metadata: Any = None,
    ) -> Dict[str, Any]:
        """
        Simulate a transaction Paystack knows about.
        """
        if metadata is None:
            metadata = {"lesson_id": lesson_id} if lesson_id else {}
        data = {
            "id": 4099260516,
            "status": status,
            "reference": reference,
            "amount": amount,
            "currency": currency,
            "transaction_date": transaction_date,
            "paid_at": transaction_date,
            "channel": "mobile_money",
            "customer": {"email": email} if email else None,
            "metadata": metadata,
        }
        self.transactions[reference] = data
        return data

    def set_raw_response(self, reference: str, status_code: int, text: str):
        """
        Simulate an arbitrary HTTP answer for a reference.
        """
        self.raw_responses[reference] = httpx.Response(status_code, text=text)

    def set_error(self, reference: str, error: Exception):
        """
        Simulate a transport failure (timeout, connection refused) for a reference.
        """
        self.errors[reference] = error

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if request.headers.get("Authorization") != f"Bearer {self.SECRET_KEY}":
            return httpx.Response(401, json={"status": False, "message": "Invalid key"})

        reference = request.url.path.rsplit("/", 1)[-1]
        if reference in self.errors:
            raise self.errors[reference]
        if reference in self.raw_responses:
            return self.raw_responses[reference]
        if reference not in self.transactions:
            return httpx.Response(404, json={"status": False, "message": "Transaction reference not found"})

        body = {"status": True, "message": "Verification successful", "data": self.transactions[reference]}
        return httpx.Response(200, text=json.dumps(body), headers={"Content-Type": "application/json"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)
