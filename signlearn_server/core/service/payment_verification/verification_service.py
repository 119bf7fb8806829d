"""
Payment verification flow for lesson purchases.

This module wires the steps of one verification attempt together:
- shape validation of the client payload (no external call before it passes)
- Paystack lookup of the reference
- best-effort user id resolution from the session token
- reconciliation and the idempotent ledger write
"""
from typing import Any, Callable, Iterable, Optional, Tuple

import logfire
from starlette.concurrency import run_in_threadpool

from signlearn_server.core.models.payment_models import PaymentVerificationRequest, ReconciliationOutcome
from signlearn_server.core.service.payment_verification.reconciliation import ReconciliationEngine
from signlearn_server.core.service.payment_verification.request_validator import validate_verification_request
from signlearn_server.core.service.paystack_service.gateway_client import PaystackGatewayClient
from signlearn_server.core.service.supabase_connectors.purchase_ledger import PurchaseLedger


class VerificationService:
    """Service class for verifying a client-reported Paystack payment."""

    def __init__(
        self,
        gateway: PaystackGatewayClient,
        ledger: PurchaseLedger,
        resolve_user_id: Optional[Callable[[Optional[str]], Optional[str]]] = None,
        levels: Optional[Iterable[str]] = None
    ):
        self.gateway = gateway
        self.engine = ReconciliationEngine(ledger)
        self.resolve_user_id = resolve_user_id
        self.levels = tuple(levels) if levels else None

    async def verify(
        self,
        payload: Any,
        session_token: Optional[str] = None
    ) -> Tuple[PaymentVerificationRequest, ReconciliationOutcome]:
        """
        Verify a payment claim end to end.

        Args:
            payload: Decoded JSON body from the client
            session_token: Bearer token of the caller, if any

        Returns:
            Tuple of (validated request, reconciliation outcome)

        Raises:
            PaymentVerificationError: Any subclass, see signlearn_server.core.exceptions
        """
        request = validate_verification_request(payload, levels=self.levels)
        logfire.info(
            "verify-payment request",
            reference=request.reference,
            lesson_id=request.lesson_id,
            amount=request.amount_minor_units
        )

        result = await self.gateway.verify(request.reference)

        user_id = None
        if self.resolve_user_id and session_token:
            user_id = await run_in_threadpool(self.resolve_user_id, session_token)

        outcome = await self.engine.reconcile(request, result, user_id=user_id)
        return request, outcome
