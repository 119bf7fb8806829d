"""
Reconciliation of a client's payment claim against the gateway's record.

Checks run in a fixed order and stop at the first failure:

1. gateway status is `success`
2. gateway amount equals the claimed amount, exactly, in minor units
3. a ledger row for the reference already exists -> accepted as-is
4. gateway customer email / lesson metadata, when present, match the claim
5. the purchase is inserted; a concurrent duplicate insert is read back

Rejected payments never reach the ledger write.
"""
from datetime import datetime, timezone
from typing import Optional

import logfire
from starlette.concurrency import run_in_threadpool

from signlearn_server.core.config.paystack_config import PaystackConfig
from signlearn_server.core.exceptions import (
    AmountMismatch,
    DuplicateReferenceError,
    IdentityMismatch,
    MetadataMismatch,
    PaymentNotSuccessful,
    PersistenceError,
)
from signlearn_server.core.models.payment_models import (
    GatewayVerificationResult,
    PaymentVerificationRequest,
    PurchaseRecord,
    ReconciliationOutcome,
)
from signlearn_server.core.service.supabase_connectors.purchase_ledger import PurchaseLedger


class ReconciliationEngine:
    """Accepts or rejects one verification attempt and records accepted ones exactly once."""

    def __init__(self, ledger: PurchaseLedger, currency: Optional[str] = None):
        self.ledger = ledger
        self.currency = currency or PaystackConfig.CURRENCY

    async def reconcile(
        self,
        request: PaymentVerificationRequest,
        result: GatewayVerificationResult,
        user_id: Optional[str] = None
    ) -> ReconciliationOutcome:
        """
        Reconcile a validated request with the gateway result.

        Args:
            request: The client's claim
            result: The gateway's authoritative record for the same reference
            user_id: Authenticated user id, if one could be resolved

        Returns:
            ReconciliationOutcome with the recorded purchase

        Raises:
            PaymentNotSuccessful, AmountMismatch, IdentityMismatch, MetadataMismatch:
                When the claim is not backed by the gateway record
            PersistenceError: When the ledger cannot be read or written
        """
        reference = request.reference

        if result.status != PaystackConfig.SUCCESS_STATUS:
            logfire.warning(
                "Payment {reference} was not successful: {status}",
                reference=reference,
                status=result.status,
                lesson_id=request.lesson_id
            )
            raise PaymentNotSuccessful(reference=reference, status=result.status)

        if result.amount_minor_units != request.amount_minor_units:
            logfire.error(
                "Amount mismatch for {reference}",
                reference=reference,
                expected=request.amount_minor_units,
                received=result.amount_minor_units
            )
            raise AmountMismatch(
                reference=reference,
                expected=request.amount_minor_units,
                received=result.amount_minor_units
            )

        existing = await run_in_threadpool(self.ledger.find_by_reference, reference)
        if existing is not None:
            logfire.info("Purchase {reference} already recorded", reference=reference)
            return ReconciliationOutcome(purchase=existing, already_recorded=True)

        self._check_identity(request, result)

        record = PurchaseRecord(
            reference=reference,
            user_email=request.email.lower(),
            user_id=user_id,
            lesson_id=request.lesson_id,
            amount_minor_units=result.amount_minor_units,
            currency=result.currency or self.currency,
            payment_status=result.status,
            transaction_timestamp=result.transaction_timestamp,
            recorded_at=datetime.now(timezone.utc),
            metadata=result.raw_payload,
        )

        try:
            inserted = await run_in_threadpool(self.ledger.insert, record)
        except DuplicateReferenceError:
            # Lost the insert race to a concurrent verification of the same reference
            winner = await run_in_threadpool(self.ledger.find_by_reference, reference)
            if winner is None:
                logfire.error("Duplicate insert for {reference} but no row found", reference=reference)
                raise PersistenceError(reference=reference)
            return ReconciliationOutcome(purchase=winner, already_recorded=True)

        logfire.info(
            "Payment {reference} verified and recorded",
            reference=reference,
            lesson_id=request.lesson_id,
            user_id=user_id
        )
        return ReconciliationOutcome(purchase=inserted, already_recorded=False)

    @staticmethod
    def _check_identity(request: PaymentVerificationRequest, result: GatewayVerificationResult) -> None:
        # Absent gateway fields are accepted; only a present but different value is rejected
        if result.customer_email and result.customer_email.strip().lower() != request.email.lower():
            logfire.error(
                "Email mismatch between client and Paystack for {reference}",
                reference=request.reference,
                client=request.email,
                paystack=result.customer_email
            )
            raise IdentityMismatch(reference=request.reference)

        if result.metadata_lesson_id and result.metadata_lesson_id != request.lesson_id:
            logfire.error(
                "Lesson metadata mismatch for {reference}",
                reference=request.reference,
                expected=request.lesson_id,
                received=result.metadata_lesson_id
            )
            raise MetadataMismatch(reference=request.reference)
