"""
Lesson payment verification endpoint.
"""
from typing import Optional

import logfire
from fastapi import APIRouter, Depends, Header, HTTPException, Request

from signlearn_server.app.api.deps import get_verification_service
from signlearn_server.core.exceptions import PaymentVerificationError, ValidationError
from signlearn_server.core.models.payment_models import VerifyPaymentResponse
from signlearn_server.core.service.payment_verification.verification_service import VerificationService

router = APIRouter()


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


@router.post(
    "/verify",
    response_model=VerifyPaymentResponse,
    response_model_exclude_none=True,
    summary="Verify Paystack Lesson Payment",
    description="Re-verifies a Paystack reference, reconciles it with the client's claim and records the purchase once"
)
async def verify_payment(
    request: Request,
    authorization: Optional[str] = Header(None),
    service: VerificationService = Depends(get_verification_service)
) -> VerifyPaymentResponse:
    """
    Verify a lesson payment reported by the web client.

    This endpoint:
    1. Validates the request body (reference, lessonId, email, amount)
    2. Looks the reference up with Paystack using the server-held secret
    3. Compares status, amount, customer email and lesson metadata with the claim
    4. Records the purchase, or returns the existing record on a repeated call

    Returns:
        VerifyPaymentResponse with the recorded purchase

    Raises:
        HTTPException: 400 on invalid input or failed verification, 500 on
            misconfiguration or storage failure, 502 when Paystack is unreachable
    """
    try:
        payload = await request.json()
    except Exception as e:
        logfire.warning(f"Invalid JSON in verify-payment request: {e}")
        error = ValidationError([{"field": "body", "message": "must be valid JSON"}])
        raise HTTPException(status_code=error.status_code, detail=error.to_detail())

    try:
        claim, outcome = await service.verify(payload, session_token=_bearer_token(authorization))
    except PaymentVerificationError as e:
        logfire.warning(
            "Payment verification rejected: {error_type}",
            error_type=type(e).__name__,
            reference=e.reference,
            context=e.context
        )
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except Exception as e:
        logfire.exception(f"Unexpected error during payment verification: {str(e)}")
        raise HTTPException(status_code=500, detail={"error": "Internal server error"})

    if outcome.already_recorded:
        # Echo what was actually bought, not what a replayed claim says
        return VerifyPaymentResponse(
            success=True,
            message="Purchase already recorded",
            lesson_id=outcome.purchase.lesson_id,
            email=outcome.purchase.user_email,
            reference=claim.reference
        )

    return VerifyPaymentResponse(
        success=True,
        message="Payment verified and recorded",
        lesson_id=claim.lesson_id,
        email=claim.email,
        reference=claim.reference,
        purchase=outcome.purchase
    )
