"""
Error taxonomy for payment verification.

Every error carries the HTTP status it maps to and a generic public message.
Detailed context (values compared, provider status) is kept on the exception
for server-side logging only and never copied into the response body.
"""
from typing import Any, Dict, List, Optional


class PaymentVerificationError(Exception):
    """Base class for all payment verification failures."""

    status_code: int = 500
    public_message: str = "Payment verification failed"

    def __init__(self, message: Optional[str] = None, reference: Optional[str] = None, **context: Any):
        super().__init__(message or self.public_message)
        self.reference = reference
        self.context = context

    def to_detail(self) -> Dict[str, Any]:
        """Client-safe error body."""
        detail: Dict[str, Any] = {"error": self.public_message}
        if self.reference:
            detail["reference"] = self.reference
        return detail


class ValidationError(PaymentVerificationError):
    """The inbound request is malformed. Lists every violated constraint."""

    status_code = 400
    public_message = "Invalid verification request"

    def __init__(self, violations: List[Dict[str, str]]):
        self.violations = violations
        fields = ", ".join(v["field"] for v in violations)
        super().__init__(f"Invalid verification request: {fields}")

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail["violations"] = self.violations
        return detail


class OriginDenied(PaymentVerificationError):
    status_code = 403
    public_message = "Unauthorized origin"


class ConfigurationError(PaymentVerificationError):
    """A server secret or credential is missing. Operator-fixable only."""

    status_code = 500
    public_message = "Payment verification not configured"


class TransientError(PaymentVerificationError):
    """The gateway could not be reached or timed out. Safe to retry with the same reference."""

    status_code = 502
    public_message = "Payment gateway unreachable, please retry"


class GatewayRejected(PaymentVerificationError):
    """The gateway answered with a non-success status or an unusable payload."""

    status_code = 400
    public_message = "Payment gateway rejected the verification"

    def __init__(self, message: Optional[str] = None, reference: Optional[str] = None,
                 provider_status: Optional[int] = None, raw_text: str = "", **context: Any):
        super().__init__(message, reference=reference, **context)
        self.provider_status = provider_status
        self.raw_text = raw_text

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail["provider_status"] = self.provider_status
        return detail


class ReconciliationRejected(PaymentVerificationError):
    """The gateway record does not back up the client's claim."""

    status_code = 400
    public_message = "Payment verification failed"
    reason: str = "ReconciliationRejected"


class PaymentNotSuccessful(ReconciliationRejected):
    reason = "PaymentNotSuccessful"


class AmountMismatch(ReconciliationRejected):
    reason = "AmountMismatch"


class IdentityMismatch(ReconciliationRejected):
    reason = "IdentityMismatch"


class MetadataMismatch(ReconciliationRejected):
    reason = "MetadataMismatch"


class DuplicateReferenceError(PaymentVerificationError):
    """Raised by the ledger when a row for the reference already exists."""


class PersistenceError(PaymentVerificationError):
    status_code = 500
    public_message = "Purchase records unavailable, please retry"
