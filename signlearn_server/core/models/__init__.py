"""Data models."""
from signlearn_server.core.models.payment_models import (
    GatewayVerificationResult,
    Identity,
    PaymentVerificationRequest,
    PurchaseRecord,
    ReconciliationOutcome,
)

__all__ = [
    "GatewayVerificationResult",
    "Identity",
    "PaymentVerificationRequest",
    "PurchaseRecord",
    "ReconciliationOutcome",
]
