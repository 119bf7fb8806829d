"""Shape validation of inbound verification requests, run before any gateway call."""
from typing import Any, Iterable, Optional

import logfire
from pydantic import ValidationError as PydanticValidationError

from signlearn_server.core.exceptions import ValidationError
from signlearn_server.core.models.payment_models import PaymentVerificationRequest


def _field_name(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "body"


def validate_verification_request(
    payload: Any,
    levels: Optional[Iterable[str]] = None
) -> PaymentVerificationRequest:
    """
    Turn an untyped payload into a PaymentVerificationRequest.

    Args:
        payload: Decoded JSON body of the request
        levels: Allowed lesson level prefixes (defaults to the standard three)

    Returns:
        The validated request

    Raises:
        ValidationError: Listing every violated field constraint
    """
    if not isinstance(payload, dict):
        raise ValidationError([{"field": "body", "message": "must be a JSON object"}])

    context = {"levels": tuple(level.lower() for level in levels)} if levels else None
    try:
        return PaymentVerificationRequest.model_validate(payload, context=context)
    except PydanticValidationError as e:
        violations = [
            {"field": _field_name(err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        logfire.warning(
            "Rejected malformed verification request",
            violations=violations,
            reference=payload.get("reference") if isinstance(payload.get("reference"), str) else None
        )
        raise ValidationError(violations) from e
