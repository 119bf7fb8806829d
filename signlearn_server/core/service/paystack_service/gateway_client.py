"""
Paystack transaction verification client.

Calls Paystack's verify-by-reference endpoint with the server-held secret and
normalizes the answer into a GatewayVerificationResult.
"""
import json
import os
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
import logfire

from signlearn_server.core.config.paystack_config import PaystackConfig
from signlearn_server.core.exceptions import ConfigurationError, GatewayRejected, TransientError
from signlearn_server.core.models.payment_models import GatewayVerificationResult


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logfire.warning("Unparseable Paystack transaction date {value}", value=value)
        return None


def _extract_metadata(data: Dict[str, Any]) -> Dict[str, Any]:
    metadata = data.get("metadata")
    # Paystack returns metadata as a JSON string when it was sent as one
    if isinstance(metadata, str) and metadata:
        try:
            metadata = json.loads(metadata)
        except ValueError:
            return {}
    return metadata if isinstance(metadata, dict) else {}


def parse_verification_payload(reference: str, payload: Dict[str, Any], raw_text: str,
                               provider_status: int) -> GatewayVerificationResult:
    """
    Normalize a decoded Paystack verify response.

    Raises:
        GatewayRejected: If the payload lacks the transaction data we rely on
    """
    data = payload.get("data")
    if not isinstance(data, dict):
        raise GatewayRejected(
            "Paystack payload has no transaction data",
            reference=reference,
            provider_status=provider_status,
            raw_text=raw_text
        )

    amount = data.get("amount")
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise GatewayRejected(
            "Paystack payload has no integer amount",
            reference=reference,
            provider_status=provider_status,
            raw_text=raw_text
        )

    customer = data.get("customer") if isinstance(data.get("customer"), dict) else {}
    metadata = _extract_metadata(data)
    lesson_meta = metadata.get("lesson_id") or metadata.get("lesson")

    return GatewayVerificationResult(
        status=str(data.get("status") or "unknown").lower(),
        amount_minor_units=amount,
        currency=data.get("currency"),
        customer_email=customer.get("email") or None,
        metadata_lesson_id=str(lesson_meta) if lesson_meta else None,
        transaction_timestamp=_parse_timestamp(data.get("transaction_date") or data.get("paid_at")),
        raw_payload=data,
    )


class PaystackGatewayClient:
    """Async client for Paystack's transaction/verify endpoint."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        # Read at construction so a key loaded after import still applies
        self.secret_key = secret_key if secret_key is not None else (
            os.getenv("PAYSTACK_SECRET_KEY") or PaystackConfig.SECRET_KEY
        )
        self.base_url = (base_url or PaystackConfig.BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else PaystackConfig.TIMEOUT_SECONDS
        self._transport = transport

    async def verify(self, reference: str) -> GatewayVerificationResult:
        """
        Verify a transaction by reference.

        Args:
            reference: Paystack transaction reference

        Returns:
            GatewayVerificationResult for the reference

        Raises:
            ConfigurationError: If the secret key is not configured
            TransientError: On network failure or timeout
            GatewayRejected: On a non-success HTTP status or an unusable payload
        """
        if not self.secret_key:
            logfire.error("PAYSTACK_SECRET_KEY not configured")
            raise ConfigurationError(reference=reference)

        url = f"{self.base_url}/transaction/verify/{quote(reference, safe='')}"
        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json"
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                logfire.debug("Calling Paystack verify for {reference}", reference=reference)
                response = await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            logfire.error("Timeout calling Paystack verify for {reference}", reference=reference)
            raise TransientError("Timeout contacting Paystack", reference=reference) from e
        except httpx.RequestError as e:
            logfire.error(
                "Network error contacting Paystack for {reference}: {error}",
                reference=reference,
                error=str(e)
            )
            raise TransientError("Network error contacting Paystack", reference=reference) from e

        text = response.text
        logfire.info(
            "Paystack verify response status: {status_code}",
            status_code=response.status_code,
            reference=reference
        )

        if not response.is_success:
            logfire.warning(
                "Paystack verification failed with status {status_code}",
                status_code=response.status_code,
                reference=reference,
                response_body=text
            )
            raise GatewayRejected(
                f"Paystack returned HTTP {response.status_code}",
                reference=reference,
                provider_status=response.status_code,
                raw_text=text
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            logfire.error(
                "Paystack returned an unparseable payload for {reference}",
                reference=reference,
                raw=text
            )
            raise GatewayRejected(
                "Unparseable Paystack payload",
                reference=reference,
                provider_status=response.status_code,
                raw_text=text
            )

        return parse_verification_payload(reference, payload, text, response.status_code)
