"""
Dependency providers for the API layer.

Each request gets its own collaborators; nothing mutable is shared between
requests except the database behind the ledger.
"""
from fastapi import Depends, HTTPException

from signlearn_server.core.config.general_config import settings
from signlearn_server.core.exceptions import ConfigurationError
from signlearn_server.core.service.entitlements.entitlement_resolver import EntitlementResolver
from signlearn_server.core.service.payment_verification.verification_service import VerificationService
from signlearn_server.core.service.paystack_service.gateway_client import PaystackGatewayClient
from signlearn_server.core.service.supabase_connectors.purchase_ledger import PurchaseLedger, SupabasePurchaseLedger
from signlearn_server.core.service.supabase_connectors.supabase_client import resolve_user_id_from_token


def get_purchase_ledger() -> PurchaseLedger:
    try:
        return SupabasePurchaseLedger()
    except ConfigurationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


def get_gateway_client() -> PaystackGatewayClient:
    return PaystackGatewayClient()


def get_user_id_resolver():
    return resolve_user_id_from_token


def get_verification_service(
    gateway: PaystackGatewayClient = Depends(get_gateway_client),
    ledger: PurchaseLedger = Depends(get_purchase_ledger),
    resolve_user_id=Depends(get_user_id_resolver)
) -> VerificationService:
    return VerificationService(
        gateway=gateway,
        ledger=ledger,
        resolve_user_id=resolve_user_id,
        levels=settings.LESSON_LEVELS
    )


def get_entitlement_resolver(
    ledger: PurchaseLedger = Depends(get_purchase_ledger)
) -> EntitlementResolver:
    return EntitlementResolver(
        ledger,
        admin_emails=settings.ADMIN_EMAILS,
        free_levels=settings.FREE_LEVELS
    )
