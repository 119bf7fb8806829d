"""
Purchase lookup and lesson access endpoints used for paywall gating.
"""
import logfire
from fastapi import APIRouter, Depends, HTTPException

from signlearn_server.app.api.deps import get_entitlement_resolver, get_purchase_ledger
from signlearn_server.core.config.general_config import settings
from signlearn_server.core.config.paystack_config import PaystackConfig
from signlearn_server.core.exceptions import PersistenceError
from signlearn_server.core.models.payment_models import (
    AccessQuery,
    AccessResponse,
    Identity,
    LevelPrice,
    PricingResponse,
    PurchasedLesson,
    PurchasesQuery,
    PurchasesResponse,
)
from signlearn_server.core.service.entitlements.entitlement_resolver import EntitlementResolver
from signlearn_server.core.service.supabase_connectors.purchase_ledger import PurchaseLedger

router = APIRouter()


@router.post("", response_model=PurchasesResponse)
def get_purchases(
    query: PurchasesQuery,
    ledger: PurchaseLedger = Depends(get_purchase_ledger)
) -> PurchasesResponse:
    """
    List the lessons an email has successfully paid for.

    Only lesson ids are returned; no payment details leave the server.
    """
    if not query.user_email:
        logfire.info("No email provided")
        return PurchasesResponse(data=[])

    try:
        purchases = ledger.list_by_email(query.user_email)
    except PersistenceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

    logfire.info(f"Found purchases: {len(purchases)}")
    return PurchasesResponse(data=[PurchasedLesson(lesson_id=p.lesson_id) for p in purchases])


@router.post("/access", response_model=AccessResponse)
def check_access(
    query: AccessQuery,
    resolver: EntitlementResolver = Depends(get_entitlement_resolver)
) -> AccessResponse:
    """Decide whether the given email may open a level or a lesson."""
    identity = Identity(email=query.user_email)
    try:
        if query.lesson_id:
            has_access = resolver.has_lesson_access(identity, query.lesson_id)
        else:
            has_access = resolver.has_level_access(identity, query.level)
        purchased = sorted(resolver.purchased_levels(identity))
    except PersistenceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

    return AccessResponse(
        has_access=has_access,
        is_admin=resolver.is_admin(identity),
        purchased_levels=purchased
    )


@router.get("/pricing", response_model=PricingResponse)
def get_pricing() -> PricingResponse:
    """Price of each lesson level, in minor units."""
    return PricingResponse(data=[
        LevelPrice(
            level=level,
            amount_minor_units=settings.LEVEL_PRICES_MINOR_UNITS.get(level, 0),
            currency=PaystackConfig.CURRENCY,
            free=level in settings.FREE_LEVELS
        )
        for level in settings.LESSON_LEVELS
    ])
