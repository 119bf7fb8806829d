"""
Main API router that includes all endpoint routers.
"""
from fastapi import APIRouter, Depends

from signlearn_server.app.api.v1.endpoints import (
    health,
    purchases_api,
    verify_payment_api,
)
from signlearn_server.core.security.origin_guard import verify_allowed_origin


api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router, prefix="/health", tags=["health"])

# Payment and purchase endpoints only answer trusted origins
api_router.include_router(
    verify_payment_api.router,
    prefix="/payments",
    tags=["payments"],
    dependencies=[Depends(verify_allowed_origin)]
)
api_router.include_router(
    purchases_api.router,
    prefix="/purchases",
    tags=["purchases"],
    dependencies=[Depends(verify_allowed_origin)]
)
