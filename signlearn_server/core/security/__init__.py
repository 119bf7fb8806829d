"""Security modules."""
from signlearn_server.core.security.origin_guard import (
    OriginGuard,
    verify_allowed_origin,
)

__all__ = [
    "OriginGuard",
    "verify_allowed_origin",
]
