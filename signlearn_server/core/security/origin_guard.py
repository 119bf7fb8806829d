"""Calling-origin allow-listing for the payment endpoints."""
import re
from typing import Iterable, Optional

import logfire
from fastapi import Depends, Header, HTTPException

from signlearn_server.core.config.general_config import settings
from signlearn_server.core.exceptions import OriginDenied


class OriginGuard:
    """
    Decides whether a web origin may call the payment endpoints.

    An origin is allowed when it is in the exact allow-list, or when it is an
    https origin whose host is a subdomain of one of the trusted parent domains.
    Anything else, including a missing origin, is denied.
    """

    def __init__(self, allowed_origins: Iterable[str], trusted_parent_domains: Iterable[str] = ()):
        self.allowed_origins = {origin.rstrip("/").lower() for origin in allowed_origins}
        self.trusted_parent_domains = [domain.strip(".").lower() for domain in trusted_parent_domains]
        self._pattern = re.compile(self.origin_regex) if self.trusted_parent_domains else None

    @property
    def origin_regex(self) -> Optional[str]:
        """Regex for the wildcard rules, shared with the CORS middleware."""
        if not self.trusted_parent_domains:
            return None
        parents = "|".join(re.escape(domain) for domain in self.trusted_parent_domains)
        return rf"^https://([a-z0-9]([a-z0-9-]*[a-z0-9])?\.)+({parents})$"

    def is_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False
        normalized = origin.strip().rstrip("/").lower()
        if normalized in self.allowed_origins:
            return True
        return bool(self._pattern and self._pattern.fullmatch(normalized))

    def check(self, origin: Optional[str]) -> str:
        """
        Raises:
            OriginDenied: If the origin is not trusted
        """
        if not self.is_allowed(origin):
            logfire.warning("Request rejected: untrusted origin {origin}", origin=origin)
            raise OriginDenied()
        return origin


def get_origin_guard() -> OriginGuard:
    return OriginGuard(settings.BACKEND_CORS_ORIGINS, settings.TRUSTED_ORIGIN_PARENT_DOMAINS)


async def verify_allowed_origin(
    origin: Optional[str] = Header(None),
    guard: OriginGuard = Depends(get_origin_guard)
) -> str:
    """
    FastAPI dependency refusing requests from untrusted origins.

    Returns:
        The allowed origin

    Raises:
        HTTPException: 403 when the origin is missing or not trusted
    """
    try:
        return guard.check(origin)
    except OriginDenied as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
