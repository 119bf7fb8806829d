"""
Application configuration settings.
"""
import json
from typing import Annotated
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator


def _parse_list(v):
    if v is None or v == "":
        return []
    if isinstance(v, str):
        s = v.strip()
        if s.startswith("["):
            try:
                parsed = json.loads(s)
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed]
            except Exception:
                # fall back to comma-splitting if JSON fails
                pass
        return [part.strip() for part in s.split(",") if part.strip()]
    if isinstance(v, (list, tuple, set, frozenset)):
        return [str(x).strip() for x in v]
    raise TypeError("value must be a list or a string")


class Settings(BaseSettings):
    """Application settings."""

    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env.server", case_sensitive=True, extra="ignore")

    PROJECT_NAME: str = "SignLearn Payments Server"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "payment verification and lesson entitlement backend for SignLearn"

    API_V1_STR: str = "/api/v1"

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False

    # Exact origins allowed to call the payment endpoints
    BACKEND_CORS_ORIGINS: Annotated[list[str], NoDecode] = [
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    # Any https subdomain of these parents is trusted as well
    TRUSTED_ORIGIN_PARENT_DOMAINS: Annotated[list[str], NoDecode] = [
        "lovable.app",
        "lovableproject.com",
    ]

    # Identities that bypass the paywall
    ADMIN_EMAILS: Annotated[list[str], NoDecode] = []

    LESSON_LEVELS: Annotated[list[str], NoDecode] = ["beginner", "intermediate", "advanced"]
    FREE_LEVELS: Annotated[list[str], NoDecode] = ["beginner"]

    # Price per level in pesewas
    LEVEL_PRICES_MINOR_UNITS: dict[str, int] = {
        "beginner": 0,
        "intermediate": 1000,
        "advanced": 1500,
    }

    PURCHASES_TABLE_NAME: str = "lesson_purchases"

    @field_validator("BACKEND_CORS_ORIGINS", "TRUSTED_ORIGIN_PARENT_DOMAINS", mode="before")
    @classmethod
    def parse_origins(cls, v):
        return [item.rstrip("/") for item in _parse_list(v)]

    @field_validator("ADMIN_EMAILS", "LESSON_LEVELS", "FREE_LEVELS", mode="before")
    @classmethod
    def parse_lowercase_list(cls, v):
        return [item.lower() for item in _parse_list(v)]


settings = Settings()
