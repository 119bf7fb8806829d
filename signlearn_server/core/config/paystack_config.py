"""Paystack gateway configuration settings."""
import os
import logfire

from dotenv import load_dotenv
load_dotenv()


class PaystackConfig:
    """Configuration for the Paystack transaction verification API."""

    # Server-held secret, sent as a Bearer token. Never accepted from callers.
    SECRET_KEY: str = os.getenv("PAYSTACK_SECRET_KEY", "")

    BASE_URL: str = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")

    # Upper bound for one verify call, in seconds
    TIMEOUT_SECONDS: float = float(os.getenv("PAYSTACK_TIMEOUT_SECONDS", "10.0"))

    CURRENCY: str = os.getenv("PAYSTACK_CURRENCY", "GHS")

    SUCCESS_STATUS = "success"

    @classmethod
    def validate(cls, strict: bool = False) -> None:
        """
        Validate that required configuration is set.

        Args:
            strict: If True, raise exception on missing config. If False, only log warnings.
        """
        if not cls.SECRET_KEY:
            msg = (
                "Paystack secret key is not set. "
                "Please set the environment variable PAYSTACK_SECRET_KEY."
            )
            if strict:
                raise ValueError(f"Missing required Paystack configuration: {msg}")
            logfire.warning(f"Warning: {msg}")


# Validate configuration on module import (non-strict mode for development)
PaystackConfig.validate(strict=False)
