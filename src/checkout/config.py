"""Runtime settings for the Checkout domain, read from the environment.

Gateway credentials are optional: a provider without a secret is reported as
not configured (HTTP 503) instead of failing at import time.
"""

import os
from dataclasses import dataclass
from functools import lru_cache


def _clean_env(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip().strip("'").strip('"')


@dataclass(frozen=True)
class CheckoutSettings:
    paystack_secret_key: str = ""
    paystack_base_url: str = "https://api.paystack.co"
    flutterwave_secret_key: str = ""
    flutterwave_webhook_hash: str = ""
    flutterwave_base_url: str = "https://api.flutterwave.com/v3"
    frontend_url: str = "http://localhost:8000"
    gateway_timeout: float = 10.0
    amount_tolerance: int = 100  # minor units, one cedi by default
    default_currency: str = "GHS"
    fake_gateway_enabled: bool = False

    @classmethod
    def from_env(cls) -> "CheckoutSettings":
        frontend_url = _clean_env("FRONTEND_URL") or _clean_env("STORE_CORS").split(",")[0]
        return cls(
            paystack_secret_key=_clean_env("PAYSTACK_SECRET_KEY"),
            paystack_base_url=_clean_env("PAYSTACK_BASE_URL", cls.paystack_base_url).rstrip("/"),
            flutterwave_secret_key=_clean_env("FLUTTERWAVE_SECRET_KEY"),
            flutterwave_webhook_hash=_clean_env("FLUTTERWAVE_WEBHOOK_HASH"),
            flutterwave_base_url=_clean_env("FLUTTERWAVE_BASE_URL", cls.flutterwave_base_url).rstrip("/"),
            frontend_url=(frontend_url or cls.frontend_url).rstrip("/"),
            gateway_timeout=float(_clean_env("CHECKOUT_GATEWAY_TIMEOUT", "10")),
            amount_tolerance=int(_clean_env("CHECKOUT_AMOUNT_TOLERANCE", "100")),
            default_currency=_clean_env("CHECKOUT_DEFAULT_CURRENCY", cls.default_currency).upper(),
            fake_gateway_enabled=_clean_env("CHECKOUT_FAKE_GATEWAY", "false").lower() == "true",
        )


@lru_cache(maxsize=1)
def get_settings() -> CheckoutSettings:
    """Return the process-wide settings. Call ``get_settings.cache_clear()`` after changing the env."""
    return CheckoutSettings.from_env()
