"""Payment provider registry.

Provides get_provider() / set_provider() to swap implementations:
- PaystackProvider and FlutterwaveProvider, built from CheckoutSettings
- FakeProvider for development (CHECKOUT_FAKE_GATEWAY=true) and testing

Adapters are imported inside the factory: they import ``checkout.gateway.*``
themselves, and the domain traverses this package on ``init()``.
"""

from checkout.config import get_settings
from checkout.errors import UnknownProvider
from checkout.gateway.port import PaymentProvider

_providers: dict[str, PaymentProvider] = {}


def _build(name: str) -> PaymentProvider | None:
    settings = get_settings()
    if name == "paystack":
        from checkout.gateway.paystack import PaystackProvider

        return PaystackProvider(
            secret_key=settings.paystack_secret_key,
            base_url=settings.paystack_base_url,
            timeout=settings.gateway_timeout,
        )
    if name == "flutterwave":
        from checkout.gateway.flutterwave import FlutterwaveProvider

        return FlutterwaveProvider(
            secret_key=settings.flutterwave_secret_key,
            webhook_hash=settings.flutterwave_webhook_hash,
            base_url=settings.flutterwave_base_url,
            timeout=settings.gateway_timeout,
        )
    if name == "fake" and settings.fake_gateway_enabled:
        from checkout.gateway.fake import FakeProvider

        return FakeProvider()
    return None


def get_provider(name: str) -> PaymentProvider:
    """Return the provider registered under ``name``. Raises ``UnknownProvider``."""
    key = (name or "").lower()
    if key not in _providers:
        provider = _build(key)
        if provider is None:
            raise UnknownProvider(f"Unknown payment provider: {name}", provider=name)
        _providers[key] = provider
    return _providers[key]


def set_provider(provider: PaymentProvider) -> None:
    """Register or override a provider (useful for tests)."""
    _providers[provider.name] = provider


def reset_providers() -> None:
    """Forget all providers; they are rebuilt from settings on next use."""
    _providers.clear()
