"""Payment application services — initialize, verify and reconcile.

These sit between the HTTP routes and the domain: they talk to the gateway
outside any unit of work, hand the verified payment to the ReconcilePayment
command, and fire the confirmation email once the order has committed.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from checkout.cart.snapshot import load_cart
from checkout.config import get_settings
from checkout.errors import CheckoutError, InvalidAmount, MaterializationFailed
from checkout.gateway import get_provider
from checkout.gateway.port import InitializedPayment, VerifiedPayment
from checkout.order.order import CompletedVia, Order
from checkout.order.queries import find_order_by_payment_key, get_order
from checkout.payment.locks import reconciliation_lock
from checkout.payment.reconciliation import (
    ReconcilePayment,
    ReconciliationOutcome,
    ReconciliationResult,
)
from notifications.dispatch import send_order_confirmation

logger = structlog.get_logger(__name__)


def default_callback_url() -> str:
    return f"{get_settings().frontend_url}/checkout/verify"


def initialize_payment(
    provider_name: str,
    cart_id: str,
    email: str | None = None,
    customer_id: str | None = None,
    callback_url: str | None = None,
    channels: list[str] | None = None,
    metadata: dict | None = None,
) -> InitializedPayment:
    """Open a hosted payment session for the cart's current total."""
    provider = get_provider(provider_name)
    cart = load_cart(cart_id)

    amount = cart.total
    if amount <= 0:
        raise InvalidAmount(f"Cart {cart_id} total must be greater than zero", cart_id=str(cart_id))

    email = email or cart.email
    if not email:
        raise ValidationError({"email": ["An email address is required to initialize a payment"]})

    correlation = dict(metadata or {})
    correlation.update(
        {
            "cart_id": str(cart.id),
            "customer_id": customer_id or (str(cart.customer_id) if cart.customer_id else None),
            "customer_email": email,
        }
    )
    if cart.shipping_address is not None:
        correlation["shipping_address"] = cart.shipping_address.to_dict()
    if cart.billing_address is not None:
        correlation["billing_address"] = cart.billing_address.to_dict()
    correlation = {key: value for key, value in correlation.items() if value is not None}

    initialized = provider.initialize(
        amount=amount,
        currency=cart.currency_code,
        email=email,
        callback_url=callback_url or default_callback_url(),
        metadata=correlation,
        channels=channels,
    )
    logger.info(
        "payment_initialized",
        provider=provider.name,
        cart_id=str(cart.id),
        reference=initialized.reference,
        amount=amount,
        currency=cart.currency_code,
    )
    return initialized


def reconcile_payment(payment: VerifiedPayment, source: str) -> tuple[ReconciliationResult, Order]:
    """Run the reconciliation command and, for a new order, send its confirmation."""
    command = ReconcilePayment(payment=payment.to_json(), source=source)
    try:
        # The handler looks the order up again once the lock is held
        with reconciliation_lock(payment.payment_key, payment.cart_id):
            result = current_domain.process(command, asynchronous=False)
    except CheckoutError:
        raise
    except ValidationError as exc:
        # Another process materialized the same payment first
        if "payment_key" in (exc.messages or {}):
            existing = find_order_by_payment_key(payment.payment_key)
            if existing is not None:
                logger.info(
                    "payment_materialized_concurrently",
                    order_id=str(existing.id),
                    provider=payment.provider,
                    reference=payment.reference,
                )
                return (
                    ReconciliationResult(
                        outcome=ReconciliationOutcome.ALREADY_MATERIALIZED,
                        order_id=str(existing.id),
                    ),
                    existing,
                )
        logger.error("order_materialization_failed", reference=payment.reference, error=str(exc))
        raise MaterializationFailed(reference=payment.reference, cart_id=payment.cart_id) from exc
    except Exception as exc:
        logger.error("order_materialization_failed", reference=payment.reference, error=str(exc), exc_info=True)
        raise MaterializationFailed(reference=payment.reference, cart_id=payment.cart_id) from exc

    order = get_order(result.order_id)
    if result.created_order:
        send_order_confirmation(order)
    return result, order


def verify_payment(provider_name: str, reference: str) -> tuple[ReconciliationResult, Order]:
    """Browser-redirect path: look the payment up at the gateway and reconcile it."""
    if not reference:
        raise ValidationError({"reference": ["Payment reference is required"]})

    provider = get_provider(provider_name)
    payment = provider.verify(reference)
    logger.info(
        "payment_verified",
        provider=provider.name,
        reference=payment.reference,
        status=payment.status,
        amount=payment.amount,
    )
    return reconcile_payment(payment, CompletedVia.PAYMENT_VERIFICATION.value)
