"""Cart snapshot reader — the read side of a cart at payment time.

Reconciliation and payment initialization read carts only through here, so
a missing or empty cart is reported the same way on every path.
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.cart.cart import ShoppingCart
from checkout.errors import CartNotFound, EmptyCart
from checkout.shared.address import Address

logger = structlog.get_logger(__name__)


class AddressSource(Enum):
    CART = "cart"
    PAYMENT_METADATA = "payment_metadata"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class ResolvedAddresses:
    shipping: Address
    billing: Address
    source: AddressSource


def find_cart(cart_id) -> ShoppingCart | None:
    if not cart_id:
        return None
    try:
        return current_domain.repository_for(ShoppingCart).get(str(cart_id))
    except ObjectNotFoundError:
        return None


def load_cart(cart_id) -> ShoppingCart:
    """Fetch a cart with its line items, refusing missing and empty carts."""
    cart = find_cart(cart_id)
    if cart is None:
        raise CartNotFound(f"Cart {cart_id} not found", cart_id=str(cart_id))
    if cart.is_empty:
        raise EmptyCart(f"Cart {cart_id} has no items", cart_id=str(cart_id))
    return cart


def resolve_addresses(cart: ShoppingCart, correlation_metadata: dict | None) -> ResolvedAddresses:
    """Pick the addresses for an order.

    Priority: the cart's own addresses, then addresses embedded in the payment
    correlation metadata, then a placeholder. Billing falls back to shipping
    within each source.
    """
    if cart.shipping_address is not None or cart.billing_address is not None:
        return ResolvedAddresses(
            shipping=cart.shipping_address or cart.billing_address,
            billing=cart.billing_address or cart.shipping_address,
            source=AddressSource.CART,
        )

    metadata = correlation_metadata or {}
    shipping = Address.from_dict(metadata.get("shipping_address"))
    if shipping is not None:
        billing = Address.from_dict(metadata.get("billing_address")) or shipping
        return ResolvedAddresses(shipping=shipping, billing=billing, source=AddressSource.PAYMENT_METADATA)

    logger.warning("address_placeholder_used", cart_id=str(cart.id))
    placeholder = Address.placeholder()
    return ResolvedAddresses(shipping=placeholder, billing=placeholder, source=AddressSource.PLACEHOLDER)
