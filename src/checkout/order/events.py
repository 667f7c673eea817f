"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """A paid cart was materialized into an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    display_id = Integer(required=True)
    cart_id = Identifier(required=True)
    customer_id = Identifier()
    email = String()
    currency_code = String(required=True)
    total = Integer(required=True)
    payment_provider = String(required=True)
    payment_reference = String(required=True)
    completed_via = String(required=True)
    amount_mismatch = Boolean(default=False)
    placed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class PaymentStatusChanged:
    """A later payment notification moved the order's payment status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    source = String(required=True)
    changed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class LegacyPaymentStateImported:
    """Payment state was derived from a legacy metadata record."""

    __version__ = 1

    order_id = Identifier(required=True)
    derived_status = String(required=True)
    amount_unit_guessed = Boolean(default=False)


@checkout.event(part_of="Order")
class OrderFulfillmentUpdated:
    """The order moved forward in its fulfillment lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    updated_at = DateTime(required=True)
