"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Boolean, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="ShoppingCart")
class CartItemAdded:
    """A variant was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    variant_id = String(required=True)
    quantity = Integer(required=True)
    unit_price = Integer(required=True)


@checkout.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart line item was changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@checkout.event(part_of="ShoppingCart")
class CartItemRemoved:
    """A line item was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@checkout.event(part_of="ShoppingCart")
class CartAddressesUpdated:
    """Shipping and/or billing address were set on the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    has_shipping_address = Boolean(default=False)
    has_billing_address = Boolean(default=False)
