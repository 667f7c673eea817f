"""Cart management — commands and handler.

Handles cart creation, checkout details (addresses, adjustments) and reset.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from checkout.cart.cart import ShoppingCart
from checkout.domain import checkout
from checkout.shared.address import Address


@checkout.command(part_of="ShoppingCart")
class CreateCart:
    """Open a new cart for a registered customer or a guest."""

    customer_id = Identifier()
    email = String(max_length=254)
    currency_code = String(max_length=3, default="GHS")
    region = String(max_length=100)


@checkout.command(part_of="ShoppingCart")
class UpdateCartAddresses:
    cart_id = Identifier(required=True)
    shipping_address = Text()  # JSON object
    billing_address = Text()  # JSON object
    email = String(max_length=254)


@checkout.command(part_of="ShoppingCart")
class SetCartAdjustments:
    """Record shipping, tax and discount amounts computed outside this service."""

    cart_id = Identifier(required=True)
    shipping_total = Integer(min_value=0)
    tax_total = Integer(min_value=0)
    discount_total = Integer(min_value=0)
    delivery_option = String(max_length=100)


@checkout.command(part_of="ShoppingCart")
class ResetCart:
    """Throw the cart away."""

    cart_id = Identifier(required=True)


def _address_from_json(raw, field_name):
    if not raw:
        return None
    data = json.loads(raw) if isinstance(raw, str) else raw
    address = Address.from_dict(data)
    if address is None:
        raise ValidationError({field_name: ["address_1 is required"]})
    return address


@checkout.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = ShoppingCart.create(
            currency_code=command.currency_code,
            customer_id=command.customer_id,
            email=command.email,
            region=command.region,
        )
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(cart.id)

    @handle(UpdateCartAddresses)
    def update_cart_addresses(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.set_addresses(
            shipping_address=_address_from_json(command.shipping_address, "shipping_address"),
            billing_address=_address_from_json(command.billing_address, "billing_address"),
            email=command.email,
        )
        repo.add(cart)

    @handle(SetCartAdjustments)
    def set_cart_adjustments(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.set_adjustments(
            shipping_total=command.shipping_total,
            tax_total=command.tax_total,
            discount_total=command.discount_total,
            delivery_option=command.delivery_option,
        )
        repo.add(cart)

    @handle(ResetCart)
    def reset_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        repo._dao.delete(cart)
