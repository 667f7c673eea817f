"""Shopping Cart aggregate (CQRS) — the mutable basket that becomes an Order once paid.

Line item prices and adjustments are integer minor units. Totals are derived
from the line items on every read and never stored, so a cart's total always
agrees with its contents. The cart is deleted in the same unit of work that
materializes its order.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from checkout.cart.events import (
    CartAddressesUpdated,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from checkout.domain import checkout
from checkout.shared.address import Address


@checkout.entity(part_of="ShoppingCart")
class CartLineItem:
    variant_id = String(required=True, max_length=255)
    product_id = String(max_length=255)
    title = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Integer(required=True, min_value=0)  # minor units
    added_at = DateTime()

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@checkout.aggregate
class ShoppingCart:
    customer_id = Identifier()  # Nullable for guest carts
    email = String(max_length=254)
    currency_code = String(max_length=3, default="GHS")
    region = String(max_length=100)
    items = HasMany(CartLineItem)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    shipping_total = Integer(default=0, min_value=0)
    tax_total = Integer(default=0, min_value=0)
    discount_total = Integer(default=0, min_value=0)
    delivery_option = String(max_length=100)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, currency_code="GHS", customer_id=None, email=None, region=None):
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            email=email,
            currency_code=(currency_code or "GHS").upper(),
            region=region,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    @property
    def subtotal(self) -> int:
        return sum(item.line_total for item in self.items)

    @property
    def total(self) -> int:
        return max(self.subtotal + self.shipping_total + self.tax_total - self.discount_total, 0)

    @property
    def is_empty(self) -> bool:
        return not self.items

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def _find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    def add_item(self, variant_id, title, quantity, unit_price, product_id=None):
        """Add a variant to the cart, or increase its quantity if already present.

        ``unit_price`` must already be in minor units.
        """
        existing = next((i for i in self.items if str(i.variant_id) == str(variant_id)), None)
        now = datetime.now(UTC)

        if existing:
            existing.quantity += quantity
            item_id = str(existing.id)
        else:
            item = CartLineItem(
                variant_id=variant_id,
                product_id=product_id,
                title=title,
                quantity=quantity,
                unit_price=unit_price,
                added_at=now,
            )
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                variant_id=str(variant_id),
                quantity=quantity,
                unit_price=unit_price,
            )
        )
        return item_id

    def update_item_quantity(self, item_id, new_quantity):
        item = self._find_item(item_id)
        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        item = self._find_item(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    # -------------------------------------------------------------------
    # Checkout details
    # -------------------------------------------------------------------
    def set_addresses(self, shipping_address=None, billing_address=None, email=None):
        """Record the addresses entered at checkout. Billing defaults to shipping."""
        if shipping_address is None and billing_address is None and email is None:
            raise ValidationError({"cart": ["Nothing to update"]})

        if shipping_address is not None:
            self.shipping_address = shipping_address
            if billing_address is None and self.billing_address is None:
                billing_address = shipping_address
        if billing_address is not None:
            self.billing_address = billing_address
        if email:
            self.email = email
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartAddressesUpdated(
                cart_id=str(self.id),
                has_shipping_address=self.shipping_address is not None,
                has_billing_address=self.billing_address is not None,
            )
        )

    def set_adjustments(self, shipping_total=None, tax_total=None, discount_total=None, delivery_option=None):
        """Apply externally computed shipping, tax and discount amounts (minor units)."""
        if shipping_total is not None:
            self.shipping_total = shipping_total
        if tax_total is not None:
            self.tax_total = tax_total
        if discount_total is not None:
            self.discount_total = discount_total
        if delivery_option is not None:
            self.delivery_option = delivery_option
        self.updated_at = datetime.now(UTC)
