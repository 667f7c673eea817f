"""Order aggregate (CQRS) — the immutable record of a paid cart.

An Order is created exactly once per paid cart, by the reconciliation engine.
Line items, totals and addresses are snapshotted at creation and never
rewritten. Afterwards only two things move:

    payment.status      — through apply_payment_update(), every notification
                          appending a PaymentTransition
    fulfillment_status  — forward only, through record_fulfillment():
                          NOT_FULFILLED → FULFILLED → SHIPPED → DELIVERED

A captured payment is final: a late "failed" notification is recorded and
ignored.
"""

from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from checkout.domain import checkout
from checkout.order.events import (
    LegacyPaymentStateImported,
    OrderFulfillmentUpdated,
    OrderPlaced,
    PaymentStatusChanged,
)
from checkout.shared.address import Address

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELED = "canceled"


class FulfillmentStatus(Enum):
    NOT_FULFILLED = "not_fulfilled"
    FULFILLED = "fulfilled"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


class PaymentStatus(Enum):
    NOT_PAID = "not_paid"
    AWAITING = "awaiting"
    CAPTURED = "captured"
    FAILED = "failed"


class CompletedVia(Enum):
    PAYMENT_VERIFICATION = "payment_verification"
    WEBHOOK = "webhook"


class TransitionOutcome(Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


_FULFILLMENT_ORDER = [
    FulfillmentStatus.NOT_FULFILLED,
    FulfillmentStatus.FULFILLED,
    FulfillmentStatus.SHIPPED,
    FulfillmentStatus.DELIVERED,
]


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@checkout.value_object(part_of="Order")
class PaymentState:
    """The single authoritative payment record of an order.

    Amounts are minor units. ``amount`` is what the gateway collected,
    ``expected_amount`` the cart total at materialization.
    """

    provider = String(max_length=50)
    reference = String(max_length=255)
    transaction_id = String(max_length=255)
    channel = String(max_length=50)
    status = String(choices=PaymentStatus, default=PaymentStatus.NOT_PAID.value)
    amount = Integer()
    expected_amount = Integer()
    amount_delta = Integer(default=0)
    amount_mismatch = Boolean(default=False)
    mismatch_within_tolerance = Boolean(default=True)
    paid_at = String(max_length=50)  # as reported by the gateway
    captured_at = DateTime()
    failed_at = DateTime()
    failure_reason = String(max_length=500)
    gateway_response = String(max_length=255)
    card_last4 = String(max_length=4)
    card_bank = String(max_length=100)
    card_type = String(max_length=50)


_PAYMENT_STATE_FIELDS = (
    "provider",
    "reference",
    "transaction_id",
    "channel",
    "status",
    "amount",
    "expected_amount",
    "amount_delta",
    "amount_mismatch",
    "mismatch_within_tolerance",
    "paid_at",
    "captured_at",
    "failed_at",
    "failure_reason",
    "gateway_response",
    "card_last4",
    "card_bank",
    "card_type",
)


def _evolve(state: PaymentState, **changes) -> PaymentState:
    values = {name: getattr(state, name) for name in _PAYMENT_STATE_FIELDS}
    values.update(changes)
    return PaymentState(**values)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@checkout.entity(part_of="Order")
class OrderItem:
    """Snapshot of a cart line item at the moment of payment."""

    variant_id = String(required=True, max_length=255)
    product_id = String(max_length=255)
    title = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Integer(required=True, min_value=0)  # minor units


@checkout.entity(part_of="Order")
class PaymentTransition:
    """One payment notification applied to (or recorded against) the order."""

    status = String(required=True, choices=PaymentStatus)
    outcome = String(choices=TransitionOutcome, default=TransitionOutcome.APPLIED.value)
    source = String(required=True, max_length=50)
    note = Text()
    occurred_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@checkout.aggregate
class Order:
    display_id = Integer(required=True, unique=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    fulfillment_status = String(choices=FulfillmentStatus, default=FulfillmentStatus.NOT_FULFILLED.value)
    cart_id = Identifier(required=True)
    customer_id = Identifier()
    email = String(max_length=254)
    currency_code = String(required=True, max_length=3)
    region = String(max_length=100)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    subtotal = Integer(default=0)
    shipping_total = Integer(default=0)
    tax_total = Integer(default=0)
    discount_total = Integer(default=0)
    total = Integer(default=0)
    payment = ValueObject(PaymentState)
    payment_key = String(max_length=320, unique=True)
    completed_via = String(choices=CompletedVia)
    address_source = String(max_length=50)
    payment_events = HasMany(PaymentTransition)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order must have at least one item"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, cart, payment, addresses, amount_check, completed_via, display_id):
        """Materialize a paid cart.

        Args:
            cart: The ShoppingCart being paid for.
            payment: The VerifiedPayment reported by the gateway.
            addresses: ResolvedAddresses chosen for the order.
            amount_check: AmountCheck of cart total against payment amount.
            completed_via: CompletedVia value naming the trigger path.
            display_id: Next sequential, human-facing order number.
        """
        now = datetime.now(UTC)
        authorization = payment.authorization

        payment_state = PaymentState(
            provider=payment.provider,
            reference=payment.reference,
            transaction_id=payment.transaction_id,
            channel=payment.channel,
            status=PaymentStatus.CAPTURED.value,
            amount=payment.amount,
            expected_amount=amount_check.expected,
            amount_delta=amount_check.delta,
            amount_mismatch=amount_check.mismatch,
            mismatch_within_tolerance=amount_check.within_tolerance,
            paid_at=payment.paid_at,
            captured_at=now,
            gateway_response=payment.gateway_response,
            card_last4=authorization.last4 if authorization else None,
            card_bank=authorization.bank if authorization else None,
            card_type=authorization.card_type if authorization else None,
        )

        order = cls(
            display_id=display_id,
            cart_id=str(cart.id),
            customer_id=cart.customer_id or payment.metadata.get("customer_id"),
            email=cart.email or payment.customer_email or payment.metadata.get("customer_email"),
            currency_code=cart.currency_code,
            region=cart.region,
            items=[
                OrderItem(
                    variant_id=item.variant_id,
                    product_id=item.product_id,
                    title=item.title,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in cart.items
            ],
            shipping_address=addresses.shipping,
            billing_address=addresses.billing,
            subtotal=cart.subtotal,
            shipping_total=cart.shipping_total,
            tax_total=cart.tax_total,
            discount_total=cart.discount_total,
            total=cart.total,
            payment=payment_state,
            payment_key=payment.payment_key,
            completed_via=completed_via,
            address_source=addresses.source.value,
            payment_events=[
                PaymentTransition(
                    status=PaymentStatus.CAPTURED.value,
                    source=completed_via,
                    note="amount mismatch" if amount_check.mismatch else None,
                    occurred_at=now,
                )
            ],
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                display_id=display_id,
                cart_id=str(cart.id),
                customer_id=str(order.customer_id) if order.customer_id else None,
                email=order.email,
                currency_code=order.currency_code,
                total=order.total,
                payment_provider=payment.provider,
                payment_reference=payment.reference,
                completed_via=completed_via,
                amount_mismatch=amount_check.mismatch,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    @property
    def payment_status(self) -> str:
        """The order's payment status, read from its PaymentState only."""
        if self.payment is None or not self.payment.status:
            return PaymentStatus.NOT_PAID.value
        return self.payment.status

    def observation_disagreement(self, amount=None, currency=None):
        """Describe how a later payment observation disagrees with the stored one, or None."""
        differences = []
        stored_amount = self.payment.amount if self.payment is not None else None
        if amount is not None and stored_amount is not None and amount != stored_amount:
            differences.append(f"amount {amount} != {stored_amount}")
        if currency and self.currency_code and currency.upper() != self.currency_code.upper():
            differences.append(f"currency {currency.upper()} != {self.currency_code.upper()}")
        return "; ".join(differences) or None

    def apply_payment_update(
        self, status, source, note=None, failure_reason=None, gateway_response=None, amount=None, currency=None
    ):
        """Record a payment notification that arrived after the order exists.

        Returns the TransitionOutcome. Captured is final: a repeat capture is
        a duplicate, anything else on a captured order is ignored. An
        observation whose amount or currency disagrees with the stored payment
        is ignored whatever its status, and the difference goes in the note.
        """
        new_status = PaymentStatus(status)
        current = PaymentStatus(self.payment_status)
        now = datetime.now(UTC)
        disagreement = self.observation_disagreement(amount, currency)

        if disagreement:
            outcome = TransitionOutcome.IGNORED
            note = f"{note}; {disagreement}" if note else disagreement
            logger.warning(
                "payment_observation_mismatch",
                order_id=str(self.id),
                reported_status=new_status.value,
                stored_status=current.value,
                disagreement=disagreement,
                source=source,
            )
        elif current == new_status:
            outcome = TransitionOutcome.DUPLICATE
        elif current == PaymentStatus.CAPTURED:
            outcome = TransitionOutcome.IGNORED
            logger.warning(
                "payment_update_ignored_on_captured_order",
                order_id=str(self.id),
                reported_status=new_status.value,
                source=source,
            )
        else:
            outcome = TransitionOutcome.APPLIED

        self.add_payment_events(
            PaymentTransition(
                status=new_status.value,
                outcome=outcome.value,
                source=source,
                note=note,
                occurred_at=now,
            )
        )

        if outcome == TransitionOutcome.APPLIED:
            changes = {"status": new_status.value}
            if new_status == PaymentStatus.CAPTURED:
                changes["captured_at"] = now
            elif new_status == PaymentStatus.FAILED:
                changes["failed_at"] = now
                changes["failure_reason"] = failure_reason
            if gateway_response:
                changes["gateway_response"] = gateway_response
            self.payment = _evolve(self.payment or PaymentState(), **changes)

            self.raise_(
                PaymentStatusChanged(
                    order_id=str(self.id),
                    previous_status=current.value,
                    new_status=new_status.value,
                    source=source,
                    changed_at=now,
                )
            )

        self.updated_at = now
        return outcome

    def import_legacy_payment(self, payment_state, note=None, amount_unit_guessed=False):
        """Adopt a payment state derived from legacy metadata. Only for orders without one."""
        if self.payment_status != PaymentStatus.NOT_PAID.value:
            raise ValidationError({"payment": ["Order already has a payment state"]})

        now = datetime.now(UTC)
        self.payment = payment_state
        if payment_state.provider and payment_state.reference:
            self.payment_key = f"{payment_state.provider}:{payment_state.reference}"
        self.add_payment_events(
            PaymentTransition(
                status=payment_state.status,
                source="legacy_import",
                note=note,
                occurred_at=now,
            )
        )
        self.updated_at = now

        self.raise_(
            LegacyPaymentStateImported(
                order_id=str(self.id),
                derived_status=payment_state.status,
                amount_unit_guessed=amount_unit_guessed,
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def record_fulfillment(self, fulfillment_status):
        """Move the order forward in fulfillment. Items, addresses and payment are untouched."""
        target = FulfillmentStatus(fulfillment_status)
        current = FulfillmentStatus(self.fulfillment_status)
        if _FULFILLMENT_ORDER.index(target) <= _FULFILLMENT_ORDER.index(current):
            raise ValidationError(
                {"fulfillment_status": [f"Cannot move fulfillment from {current.value} to {target.value}"]}
            )

        now = datetime.now(UTC)
        self.fulfillment_status = target.value
        if target == FulfillmentStatus.DELIVERED:
            self.status = OrderStatus.COMPLETED.value
        self.updated_at = now

        self.raise_(
            OrderFulfillmentUpdated(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                updated_at=now,
            )
        )
