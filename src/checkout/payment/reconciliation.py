"""Reconciliation engine — the single authority on turning a payment into an order.

Both trigger paths, the browser redirect (verify) and the gateway webhook,
end here with a ``VerifiedPayment``. The handler runs in one unit of work:

    0. an order already exists for (provider, reference)
           → record the notification on it, ALREADY_MATERIALIZED
    1. no cart_id in the correlation metadata → MissingCartReference
    2. cart gone → CartNotFound; cart empty → EmptyCart
    3. compare cart total with the verified amount (mismatch is recorded)
    4. gateway status is not success → PaymentNotSuccessful
    5. materialize the order and delete the cart → MATCHED / AMOUNT_MISMATCH
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from checkout.cart.snapshot import find_cart, resolve_addresses
from checkout.config import get_settings
from checkout.domain import checkout
from checkout.errors import CartNotFound, EmptyCart, MissingCartReference, PaymentNotSuccessful
from checkout.gateway.port import VerifiedPayment, VerifiedStatus
from checkout.order.materializer import materialize
from checkout.order.order import Order, PaymentStatus
from checkout.order.queries import find_order_by_cart, find_order_by_payment_key
from checkout.payment.amounts import AmountCheck, check_amount

logger = structlog.get_logger(__name__)


class ReconciliationOutcome(Enum):
    MATCHED = "matched"
    AMOUNT_MISMATCH = "amount_mismatch"
    ALREADY_MATERIALIZED = "already_materialized"


@dataclass(frozen=True)
class ReconciliationResult:
    outcome: ReconciliationOutcome
    order_id: str
    amount_check: AmountCheck | None = None

    @property
    def created_order(self) -> bool:
        return self.outcome != ReconciliationOutcome.ALREADY_MATERIALIZED


_PAYMENT_STATUS_FOR = {
    VerifiedStatus.SUCCESS.value: PaymentStatus.CAPTURED,
    VerifiedStatus.FAILED.value: PaymentStatus.FAILED,
    VerifiedStatus.PENDING.value: PaymentStatus.AWAITING,
}


def _record_on_existing(order, payment: VerifiedPayment, source: str, tolerance: int) -> ReconciliationResult:
    stored_amount = order.payment.amount if order.payment is not None else None
    outcome = order.apply_payment_update(
        status=_PAYMENT_STATUS_FOR[payment.status].value,
        source=source,
        failure_reason=payment.gateway_response if payment.status == VerifiedStatus.FAILED.value else None,
        gateway_response=payment.gateway_response,
        amount=payment.amount,
        currency=payment.currency,
    )
    current_domain.repository_for(Order).add(order)

    logger.info(
        "payment_already_materialized",
        order_id=str(order.id),
        provider=payment.provider,
        reference=payment.reference,
        reported_status=payment.status,
        transition=outcome.value,
        source=source,
    )
    amount_check = None
    if stored_amount is not None and stored_amount != payment.amount:
        amount_check = AmountCheck(
            expected=stored_amount, actual=payment.amount, currency=order.currency_code, tolerance=tolerance
        )
    return ReconciliationResult(
        outcome=ReconciliationOutcome.ALREADY_MATERIALIZED, order_id=str(order.id), amount_check=amount_check
    )


def reconcile(payment: VerifiedPayment, source: str, tolerance: int) -> ReconciliationResult:
    log = logger.bind(provider=payment.provider, reference=payment.reference, source=source)

    existing = find_order_by_payment_key(payment.payment_key)
    if existing is not None:
        return _record_on_existing(existing, payment, source, tolerance)

    cart_id = payment.cart_id
    if not cart_id:
        log.error("payment_missing_cart_reference", amount=payment.amount, status=payment.status)
        raise MissingCartReference(
            "Payment carries no cart_id; manual reconciliation required",
            provider=payment.provider,
            reference=payment.reference,
        )

    cart = find_cart(cart_id)
    if cart is None:
        existing = find_order_by_payment_key(payment.payment_key)
        if existing is not None:
            return _record_on_existing(existing, payment, source, tolerance)

        other = find_order_by_cart(cart_id)
        if other is not None:
            log.warning(
                "cart_materialized_under_other_reference",
                cart_id=cart_id,
                order_id=str(other.id),
                order_reference=other.payment.reference if other.payment else None,
            )
            raise CartNotFound(
                f"Cart {cart_id} was already converted to another order",
                cart_id=cart_id,
                order_id=str(other.id),
            )
        raise CartNotFound(f"Cart {cart_id} not found", cart_id=cart_id)

    if cart.is_empty:
        raise EmptyCart(f"Cart {cart_id} has no items", cart_id=cart_id)

    amount_check = check_amount(
        expected=cart.total,
        actual=payment.amount,
        currency=cart.currency_code,
        tolerance=tolerance,
        cart_id=cart_id,
        reference=payment.reference,
    )

    if not payment.is_successful:
        log.info("payment_not_successful", cart_id=cart_id, status=payment.status)
        raise PaymentNotSuccessful(
            f"Payment {payment.reference} is {payment.status}",
            reference=payment.reference,
            status=payment.status,
        )

    addresses = resolve_addresses(cart, payment.metadata)
    order = materialize(cart, payment, addresses, amount_check, completed_via=source)

    outcome = ReconciliationOutcome.AMOUNT_MISMATCH if amount_check.mismatch else ReconciliationOutcome.MATCHED
    return ReconciliationResult(outcome=outcome, order_id=str(order.id), amount_check=amount_check)


@checkout.command(part_of="Order")
class ReconcilePayment:
    """Reconcile a verified gateway payment against its cart."""

    payment = Text(required=True)  # JSON: VerifiedPayment.to_dict()
    source = String(required=True, max_length=50)


@checkout.command_handler(part_of=Order)
class ReconcilePaymentHandler:
    @handle(ReconcilePayment)
    def reconcile_payment(self, command):
        payment = VerifiedPayment.from_json(command.payment)
        return reconcile(payment, command.source, tolerance=get_settings().amount_tolerance)
