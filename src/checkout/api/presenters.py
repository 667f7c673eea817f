"""Aggregate → response schema conversion for the Checkout API."""

from checkout.api.schemas import (
    AddressResponse,
    CartLineItemResponse,
    CartResponse,
    OrderItemResponse,
    OrderResponse,
    PaymentStateResponse,
    PaymentTransitionResponse,
)
from checkout.currency import format_minor_units


def _iso(value):
    return value.isoformat() if value is not None else None


def address_response(address) -> AddressResponse | None:
    if address is None:
        return None
    return AddressResponse(
        first_name=address.first_name,
        last_name=address.last_name,
        address_1=address.address_1,
        address_2=address.address_2,
        city=address.city,
        province=address.province,
        postal_code=address.postal_code,
        country_code=address.country_code,
        phone=address.phone,
        provided=bool(address.provided),
    )


def cart_response(cart) -> CartResponse:
    return CartResponse(
        id=str(cart.id),
        customer_id=str(cart.customer_id) if cart.customer_id else None,
        email=cart.email,
        currency_code=cart.currency_code,
        region=cart.region,
        items=[
            CartLineItemResponse(
                id=str(item.id),
                variant_id=item.variant_id,
                product_id=item.product_id,
                title=item.title,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.line_total,
            )
            for item in cart.items
        ],
        shipping_address=address_response(cart.shipping_address),
        billing_address=address_response(cart.billing_address),
        subtotal=cart.subtotal,
        shipping_total=cart.shipping_total or 0,
        tax_total=cart.tax_total or 0,
        discount_total=cart.discount_total or 0,
        total=cart.total,
        total_display=format_minor_units(cart.total, cart.currency_code),
    )


def payment_response(payment) -> PaymentStateResponse | None:
    if payment is None:
        return None
    return PaymentStateResponse(
        provider=payment.provider,
        reference=payment.reference,
        transaction_id=payment.transaction_id,
        channel=payment.channel,
        status=payment.status,
        amount=payment.amount,
        expected_amount=payment.expected_amount,
        amount_delta=payment.amount_delta,
        amount_mismatch=bool(payment.amount_mismatch),
        mismatch_within_tolerance=payment.mismatch_within_tolerance is not False,
        paid_at=payment.paid_at,
        captured_at=_iso(payment.captured_at),
        failed_at=_iso(payment.failed_at),
        failure_reason=payment.failure_reason,
        gateway_response=payment.gateway_response,
        card_last4=payment.card_last4,
        card_bank=payment.card_bank,
        card_type=payment.card_type,
    )


def order_response(order) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        display_id=order.display_id,
        status=order.status,
        fulfillment_status=order.fulfillment_status,
        payment_status=order.payment_status,
        cart_id=str(order.cart_id),
        customer_id=str(order.customer_id) if order.customer_id else None,
        email=order.email,
        currency_code=order.currency_code,
        region=order.region,
        items=[
            OrderItemResponse(
                variant_id=item.variant_id,
                product_id=item.product_id,
                title=item.title,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in order.items
        ],
        shipping_address=address_response(order.shipping_address),
        billing_address=address_response(order.billing_address),
        subtotal=order.subtotal,
        shipping_total=order.shipping_total,
        tax_total=order.tax_total,
        discount_total=order.discount_total,
        total=order.total,
        total_display=format_minor_units(order.total, order.currency_code),
        payment=payment_response(order.payment),
        payment_events=[
            PaymentTransitionResponse(
                status=event.status,
                outcome=event.outcome,
                source=event.source,
                note=event.note,
                occurred_at=_iso(event.occurred_at),
            )
            for event in sorted(order.payment_events, key=lambda e: e.occurred_at)
        ],
        completed_via=order.completed_via,
        address_source=order.address_source,
        created_at=_iso(order.created_at),
    )
