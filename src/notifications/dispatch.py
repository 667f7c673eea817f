"""Notification dispatcher — best-effort customer emails after checkout.

Dispatch never raises and never touches order state: a failed or crashing
delivery is logged and the caller carries on.
"""

import structlog

from checkout.currency import format_minor_units
from notifications.channel import EMAIL, get_channel
from notifications.channel.email_port import EmailMessage
from notifications.templates import ORDER_CONFIRMATION, get_template

logger = structlog.get_logger(__name__)

PLACEHOLDER_ADDRESS_LINE = "Address not provided"


def _address_lines(address) -> list[str]:
    if address is None or not address.address_1:
        return [PLACEHOLDER_ADDRESS_LINE]
    city_line = " ".join(part for part in (address.city, address.province, address.postal_code) if part)
    return [
        address.address_1,
        address.address_2,
        city_line,
        (address.country_code or "").upper(),
    ]


def order_confirmation_context(order) -> dict:
    """Flatten an order into display strings for the confirmation template."""
    currency = order.currency_code

    def money(amount):
        return format_minor_units(amount or 0, currency)

    address = order.shipping_address
    return {
        "display_id": order.display_id,
        "first_name": address.first_name if address is not None else None,
        "last_name": address.last_name if address is not None else None,
        "items": [
            {
                "title": item.title,
                "quantity": item.quantity,
                "unit_price": money(item.unit_price),
                "line_total": money(item.unit_price * item.quantity),
            }
            for item in order.items
        ],
        "subtotal": money(order.subtotal),
        "shipping_total": money(order.shipping_total),
        "tax_total": money(order.tax_total),
        "discount_total": money(order.discount_total),
        "total": money(order.total),
        "address_lines": _address_lines(address),
    }


def send_order_confirmation(order) -> None:
    """Email the order confirmation. Failures are logged, never raised."""
    log = logger.bind(order_id=str(order.id), display_id=order.display_id)

    if not order.email:
        log.warning("order_confirmation_skipped_no_email")
        return

    try:
        content = get_template(ORDER_CONFIRMATION).render(order_confirmation_context(order))
        result = get_channel(EMAIL).send(
            EmailMessage(
                to=order.email,
                subject=content["subject"],
                body=content["body"],
                tags=(ORDER_CONFIRMATION,),
            )
        )
    except Exception as exc:
        log.error("order_confirmation_dispatch_failed", error=str(exc), exc_info=True)
        return

    if result.sent:
        log.info("order_confirmation_sent", message_id=result.message_id)
    else:
        log.error("order_confirmation_delivery_failed", error=result.error)
