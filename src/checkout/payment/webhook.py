"""Gateway webhook handling.

A webhook is rejected (400) only when its signature is missing or wrong.
Once the signature checks out the gateway always gets an acknowledgement,
whatever happens downstream, so it stops retrying; failures are logged for
follow-up instead. An unconfigured provider is acknowledged without doing
anything.
"""

import structlog

from checkout.errors import CheckoutError
from checkout.gateway import get_provider
from checkout.order.order import CompletedVia
from checkout.payment.service import reconcile_payment

logger = structlog.get_logger(__name__)

GENERIC_SIGNATURE_HEADER = "x-provider-signature"


def _ack(processed: bool, **details) -> dict:
    return {"received": True, "processed": processed, **details}


def handle_webhook(provider_name: str, raw_body: bytes, headers) -> dict:
    """Authenticate, decode and act on a webhook. Raises only ``InvalidSignature``/``UnknownProvider``."""
    provider = get_provider(provider_name)
    if not provider.webhook_configured:
        logger.warning("webhook_provider_not_configured", provider=provider.name)
        return _ack(False, reason="provider_not_configured")

    signature = headers.get(provider.signature_header) or headers.get(GENERIC_SIGNATURE_HEADER)
    event = provider.parse_webhook(raw_body, signature)

    log = logger.bind(provider=provider.name, event_type=event.event_type)
    if not event.actionable:
        log.info("webhook_ignored")
        return _ack(False, event=event.event_type)

    payment = event.payment
    log = log.bind(reference=payment.reference, cart_id=payment.cart_id)
    try:
        if payment.is_successful:
            # Cross-check the notification against the gateway's own record
            payment = provider.verify(payment.reference)
        result, order = reconcile_payment(payment, CompletedVia.WEBHOOK.value)
    except CheckoutError as exc:
        log.warning("webhook_not_reconciled", error=exc.code, message=exc.message)
        return _ack(False, event=event.event_type, error=exc.code)
    except Exception as exc:
        log.error("webhook_processing_failed", error=str(exc), exc_info=True)
        return _ack(False, event=event.event_type, error="internal_error")

    log.info("webhook_reconciled", outcome=result.outcome.value, order_id=str(order.id))
    return _ack(True, event=event.event_type, outcome=result.outcome.value, order_id=str(order.id))
