"""Legacy payment-state import (migration shim).

Older orders carried their payment status twice: in a payment-collection
status, and in a freeform metadata bag written by the gateway handlers. This
module derives a single ``PaymentState`` from that pair. Nothing outside this
shim reads legacy metadata.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from checkout.currency import looks_like_major_unit, to_minor_unit
from checkout.domain import checkout
from checkout.errors import InvalidAmount
from checkout.order.order import Order, PaymentState, PaymentStatus

logger = structlog.get_logger(__name__)

_COLLECTION_STATUS_MAP = {
    "captured": PaymentStatus.CAPTURED,
    "partially_captured": PaymentStatus.CAPTURED,
    "completed": PaymentStatus.CAPTURED,
    "authorized": PaymentStatus.AWAITING,
    "partially_authorized": PaymentStatus.AWAITING,
    "awaiting": PaymentStatus.AWAITING,
    "requires_action": PaymentStatus.AWAITING,
    "pending": PaymentStatus.AWAITING,
    "failed": PaymentStatus.FAILED,
    "canceled": PaymentStatus.FAILED,
    "not_paid": PaymentStatus.NOT_PAID,
}


def derive_payment_status(collection_status: str | None, metadata: dict | None) -> PaymentStatus:
    """Derive one status from the legacy pair.

    Precedence: the payment-collection status; then capture markers in
    metadata; then pending markers; then an explicit failure; else not paid.
    """
    if collection_status:
        return _COLLECTION_STATUS_MAP.get(str(collection_status).lower(), PaymentStatus.NOT_PAID)

    metadata = metadata or {}
    if (
        metadata.get("payment_status") == "success"
        or metadata.get("payment_captured") in (True, "true")
        or metadata.get("payment_captured_at")
        or metadata.get("payment_paid_at")
    ):
        return PaymentStatus.CAPTURED
    if metadata.get("payment_status") == "pending" or metadata.get("payment_reference"):
        return PaymentStatus.AWAITING
    if metadata.get("payment_status") == "failed":
        return PaymentStatus.FAILED
    return PaymentStatus.NOT_PAID


def _legacy_amount(raw, currency_code):
    """Normalize a legacy amount whose unit was never recorded.

    Returns ``(minor_units, guessed)``; ``guessed`` is True when the value was
    taken to be in major units.
    """
    if raw in (None, ""):
        return None, False
    try:
        amount = float(raw) if isinstance(raw, str) else raw
        if looks_like_major_unit(amount, currency_code):
            return to_minor_unit(amount, currency_code), True
        return int(amount), False
    except (InvalidAmount, TypeError, ValueError):
        logger.warning("legacy_amount_unreadable", raw_amount=str(raw))
        return None, False


def payment_state_from_legacy(collection_status, metadata, currency_code):
    """Build the PaymentState for a legacy record. Returns ``(state, amount_guessed)``."""
    metadata = metadata or {}
    if not isinstance(metadata, dict):
        raise ValidationError({"metadata": ["Legacy metadata must be a JSON object"]})
    status = derive_payment_status(collection_status, metadata)
    amount, guessed = _legacy_amount(metadata.get("amount"), currency_code)

    state = PaymentState(
        provider=metadata.get("payment_provider"),
        reference=metadata.get("payment_reference"),
        transaction_id=str(metadata["payment_transaction_id"]) if metadata.get("payment_transaction_id") else None,
        channel=metadata.get("payment_channel"),
        status=status.value,
        amount=amount,
        paid_at=metadata.get("payment_paid_at"),
        captured_at=metadata.get("payment_captured_at") or metadata.get("payment_paid_at")
        if status == PaymentStatus.CAPTURED
        else None,
        gateway_response=metadata.get("payment_gateway_response"),
        card_last4=metadata.get("payment_last4"),
        card_bank=metadata.get("payment_bank"),
        card_type=metadata.get("payment_card_type"),
    )
    return state, guessed


def _parse_metadata(raw):
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ValidationError({"metadata": [f"Legacy metadata is not valid JSON: {exc}"]}) from exc


@checkout.command(part_of="Order")
class ImportLegacyPaymentState:
    """Derive an order's payment state from legacy collection status and metadata."""

    order_id = Identifier(required=True)
    collection_status = String(max_length=50)
    metadata = Text()  # JSON object


@checkout.command_handler(part_of=Order)
class LegacyPaymentImportHandler:
    @handle(ImportLegacyPaymentState)
    def import_legacy_payment_state(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        metadata = _parse_metadata(command.metadata)
        state, guessed = payment_state_from_legacy(command.collection_status, metadata, order.currency_code)
        order.import_legacy_payment(
            state,
            note="amount unit guessed as major" if guessed else None,
            amount_unit_guessed=guessed,
        )
        repo.add(order)

        logger.info(
            "legacy_payment_state_imported",
            order_id=str(order.id),
            status=state.status,
            amount_unit_guessed=guessed,
        )
        return state.status
