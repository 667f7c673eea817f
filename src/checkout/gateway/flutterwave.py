"""Flutterwave adapter.

Flutterwave speaks major units: amounts are converted through the currency
normalizer on the way out and on the way back. Webhooks carry the configured
secret hash verbatim in ``verif-hash``.
"""

from uuid import uuid4

import structlog

from checkout.currency import to_major_unit, to_minor_unit
from checkout.errors import GatewayNotConfigured, VerificationRejected
from checkout.gateway.http import GatewayHttpClient
from checkout.gateway.port import (
    CardAuthorization,
    InitializedPayment,
    PaymentProvider,
    VerifiedPayment,
    VerifiedStatus,
    WebhookEvent,
    parse_metadata,
)
from checkout.gateway.signatures import signatures_match

logger = structlog.get_logger(__name__)

DEFAULT_PAYMENT_OPTIONS = "card,mobilemoneyghana,banktransfer"

_STATUS_MAP = {
    "successful": VerifiedStatus.SUCCESS,
    "success": VerifiedStatus.SUCCESS,
    "failed": VerifiedStatus.FAILED,
    "cancelled": VerifiedStatus.FAILED,
}


def generate_tx_ref(cart_id: str | None) -> str:
    return f"cart_{cart_id or 'anon'}_{uuid4().hex[:10]}"


class FlutterwaveProvider(PaymentProvider):
    name = "flutterwave"
    signature_header = "verif-hash"

    def __init__(
        self,
        secret_key: str,
        webhook_hash: str = "",
        base_url: str = "https://api.flutterwave.com/v3",
        timeout: float = 10.0,
        session=None,
    ):
        self.secret_key = secret_key
        self.webhook_hash = webhook_hash
        self.client = GatewayHttpClient(self.name, base_url, secret_key, timeout, session=session)

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    @property
    def webhook_configured(self) -> bool:
        return bool(self.webhook_hash)

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise GatewayNotConfigured("Flutterwave is not configured", provider=self.name)

    def initialize(self, amount, currency, email, callback_url, metadata, reference=None, channels=None):
        self._require_configured()
        tx_ref = reference or generate_tx_ref(metadata.get("cart_id"))
        payload = {
            "tx_ref": tx_ref,
            "amount": to_major_unit(amount, currency),
            "currency": currency,
            "redirect_url": callback_url,
            "payment_options": ",".join(channels) if channels else DEFAULT_PAYMENT_OPTIONS,
            "customer": {"email": email},
            "meta": metadata,
        }

        body = self.client.request("POST", "/payments", json=payload)
        link = (body.get("data") or {}).get("link")
        if body.get("status") != "success" or not link:
            raise VerificationRejected(
                body.get("message") or "Flutterwave refused to initialize the payment",
                provider=self.name,
            )

        logger.info("flutterwave_payment_initialized", reference=tx_ref, amount=amount)
        return InitializedPayment(authorization_url=link, reference=tx_ref, amount=amount, currency=currency)

    def verify(self, reference):
        self._require_configured()
        reference = str(reference)
        if reference.isdigit():
            body = self.client.request("GET", f"/transactions/{reference}/verify")
        else:
            body = self.client.request("GET", "/transactions/verify_by_reference", params={"tx_ref": reference})

        data = body.get("data")
        if body.get("status") != "success" or not isinstance(data, dict):
            raise VerificationRejected(
                body.get("message") or f"Flutterwave has no transaction {reference}",
                provider=self.name,
                reference=reference,
            )
        return self._to_verified_payment(data)

    def verify_signature(self, raw_body, signature):  # noqa: ARG002
        return signatures_match(self.webhook_hash, signature)

    def event_from_payload(self, payload):
        event_type = str(payload.get("event") or payload.get("event.type") or "unknown")
        data = payload.get("data")
        if event_type == "charge.completed" and isinstance(data, dict):
            if not data.get("meta") and payload.get("meta_data"):
                data = {**data, "meta": payload["meta_data"]}
            return WebhookEvent(event_type=event_type, payment=self._to_verified_payment(data), actionable=True)

        logger.info("flutterwave_webhook_not_actionable", event_type=event_type)
        return WebhookEvent(event_type=event_type)

    def _to_verified_payment(self, data: dict) -> VerifiedPayment:
        currency = str(data.get("currency") or "").upper()
        status = _STATUS_MAP.get(str(data.get("status") or "").lower(), VerifiedStatus.PENDING)
        card = data.get("card") or {}
        customer = data.get("customer") or {}
        return VerifiedPayment(
            provider=self.name,
            reference=str(data.get("tx_ref") or ""),
            transaction_id=str(data["id"]) if data.get("id") is not None else None,
            amount=to_minor_unit(data.get("amount") or 0, currency),
            currency=currency,
            status=status.value,
            channel=data.get("payment_type"),
            paid_at=data.get("created_at"),
            gateway_response=data.get("processor_response"),
            customer_email=customer.get("email"),
            authorization=CardAuthorization(
                last4=card.get("last_4digits"),
                bank=card.get("issuer"),
                card_type=card.get("type"),
            )
            if card
            else None,
            metadata=parse_metadata(data.get("meta")),
        )
