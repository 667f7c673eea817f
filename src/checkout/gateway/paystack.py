"""Paystack adapter.

Paystack speaks minor units (pesewas, kobo) natively, so amounts pass through
unchanged. Webhooks are signed with a hex HMAC-SHA512 of the raw body keyed by
the secret key, sent in ``x-paystack-signature``.
"""

from urllib.parse import quote

import structlog

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
from checkout.gateway.signatures import hmac_sha512_hex, signatures_match

logger = structlog.get_logger(__name__)

DEFAULT_CHANNELS = ["card", "mobile_money", "bank"]

CHARGE_EVENTS = {"charge.success", "charge.failed"}

_STATUS_MAP = {
    "success": VerifiedStatus.SUCCESS,
    "failed": VerifiedStatus.FAILED,
    "abandoned": VerifiedStatus.FAILED,
    "reversed": VerifiedStatus.FAILED,
}


class PaystackProvider(PaymentProvider):
    name = "paystack"
    signature_header = "x-paystack-signature"

    def __init__(self, secret_key: str, base_url: str = "https://api.paystack.co", timeout: float = 10.0, session=None):
        self.secret_key = secret_key
        self.client = GatewayHttpClient(self.name, base_url, secret_key, timeout, session=session)

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise GatewayNotConfigured("Paystack is not configured", provider=self.name)

    def initialize(self, amount, currency, email, callback_url, metadata, reference=None, channels=None):
        self._require_configured()
        payload = {
            "email": email,
            "amount": amount,
            "currency": currency,
            "callback_url": callback_url,
            "channels": channels or DEFAULT_CHANNELS,
            "metadata": metadata,
        }
        if reference:
            payload["reference"] = reference

        body = self.client.request("POST", "/transaction/initialize", json=payload)
        data = body.get("data") or {}
        if not body.get("status") or not data.get("authorization_url"):
            raise VerificationRejected(
                body.get("message") or "Paystack refused to initialize the transaction",
                provider=self.name,
            )

        logger.info("paystack_transaction_initialized", reference=data.get("reference"), amount=amount)
        return InitializedPayment(
            authorization_url=data["authorization_url"],
            reference=data["reference"],
            access_code=data.get("access_code"),
            amount=amount,
            currency=currency,
        )

    def verify(self, reference):
        self._require_configured()
        body = self.client.request("GET", f"/transaction/verify/{quote(str(reference), safe='')}")
        data = body.get("data")
        if not body.get("status") or not isinstance(data, dict):
            raise VerificationRejected(
                body.get("message") or f"Paystack has no transaction {reference}",
                provider=self.name,
                reference=str(reference),
            )
        return self._to_verified_payment(data)

    def verify_signature(self, raw_body, signature):
        if not self.webhook_configured:
            return False
        return signatures_match(hmac_sha512_hex(self.secret_key, raw_body), signature)

    def event_from_payload(self, payload):
        event_type = str(payload.get("event") or "unknown")
        data = payload.get("data")
        if event_type in CHARGE_EVENTS and isinstance(data, dict):
            return WebhookEvent(event_type=event_type, payment=self._to_verified_payment(data), actionable=True)

        logger.info("paystack_webhook_not_actionable", event_type=event_type)
        return WebhookEvent(event_type=event_type)

    def _to_verified_payment(self, data: dict) -> VerifiedPayment:
        status = _STATUS_MAP.get(str(data.get("status") or "").lower(), VerifiedStatus.PENDING)
        authorization = data.get("authorization") or {}
        customer = data.get("customer") or {}
        return VerifiedPayment(
            provider=self.name,
            reference=str(data.get("reference") or ""),
            transaction_id=str(data["id"]) if data.get("id") is not None else None,
            amount=int(data.get("amount") or 0),
            currency=str(data.get("currency") or "").upper(),
            status=status.value,
            channel=data.get("channel"),
            paid_at=data.get("paid_at") or data.get("paidAt"),
            gateway_response=data.get("gateway_response"),
            customer_email=customer.get("email"),
            authorization=CardAuthorization(
                last4=authorization.get("last4"),
                bank=authorization.get("bank"),
                card_type=authorization.get("card_type"),
            )
            if authorization
            else None,
            metadata=parse_metadata(data.get("metadata")),
        )
