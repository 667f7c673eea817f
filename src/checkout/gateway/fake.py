"""Configurable fake payment provider for development and testing.

Simulates a hosted gateway without any external calls:
- ``initialize`` opens a pending transaction and returns a local URL
- ``mark_paid`` / ``mark_failed`` play the customer completing the payment
- ``register_transaction`` seeds a transaction directly
- ``configure`` makes every lookup unreachable or rejected

Webhooks are signed like Paystack's (hex HMAC-SHA512) with ``secret_key``;
``sign`` produces a valid signature for a body.
"""

from dataclasses import replace
from datetime import UTC, datetime
from uuid import uuid4

from checkout.errors import GatewayUnreachable, VerificationRejected
from checkout.gateway.port import (
    CardAuthorization,
    InitializedPayment,
    PaymentProvider,
    VerifiedPayment,
    VerifiedStatus,
    WebhookEvent,
)
from checkout.gateway.signatures import hmac_sha512_hex, signatures_match


class FakeProvider(PaymentProvider):
    """In-memory payment provider."""

    name = "fake"
    signature_header = "x-fake-signature"

    def __init__(self, secret_key: str = "fake-secret") -> None:
        self.secret_key = secret_key
        self.transactions: dict[str, VerifiedPayment] = {}
        self.calls: list[dict] = []
        self.unreachable = False
        self.reject_lookups = False

    @property
    def is_configured(self) -> bool:
        return True

    def configure(self, unreachable: bool = False, reject_lookups: bool = False) -> None:
        """Configure provider behavior at runtime."""
        self.unreachable = unreachable
        self.reject_lookups = reject_lookups

    def reset(self) -> None:
        self.transactions.clear()
        self.calls.clear()
        self.configure()

    def register_transaction(
        self,
        reference: str,
        amount: int,
        currency: str = "GHS",
        status: str = VerifiedStatus.SUCCESS.value,
        metadata: dict | None = None,
        **extra,
    ) -> VerifiedPayment:
        payment = VerifiedPayment(
            provider=self.name,
            reference=reference,
            transaction_id=extra.pop("transaction_id", f"fake_txn_{uuid4().hex[:12]}"),
            amount=amount,
            currency=currency,
            status=status,
            channel=extra.pop("channel", "card"),
            paid_at=extra.pop("paid_at", datetime.now(UTC).isoformat()),
            gateway_response=extra.pop("gateway_response", "Approved"),
            authorization=extra.pop("authorization", CardAuthorization(last4="4081", bank="TEST BANK", card_type="visa")),
            metadata=dict(metadata or {}),
            **extra,
        )
        self.transactions[reference] = payment
        return payment

    def mark_paid(self, reference: str, amount: int | None = None) -> VerifiedPayment:
        """Complete a pending transaction, optionally for a different amount than requested."""
        payment = self.transactions[reference]
        changes = {"status": VerifiedStatus.SUCCESS.value}
        if amount is not None:
            changes["amount"] = amount
        self.transactions[reference] = replace(payment, **changes)
        return self.transactions[reference]

    def mark_failed(self, reference: str) -> VerifiedPayment:
        self.transactions[reference] = replace(
            self.transactions[reference],
            status=VerifiedStatus.FAILED.value,
            gateway_response="Declined",
        )
        return self.transactions[reference]

    def sign(self, raw_body: bytes) -> str:
        return hmac_sha512_hex(self.secret_key, raw_body)

    def initialize(self, amount, currency, email, callback_url, metadata, reference=None, channels=None):
        self.calls.append(
            {
                "method": "initialize",
                "amount": amount,
                "currency": currency,
                "email": email,
                "callback_url": callback_url,
                "metadata": metadata,
                "channels": channels,
            }
        )
        if self.unreachable:
            raise GatewayUnreachable("Fake gateway is unreachable", provider=self.name)

        reference = reference or f"fake_ref_{uuid4().hex[:12]}"
        self.register_transaction(
            reference,
            amount=amount,
            currency=currency,
            status=VerifiedStatus.PENDING.value,
            metadata=metadata,
            customer_email=email,
        )
        return InitializedPayment(
            authorization_url=f"{callback_url}?reference={reference}",
            reference=reference,
            access_code=f"fake_access_{uuid4().hex[:8]}",
            amount=amount,
            currency=currency,
        )

    def verify(self, reference):
        self.calls.append({"method": "verify", "reference": reference})
        if self.unreachable:
            raise GatewayUnreachable("Fake gateway is unreachable", provider=self.name)
        if self.reject_lookups or reference not in self.transactions:
            raise VerificationRejected(f"Unknown transaction {reference}", provider=self.name, reference=reference)
        return self.transactions[reference]

    def verify_signature(self, raw_body, signature):
        return signatures_match(self.sign(raw_body), signature)

    def event_from_payload(self, payload):
        event_type = str(payload.get("event") or "unknown")
        data = payload.get("data") or {}
        if event_type not in {"charge.success", "charge.failed"}:
            return WebhookEvent(event_type=event_type)

        reference = str(data.get("reference") or "")
        known = self.transactions.get(reference)
        status = VerifiedStatus.SUCCESS.value if event_type == "charge.success" else VerifiedStatus.FAILED.value
        payment = VerifiedPayment(
            provider=self.name,
            reference=reference,
            amount=int(data.get("amount", known.amount if known else 0)),
            currency=str(data.get("currency") or (known.currency if known else "GHS")),
            status=status,
            transaction_id=known.transaction_id if known else None,
            gateway_response=data.get("gateway_response"),
            metadata=data.get("metadata") or (known.metadata if known else {}),
        )
        return WebhookEvent(event_type=event_type, payment=payment, actionable=True)
