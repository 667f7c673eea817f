"""Payment provider port (abstract interface).

Every hosted payment gateway (Paystack, Flutterwave, the fake used in
development) implements ``PaymentProvider``. Handlers receive a provider from
the registry and never branch on the provider's name.

Amounts crossing this port are always integer minor units; adapters for
gateways that speak major units convert at the edge.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from enum import Enum

from checkout.errors import InvalidSignature


class VerifiedStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class CardAuthorization:
    """Non-sensitive card fingerprint reported by the gateway."""

    last4: str | None = None
    bank: str | None = None
    card_type: str | None = None


@dataclass(frozen=True)
class VerifiedPayment:
    """The gateway's account of a transaction, as returned by a verify lookup."""

    provider: str
    reference: str
    amount: int
    currency: str
    status: str = VerifiedStatus.PENDING.value
    transaction_id: str | None = None
    channel: str | None = None
    paid_at: str | None = None
    gateway_response: str | None = None
    customer_email: str | None = None
    authorization: CardAuthorization | None = None
    metadata: dict = field(default_factory=dict)

    @property
    def is_successful(self) -> bool:
        return self.status == VerifiedStatus.SUCCESS.value

    @property
    def cart_id(self) -> str | None:
        cart_id = (self.metadata or {}).get("cart_id")
        return str(cart_id) if cart_id else None

    @property
    def payment_key(self) -> str:
        return f"{self.provider}:{self.reference}"

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "VerifiedPayment":
        data = dict(data)
        authorization = data.pop("authorization", None)
        if isinstance(authorization, dict):
            authorization = CardAuthorization(**authorization)
        return cls(**data, authorization=authorization)

    @classmethod
    def from_json(cls, raw: str) -> "VerifiedPayment":
        return cls.from_dict(json.loads(raw))


@dataclass(frozen=True)
class InitializedPayment:
    """Where to send the customer to pay, and the reference to verify later."""

    authorization_url: str
    reference: str
    amount: int
    currency: str
    access_code: str | None = None


@dataclass(frozen=True)
class WebhookEvent:
    """A signed webhook notification.

    ``payment`` is set only for charge events; transfer and refund events are
    acknowledged but not ``actionable``.
    """

    event_type: str
    payment: VerifiedPayment | None = None
    actionable: bool = False


def parse_metadata(raw) -> dict:
    """Gateways return metadata as a dict, a JSON string, or an empty string."""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


class PaymentProvider(ABC):
    """Abstract payment provider interface."""

    name: str = ""
    signature_header: str = ""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for API calls are present."""
        ...

    @property
    def webhook_configured(self) -> bool:
        """Whether webhook signatures can be checked."""
        return self.is_configured

    @abstractmethod
    def initialize(
        self,
        amount: int,
        currency: str,
        email: str,
        callback_url: str,
        metadata: dict,
        reference: str | None = None,
        channels: list[str] | None = None,
    ) -> InitializedPayment:
        """Open a hosted payment session for ``amount`` minor units."""
        ...

    @abstractmethod
    def verify(self, reference: str) -> VerifiedPayment:
        """Look the transaction up at the gateway."""
        ...

    @abstractmethod
    def verify_signature(self, raw_body: bytes, signature: str) -> bool:
        """Check that a webhook body was sent by the gateway."""
        ...

    @abstractmethod
    def event_from_payload(self, payload: dict) -> WebhookEvent:
        """Translate a signed webhook payload into a ``WebhookEvent``."""
        ...

    def parse_webhook(self, raw_body: bytes, signature: str | None) -> WebhookEvent:
        """Authenticate and decode a webhook. Raises ``InvalidSignature``."""
        if not signature:
            raise InvalidSignature("Missing webhook signature", provider=self.name)
        if not self.verify_signature(raw_body, signature):
            raise InvalidSignature("Invalid webhook signature", provider=self.name)

        try:
            payload = json.loads(raw_body)
        except ValueError:
            return WebhookEvent(event_type="malformed")
        if not isinstance(payload, dict):
            return WebhookEvent(event_type="malformed")
        return self.event_from_payload(payload)
