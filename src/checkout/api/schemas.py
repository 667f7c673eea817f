"""Pydantic request/response schemas for the Checkout API.

These are external contracts, separate from the internal Protean commands.
Every amount names its unit: ``*_minor`` fields are integer minor units
(pesewas, kobo, cents), ``*_major`` fields are decimal major units.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from checkout.currency import MajorUnits, MinorUnits


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    address_1: str
    address_2: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    country_code: str | None = Field(default=None, max_length=2)
    phone: str | None = None


class AddressResponse(AddressSchema):
    address_1: str | None = None
    provided: bool = True


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    customer_id: str | None = None
    email: str | None = None
    currency_code: str = Field(default="GHS", min_length=3, max_length=3)
    region: str | None = None


class AddCartItemRequest(BaseModel):
    variant_id: str
    product_id: str | None = None
    title: str
    quantity: int = Field(ge=1)
    unit_price_minor: int | None = Field(default=None, ge=0)
    unit_price_major: float | None = Field(default=None, ge=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "variant_id": "variant_01",
                    "title": "Shea Butter 250g",
                    "quantity": 2,
                    "unit_price_minor": 2750,
                }
            ]
        }
    }

    @model_validator(mode="after")
    def exactly_one_unit(self):
        if (self.unit_price_minor is None) == (self.unit_price_major is None):
            raise ValueError("Provide exactly one of unit_price_minor or unit_price_major")
        return self

    def unit_price_in_minor_units(self, currency_code: str) -> int:
        if self.unit_price_minor is not None:
            return MinorUnits(self.unit_price_minor, currency_code).value
        return MajorUnits(self.unit_price_major, currency_code).to_minor().value


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


class UpdateCartAddressesRequest(BaseModel):
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    email: str | None = None


class SetCartAdjustmentsRequest(BaseModel):
    shipping_total_minor: int | None = Field(default=None, ge=0)
    tax_total_minor: int | None = Field(default=None, ge=0)
    discount_total_minor: int | None = Field(default=None, ge=0)
    delivery_option: str | None = None


# ---------------------------------------------------------------------------
# Cart Response Schemas
# ---------------------------------------------------------------------------
class CartIdResponse(BaseModel):
    cart_id: str


class ItemIdResponse(BaseModel):
    item_id: str


class CartLineItemResponse(BaseModel):
    id: str
    variant_id: str
    product_id: str | None = None
    title: str
    quantity: int
    unit_price: int
    line_total: int


class CartResponse(BaseModel):
    id: str
    customer_id: str | None = None
    email: str | None = None
    currency_code: str
    region: str | None = None
    items: list[CartLineItemResponse]
    shipping_address: AddressResponse | None = None
    billing_address: AddressResponse | None = None
    subtotal: int
    shipping_total: int
    tax_total: int
    discount_total: int
    total: int
    total_display: str


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Payment Schemas
# ---------------------------------------------------------------------------
class InitializePaymentRequest(BaseModel):
    cart_id: str
    email: str | None = None
    customer_id: str | None = None
    callback_url: str | None = None
    channels: list[str] | None = None
    metadata: dict | None = None


class InitializePaymentResponse(BaseModel):
    authorization_url: str
    reference: str
    access_code: str | None = None
    amount: int
    currency: str


class VerifyPaymentRequest(BaseModel):
    reference: str = Field(min_length=1)


class AmountCheckResponse(BaseModel):
    expected: int
    actual: int
    currency: str
    tolerance: int
    delta: int
    mismatch: bool
    within_tolerance: bool


class PaymentStateResponse(BaseModel):
    provider: str | None = None
    reference: str | None = None
    transaction_id: str | None = None
    channel: str | None = None
    status: str
    amount: int | None = None
    expected_amount: int | None = None
    amount_delta: int | None = None
    amount_mismatch: bool = False
    mismatch_within_tolerance: bool = True
    paid_at: str | None = None
    captured_at: str | None = None
    failed_at: str | None = None
    failure_reason: str | None = None
    gateway_response: str | None = None
    card_last4: str | None = None
    card_bank: str | None = None
    card_type: str | None = None


class PaymentTransitionResponse(BaseModel):
    status: str
    outcome: str
    source: str
    note: str | None = None
    occurred_at: str


class OrderItemResponse(BaseModel):
    variant_id: str
    product_id: str | None = None
    title: str
    quantity: int
    unit_price: int


class OrderResponse(BaseModel):
    id: str
    display_id: int
    status: str
    fulfillment_status: str
    payment_status: str
    cart_id: str
    customer_id: str | None = None
    email: str | None = None
    currency_code: str
    region: str | None = None
    items: list[OrderItemResponse]
    shipping_address: AddressResponse | None = None
    billing_address: AddressResponse | None = None
    subtotal: int
    shipping_total: int
    tax_total: int
    discount_total: int
    total: int
    total_display: str
    payment: PaymentStateResponse | None = None
    payment_events: list[PaymentTransitionResponse] = []
    completed_via: str | None = None
    address_source: str | None = None
    created_at: str | None = None


class VerifyPaymentResponse(BaseModel):
    outcome: Literal["matched", "amount_mismatch", "already_materialized"]
    order: OrderResponse
    payment: PaymentStateResponse | None = None
    amount_check: AmountCheckResponse | None = None


class WebhookAckResponse(BaseModel):
    received: bool = True
    processed: bool
    event: str | None = None
    outcome: str | None = None
    order_id: str | None = None
    error: str | None = None
    reason: str | None = None


# ---------------------------------------------------------------------------
# Admin Schemas
# ---------------------------------------------------------------------------
class PaymentStatusResponse(BaseModel):
    order_id: str
    payment_status: str
    payment: PaymentStateResponse | None = None


class RecordFulfillmentRequest(BaseModel):
    fulfillment_status: Literal["fulfilled", "shipped", "delivered"]


class ImportLegacyPaymentRequest(BaseModel):
    collection_status: str | None = None
    metadata: dict = Field(default_factory=dict)
