"""Tests for the Paystack, Flutterwave and fake gateway adapters.

HTTP is stubbed with a mocked ``requests`` session; no network calls are made.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests
from checkout.errors import (
    GatewayNotConfigured,
    GatewayUnreachable,
    InvalidSignature,
    UnknownProvider,
    VerificationRejected,
)
from checkout.gateway import get_provider, reset_providers, set_provider
from checkout.gateway.fake import FakeProvider
from checkout.gateway.flutterwave import FlutterwaveProvider, generate_tx_ref
from checkout.gateway.paystack import PaystackProvider
from checkout.gateway.port import VerifiedStatus, parse_metadata
from checkout.gateway.signatures import hmac_sha512_hex, signatures_match


def _response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body if body is not None else {}
    return response


def _session(status_code=200, body=None):
    session = MagicMock()
    session.request.return_value = _response(status_code, body)
    return session


PAYSTACK_TRANSACTION = {
    "id": 4099260516,
    "status": "success",
    "reference": "ref_001",
    "amount": 5500,
    "currency": "GHS",
    "channel": "mobile_money",
    "paid_at": "2024-05-01T10:00:00.000Z",
    "gateway_response": "Approved",
    "customer": {"email": "ama@example.com"},
    "authorization": {"last4": "4081", "bank": "TEST BANK", "card_type": "visa", "authorization_code": "AUTH_x"},
    "metadata": {"cart_id": "cart-001"},
}

FLUTTERWAVE_TRANSACTION = {
    "id": 288200108,
    "tx_ref": "cart_cart-001_abc123",
    "amount": 55.0,
    "currency": "GHS",
    "status": "successful",
    "payment_type": "card",
    "created_at": "2024-05-01T10:00:00.000Z",
    "processor_response": "Approved by Financial Institution",
    "customer": {"email": "ama@example.com"},
    "card": {"last_4digits": "2950", "issuer": "MASTERCARD ACCESS BANK", "type": "MASTERCARD"},
    "meta": {"cart_id": "cart-001"},
}


class TestSignatures:
    def test_hmac_matches_itself(self):
        signature = hmac_sha512_hex("secret", b'{"event":"charge.success"}')
        assert signatures_match(signature, signature)

    def test_different_body_does_not_match(self):
        signature = hmac_sha512_hex("secret", b"a")
        assert not signatures_match(hmac_sha512_hex("secret", b"b"), signature)

    def test_empty_values_never_match(self):
        assert not signatures_match("", "")
        assert not signatures_match("abc", "")
        assert not signatures_match("", "abc")


class TestParseMetadata:
    def test_dict_passes_through(self):
        assert parse_metadata({"cart_id": "c1"}) == {"cart_id": "c1"}

    def test_json_string_is_decoded(self):
        assert parse_metadata('{"cart_id": "c1"}') == {"cart_id": "c1"}

    def test_garbage_is_empty(self):
        assert parse_metadata("") == {}
        assert parse_metadata("not json") == {}
        assert parse_metadata("[1, 2]") == {}
        assert parse_metadata(None) == {}


class TestPaystackVerify:
    def test_maps_transaction(self):
        session = _session(body={"status": True, "data": PAYSTACK_TRANSACTION})
        provider = PaystackProvider(secret_key="sk_test", session=session)

        payment = provider.verify("ref_001")

        assert payment.provider == "paystack"
        assert payment.reference == "ref_001"
        assert payment.amount == 5500
        assert payment.currency == "GHS"
        assert payment.is_successful
        assert payment.transaction_id == "4099260516"
        assert payment.cart_id == "cart-001"
        assert payment.authorization.last4 == "4081"
        assert payment.payment_key == "paystack:ref_001"

    def test_calls_verify_endpoint_with_bearer_and_timeout(self):
        session = _session(body={"status": True, "data": PAYSTACK_TRANSACTION})
        provider = PaystackProvider(secret_key="sk_test", timeout=7.5, session=session)

        provider.verify("ref/001")

        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert method == "GET"
        assert url == "https://api.paystack.co/transaction/verify/ref%2F001"
        assert kwargs["headers"]["Authorization"] == "Bearer sk_test"
        assert kwargs["timeout"] == 7.5

    @pytest.mark.parametrize(
        "gateway_status,expected",
        [
            ("success", VerifiedStatus.SUCCESS),
            ("failed", VerifiedStatus.FAILED),
            ("abandoned", VerifiedStatus.FAILED),
            ("reversed", VerifiedStatus.FAILED),
            ("ongoing", VerifiedStatus.PENDING),
        ],
    )
    def test_status_mapping(self, gateway_status, expected):
        data = {**PAYSTACK_TRANSACTION, "status": gateway_status}
        provider = PaystackProvider(secret_key="sk_test", session=_session(body={"status": True, "data": data}))
        assert provider.verify("ref_001").status == expected.value

    def test_metadata_as_json_string(self):
        data = {**PAYSTACK_TRANSACTION, "metadata": '{"cart_id": "cart-002"}'}
        provider = PaystackProvider(secret_key="sk_test", session=_session(body={"status": True, "data": data}))
        assert provider.verify("ref_001").cart_id == "cart-002"

    def test_unknown_reference_is_rejected(self):
        session = _session(status_code=404, body={"status": False, "message": "Transaction reference not found"})
        provider = PaystackProvider(secret_key="sk_test", session=session)
        with pytest.raises(VerificationRejected) as exc:
            provider.verify("nope")
        assert exc.value.message == "Transaction reference not found"

    def test_false_status_is_rejected(self):
        provider = PaystackProvider(secret_key="sk_test", session=_session(body={"status": False}))
        with pytest.raises(VerificationRejected):
            provider.verify("ref_001")

    def test_server_error_is_unreachable(self):
        provider = PaystackProvider(secret_key="sk_test", session=_session(status_code=502))
        with pytest.raises(GatewayUnreachable):
            provider.verify("ref_001")

    def test_timeout_is_unreachable(self):
        session = MagicMock()
        session.request.side_effect = requests.Timeout("read timed out")
        provider = PaystackProvider(secret_key="sk_test", session=session)
        with pytest.raises(GatewayUnreachable):
            provider.verify("ref_001")

    def test_connection_error_is_unreachable(self):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")
        provider = PaystackProvider(secret_key="sk_test", session=session)
        with pytest.raises(GatewayUnreachable):
            provider.verify("ref_001")

    def test_unconfigured_provider(self):
        session = MagicMock()
        provider = PaystackProvider(secret_key="", session=session)
        with pytest.raises(GatewayNotConfigured):
            provider.verify("ref_001")
        session.request.assert_not_called()


class TestPaystackInitialize:
    def test_initialize_sends_minor_units(self):
        session = _session(
            body={
                "status": True,
                "data": {
                    "authorization_url": "https://checkout.paystack.com/abc",
                    "access_code": "abc",
                    "reference": "ref_new",
                },
            }
        )
        provider = PaystackProvider(secret_key="sk_test", session=session)

        initialized = provider.initialize(
            amount=5500,
            currency="GHS",
            email="ama@example.com",
            callback_url="http://storefront.test/checkout/verify",
            metadata={"cart_id": "cart-001"},
        )

        payload = session.request.call_args.kwargs["json"]
        assert payload["amount"] == 5500
        assert payload["channels"] == ["card", "mobile_money", "bank"]
        assert payload["metadata"] == {"cart_id": "cart-001"}
        assert initialized.reference == "ref_new"
        assert initialized.authorization_url == "https://checkout.paystack.com/abc"
        assert initialized.access_code == "abc"

    def test_refused_initialize(self):
        session = _session(body={"status": False, "message": "Invalid key"})
        provider = PaystackProvider(secret_key="sk_test", session=session)
        with pytest.raises(VerificationRejected):
            provider.initialize(5500, "GHS", "ama@example.com", "http://x", {})


class TestPaystackWebhook:
    def test_valid_signature(self):
        provider = PaystackProvider(secret_key="sk_test")
        body = json.dumps({"event": "charge.success", "data": PAYSTACK_TRANSACTION}).encode()

        event = provider.parse_webhook(body, hmac_sha512_hex("sk_test", body))

        assert event.event_type == "charge.success"
        assert event.actionable is True
        assert event.payment.reference == "ref_001"

    def test_missing_signature(self):
        provider = PaystackProvider(secret_key="sk_test")
        with pytest.raises(InvalidSignature):
            provider.parse_webhook(b"{}", None)

    def test_wrong_signature(self):
        provider = PaystackProvider(secret_key="sk_test")
        with pytest.raises(InvalidSignature):
            provider.parse_webhook(b"{}", hmac_sha512_hex("other", b"{}"))

    def test_signed_malformed_body(self):
        provider = PaystackProvider(secret_key="sk_test")
        body = b"not json"
        event = provider.parse_webhook(body, hmac_sha512_hex("sk_test", body))
        assert event.event_type == "malformed"
        assert event.actionable is False

    def test_transfer_event_is_not_actionable(self):
        provider = PaystackProvider(secret_key="sk_test")
        body = json.dumps({"event": "transfer.success", "data": {"reference": "tr_1"}}).encode()
        event = provider.parse_webhook(body, hmac_sha512_hex("sk_test", body))
        assert event.actionable is False
        assert event.payment is None


class TestFlutterwaveVerify:
    def test_converts_major_units_back_to_minor(self):
        session = _session(body={"status": "success", "data": FLUTTERWAVE_TRANSACTION})
        provider = FlutterwaveProvider(secret_key="FLWSECK_TEST", session=session)

        payment = provider.verify("cart_cart-001_abc123")

        assert payment.amount == 5500
        assert payment.reference == "cart_cart-001_abc123"
        assert payment.transaction_id == "288200108"
        assert payment.is_successful
        assert payment.authorization.last4 == "2950"
        assert payment.cart_id == "cart-001"

    def test_numeric_reference_uses_transaction_endpoint(self):
        session = _session(body={"status": "success", "data": FLUTTERWAVE_TRANSACTION})
        provider = FlutterwaveProvider(secret_key="FLWSECK_TEST", session=session)

        provider.verify("288200108")

        _, url = session.request.call_args.args
        assert url == "https://api.flutterwave.com/v3/transactions/288200108/verify"

    def test_tx_ref_uses_reference_endpoint(self):
        session = _session(body={"status": "success", "data": FLUTTERWAVE_TRANSACTION})
        provider = FlutterwaveProvider(secret_key="FLWSECK_TEST", session=session)

        provider.verify("cart_cart-001_abc123")

        _, url = session.request.call_args.args
        assert url.endswith("/transactions/verify_by_reference")
        assert session.request.call_args.kwargs["params"] == {"tx_ref": "cart_cart-001_abc123"}

    def test_error_status_is_rejected(self):
        provider = FlutterwaveProvider(
            secret_key="FLWSECK_TEST",
            session=_session(body={"status": "error", "message": "No transaction was found"}),
        )
        with pytest.raises(VerificationRejected):
            provider.verify("cart_missing")


class TestFlutterwaveInitialize:
    def test_initialize_sends_major_units(self):
        session = _session(body={"status": "success", "data": {"link": "https://checkout.flutterwave.com/pay/x"}})
        provider = FlutterwaveProvider(secret_key="FLWSECK_TEST", session=session)

        initialized = provider.initialize(
            amount=5550,
            currency="GHS",
            email="ama@example.com",
            callback_url="http://storefront.test/checkout/verify",
            metadata={"cart_id": "cart-001"},
        )

        payload = session.request.call_args.kwargs["json"]
        assert payload["amount"] == 55.5
        assert payload["tx_ref"].startswith("cart_cart-001_")
        assert payload["meta"] == {"cart_id": "cart-001"}
        assert initialized.reference == payload["tx_ref"]
        assert initialized.amount == 5550

    def test_generated_tx_ref_is_unique(self):
        assert generate_tx_ref("c1") != generate_tx_ref("c1")


class TestFlutterwaveWebhook:
    def test_hash_header_is_compared(self):
        provider = FlutterwaveProvider(secret_key="FLWSECK_TEST", webhook_hash="my-hash")
        body = json.dumps({"event": "charge.completed", "data": FLUTTERWAVE_TRANSACTION}).encode()

        event = provider.parse_webhook(body, "my-hash")

        assert event.actionable is True
        assert event.payment.amount == 5500

    def test_wrong_hash(self):
        provider = FlutterwaveProvider(secret_key="FLWSECK_TEST", webhook_hash="my-hash")
        with pytest.raises(InvalidSignature):
            provider.parse_webhook(b"{}", "not-my-hash")

    def test_meta_data_fallback(self):
        provider = FlutterwaveProvider(secret_key="FLWSECK_TEST", webhook_hash="my-hash")
        data = {key: value for key, value in FLUTTERWAVE_TRANSACTION.items() if key != "meta"}
        body = json.dumps({"event": "charge.completed", "data": data, "meta_data": {"cart_id": "cart-009"}}).encode()

        event = provider.parse_webhook(body, "my-hash")

        assert event.payment.cart_id == "cart-009"

    def test_webhook_needs_hash(self):
        provider = FlutterwaveProvider(secret_key="FLWSECK_TEST")
        assert provider.is_configured is True
        assert provider.webhook_configured is False


class TestFakeProvider:
    def test_initialize_then_mark_paid(self):
        provider = FakeProvider()
        initialized = provider.initialize(5500, "GHS", "ama@example.com", "http://x/verify", {"cart_id": "c1"})
        assert provider.verify(initialized.reference).status == VerifiedStatus.PENDING.value

        provider.mark_paid(initialized.reference)

        payment = provider.verify(initialized.reference)
        assert payment.is_successful
        assert payment.cart_id == "c1"
        assert initialized.authorization_url == f"http://x/verify?reference={initialized.reference}"

    def test_mark_paid_with_different_amount(self):
        provider = FakeProvider()
        provider.register_transaction("ref_1", amount=5500, status="pending")
        assert provider.mark_paid("ref_1", amount=3000).amount == 3000

    def test_unknown_reference_rejected(self):
        with pytest.raises(VerificationRejected):
            FakeProvider().verify("nope")

    def test_configured_unreachable(self):
        provider = FakeProvider()
        provider.configure(unreachable=True)
        with pytest.raises(GatewayUnreachable):
            provider.verify("ref_1")

    def test_records_calls(self):
        provider = FakeProvider()
        provider.register_transaction("ref_1", amount=5500)
        provider.verify("ref_1")
        assert provider.calls == [{"method": "verify", "reference": "ref_1"}]

    def test_signed_webhook(self):
        provider = FakeProvider()
        body = json.dumps({"event": "charge.success", "data": {"reference": "ref_1", "amount": 5500}}).encode()
        event = provider.parse_webhook(body, provider.sign(body))
        assert event.actionable is True
        assert event.payment.amount == 5500


class TestProviderRegistry:
    def test_unknown_provider(self):
        with pytest.raises(UnknownProvider):
            get_provider("bitcoin")

    def test_fake_provider_enabled_in_tests(self):
        assert isinstance(get_provider("fake"), FakeProvider)

    def test_paystack_built_without_credentials(self):
        provider = get_provider("Paystack")
        assert isinstance(provider, PaystackProvider)
        assert provider.is_configured is False

    def test_set_provider_overrides(self):
        custom = FakeProvider(secret_key="other")
        set_provider(custom)
        assert get_provider("fake") is custom
        reset_providers()
        assert get_provider("fake") is not custom
