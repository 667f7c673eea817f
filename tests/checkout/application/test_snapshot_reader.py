"""Tests for reading carts and choosing order addresses at payment time."""

import pytest
from checkout.cart.snapshot import AddressSource, find_cart, load_cart, resolve_addresses
from checkout.errors import CartNotFound, EmptyCart
from checkout.shared.address import PLACEHOLDER_ADDRESS_LINE, Address


class TestLoadCart:
    def test_loads_cart_with_items(self, make_cart):
        cart = make_cart()
        loaded = load_cart(str(cart.id))
        assert loaded.id == cart.id
        assert loaded.total == 5500

    def test_missing_cart(self):
        with pytest.raises(CartNotFound):
            load_cart("no-such-cart")

    def test_empty_cart(self, make_cart):
        cart = make_cart(lines=())
        with pytest.raises(EmptyCart):
            load_cart(str(cart.id))

    def test_find_cart_returns_none(self):
        assert find_cart("no-such-cart") is None
        assert find_cart(None) is None


class TestResolveAddresses:
    def test_cart_address_wins(self, make_cart):
        cart = make_cart()
        resolved = resolve_addresses(cart, {"shipping_address": {"address_1": "Somewhere else"}})
        assert resolved.source == AddressSource.CART
        assert resolved.shipping.address_1 == "12 Ring Road"
        assert resolved.billing.address_1 == "12 Ring Road"

    def test_cart_billing_only(self, make_cart):
        cart = make_cart(with_address=False)
        cart.billing_address = Address(address_1="PO Box 101")
        resolved = resolve_addresses(cart, {})
        assert resolved.source == AddressSource.CART
        assert resolved.shipping.address_1 == "PO Box 101"

    def test_falls_back_to_payment_metadata(self, make_cart):
        cart = make_cart(with_address=False)
        resolved = resolve_addresses(
            cart,
            {
                "shipping_address": {"first_name": "Yaw", "address_1": "3 Liberation Road", "country_code": "GH"},
                "billing_address": {"address_1": "PO Box 55"},
            },
        )
        assert resolved.source == AddressSource.PAYMENT_METADATA
        assert resolved.shipping.address_1 == "3 Liberation Road"
        assert resolved.shipping.country_code == "gh"
        assert resolved.billing.address_1 == "PO Box 55"

    def test_metadata_billing_defaults_to_shipping(self, make_cart):
        cart = make_cart(with_address=False)
        resolved = resolve_addresses(cart, {"shipping_address": {"address_1": "3 Liberation Road"}})
        assert resolved.billing.address_1 == "3 Liberation Road"

    def test_placeholder_when_nothing_known(self, make_cart):
        cart = make_cart(with_address=False)
        resolved = resolve_addresses(cart, {"shipping_address": {"city": "Kumasi"}})
        assert resolved.source == AddressSource.PLACEHOLDER
        assert resolved.shipping.address_1 == PLACEHOLDER_ADDRESS_LINE
        assert resolved.shipping.provided is False

    def test_placeholder_without_metadata(self, make_cart):
        cart = make_cart(with_address=False)
        assert resolve_addresses(cart, None).source == AddressSource.PLACEHOLDER
