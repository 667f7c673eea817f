import pytest
from protean import current_domain


@pytest.fixture()
def fake_provider():
    from checkout.gateway import set_provider
    from checkout.gateway.fake import FakeProvider

    provider = FakeProvider()
    set_provider(provider)
    return provider


@pytest.fixture()
def outbox():
    from notifications.channel import get_channel

    return get_channel()


@pytest.fixture()
def make_cart():
    """Factory: persist a cart holding ``(title, quantity, unit_price_minor)`` lines."""
    from checkout.cart.cart import ShoppingCart
    from checkout.shared.address import Address

    def _make(lines=(("Shea Butter 250g", 2, 2750),), currency_code="GHS", email="ama@example.com", **kwargs):
        with_address = kwargs.pop("with_address", True)
        cart = ShoppingCart.create(currency_code=currency_code, email=email, **kwargs)
        for index, (title, quantity, unit_price) in enumerate(lines):
            cart.add_item(variant_id=f"variant_{index}", title=title, quantity=quantity, unit_price=unit_price)
        if with_address:
            cart.set_addresses(
                shipping_address=Address(
                    first_name="Ama",
                    last_name="Mensah",
                    address_1="12 Ring Road",
                    city="Accra",
                    country_code="gh",
                )
            )
        current_domain.repository_for(ShoppingCart).add(cart)
        return current_domain.repository_for(ShoppingCart).get(cart.id)

    return _make
