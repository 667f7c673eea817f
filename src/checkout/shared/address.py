"""Address value object shared by carts and orders."""

from protean.fields import Boolean, String

from checkout.domain import checkout

PLACEHOLDER_ADDRESS_LINE = "Address not provided"

_ADDRESS_KEYS = (
    "first_name",
    "last_name",
    "address_1",
    "address_2",
    "city",
    "province",
    "postal_code",
    "country_code",
    "phone",
)


@checkout.value_object
class Address:
    """A postal address captured on a cart and snapshotted onto an order.

    ``provided`` is False only for the placeholder that stands in when neither
    the cart nor the payment metadata carried an address.
    """

    first_name = String(max_length=100)
    last_name = String(max_length=100)
    address_1 = String(max_length=255)
    address_2 = String(max_length=255)
    city = String(max_length=100)
    province = String(max_length=100)
    postal_code = String(max_length=20)
    country_code = String(max_length=2)
    phone = String(max_length=50)
    provided = Boolean(default=True)

    @classmethod
    def placeholder(cls, country_code=None):
        return cls(
            first_name="Customer",
            address_1=PLACEHOLDER_ADDRESS_LINE,
            country_code=country_code,
            provided=False,
        )

    @classmethod
    def from_dict(cls, data):
        """Build an address from a loosely-shaped dict (cart payload or gateway metadata).

        Returns None when the dict carries no usable address line.
        """
        if not isinstance(data, dict):
            return None
        values = {key: str(data[key]).strip() for key in _ADDRESS_KEYS if data.get(key) not in (None, "")}
        if "country_code" in values:
            values["country_code"] = values["country_code"].lower()[:2]
        if not values.get("address_1"):
            return None
        return cls(**values, provided=True)
