"""Currency normalizer — conversions between major and minor currency units.

Convention: carts, orders and gateway amounts are stored as integer minor
units (pesewas, kobo, cents). Major units (cedis, naira, dollars) are for
display and for gateways that expect them (Flutterwave).

``MinorUnits`` and ``MajorUnits`` tag an amount with its unit so the API layer
never has to guess. ``looks_like_major_unit`` survives only for importing
legacy records whose unit was never recorded.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from checkout.errors import InvalidAmount

DEFAULT_SUBUNIT_FACTOR = 100

SUBUNIT_FACTORS = {
    "GHS": 100,
    "NGN": 100,
    "KES": 100,
    "ZAR": 100,
    "USD": 100,
    "EUR": 100,
    "GBP": 100,
    "XOF": 1,
    "JPY": 1,
}

# Below these minor-unit values a legacy integer amount was most likely typed
# in major units. Only meaningful for currencies we have historical data for.
MAJOR_UNIT_THRESHOLDS = {
    "GHS": 1000,
}

CURRENCY_SYMBOLS = {
    "GHS": "GH₵",
    "NGN": "₦",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def subunit_factor(currency_code: str) -> int:
    return SUBUNIT_FACTORS.get((currency_code or "").upper(), DEFAULT_SUBUNIT_FACTOR)


def _validated(amount) -> float:
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        raise InvalidAmount(f"Invalid amount: {amount!r}. Must be a number.")
    if not math.isfinite(float(amount)):
        raise InvalidAmount(f"Invalid amount: {amount!r}. Must be finite.")
    if amount < 0:
        raise InvalidAmount(f"Invalid amount: {amount!r}. Amount cannot be negative.")
    return amount


def to_minor_unit(amount, currency_code: str) -> int:
    """Convert a major-unit amount to integer minor units, rounding half up."""
    amount = _validated(amount)
    scaled = Decimal(str(amount)) * subunit_factor(currency_code)
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_major_unit(amount, currency_code: str) -> float:
    """Convert integer minor units to a major-unit amount (display only)."""
    amount = _validated(amount)
    return float(Decimal(str(amount)) / subunit_factor(currency_code))


def looks_like_major_unit(amount, currency_code: str) -> bool:
    """Guess whether a legacy amount of unknown unit is in major units.

    True when the value has a fractional part, or when it is positive and
    below the currency threshold. This misclassifies genuinely small
    minor-unit prices (500 pesewas reads as 500 cedis); never use it on
    amounts whose unit is known.
    """
    amount = _validated(amount)
    if float(amount) != int(amount):
        return True
    threshold = MAJOR_UNIT_THRESHOLDS.get((currency_code or "").upper())
    return threshold is not None and 0 < amount < threshold


def format_minor_units(amount: int, currency_code: str) -> str:
    """Render minor units as a human-readable major amount, e.g. ``GH₵ 55.00``."""
    code = (currency_code or "").upper()
    symbol = CURRENCY_SYMBOLS.get(code, code)
    places = len(str(subunit_factor(code))) - 1
    return f"{symbol} {to_major_unit(amount, code):,.{places}f}"


@dataclass(frozen=True)
class MinorUnits:
    """An integer amount in the currency's smallest unit."""

    value: int
    currency: str

    def __post_init__(self) -> None:
        _validated(self.value)
        if isinstance(self.value, float) and not self.value.is_integer():
            raise InvalidAmount(f"Minor-unit amounts must be whole numbers, got {self.value!r}")
        object.__setattr__(self, "value", int(self.value))
        object.__setattr__(self, "currency", self.currency.upper())

    def to_major(self) -> "MajorUnits":
        return MajorUnits(to_major_unit(self.value, self.currency), self.currency)


@dataclass(frozen=True)
class MajorUnits:
    """A display amount in the currency's main unit."""

    value: float
    currency: str

    def __post_init__(self) -> None:
        _validated(self.value)
        object.__setattr__(self, "currency", self.currency.upper())

    def to_minor(self) -> MinorUnits:
        return MinorUnits(to_minor_unit(self.value, self.currency), self.currency)
