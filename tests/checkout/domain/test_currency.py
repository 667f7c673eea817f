"""Tests for the currency normalizer."""

import math

import pytest
from checkout.currency import (
    MajorUnits,
    MinorUnits,
    format_minor_units,
    looks_like_major_unit,
    subunit_factor,
    to_major_unit,
    to_minor_unit,
)
from checkout.errors import InvalidAmount


class TestToMinorUnit:
    @pytest.mark.parametrize(
        "amount,currency,expected",
        [
            (55, "GHS", 5500),
            (55.5, "GHS", 5550),
            (19.99, "USD", 1999),
            (0, "GHS", 0),
            (1200, "JPY", 1200),
        ],
    )
    def test_converts_major_to_minor(self, amount, currency, expected):
        assert to_minor_unit(amount, currency) == expected

    def test_rounds_half_up(self):
        assert to_minor_unit(0.015, "GHS") == 2
        assert to_minor_unit(0.014, "GHS") == 1

    def test_result_is_int(self):
        assert isinstance(to_minor_unit(55.0, "GHS"), int)

    def test_unknown_currency_defaults_to_hundred(self):
        assert subunit_factor("XYZ") == 100
        assert to_minor_unit(3, "XYZ") == 300

    def test_currency_code_is_case_insensitive(self):
        assert to_minor_unit(1, "ghs") == 100

    @pytest.mark.parametrize("bad", [-1, -0.01, math.nan, math.inf, "55", None, True])
    def test_rejects_invalid_amounts(self, bad):
        with pytest.raises(InvalidAmount):
            to_minor_unit(bad, "GHS")

    def test_invalid_amount_is_a_value_error(self):
        with pytest.raises(ValueError):
            to_minor_unit(-5, "GHS")


class TestToMajorUnit:
    def test_converts_minor_to_major(self):
        assert to_major_unit(5500, "GHS") == 55.0
        assert to_major_unit(1999, "USD") == 19.99

    def test_rejects_negative(self):
        with pytest.raises(InvalidAmount):
            to_major_unit(-100, "GHS")

    @pytest.mark.parametrize("minor", [0, 1, 99, 100, 5500, 5599, 1999, 123456789])
    def test_round_trip_is_stable(self, minor):
        assert to_minor_unit(to_major_unit(minor, "GHS"), "GHS") == minor


class TestLooksLikeMajorUnit:
    def test_fractional_value_is_major(self):
        assert looks_like_major_unit(55.5, "GHS") is True

    def test_large_integer_is_minor(self):
        assert looks_like_major_unit(5500, "GHS") is False

    def test_zero_is_not_major(self):
        assert looks_like_major_unit(0, "GHS") is False

    def test_small_ghs_integer_is_treated_as_major(self):
        assert looks_like_major_unit(55, "GHS") is True

    def test_misclassifies_small_minor_unit_prices(self):
        # 500 pesewas (GH₵ 5.00) is indistinguishable from GH₵ 500 by value alone
        assert looks_like_major_unit(500, "GHS") is True

    def test_threshold_only_applies_to_ghs(self):
        assert looks_like_major_unit(500, "USD") is False


class TestFormatMinorUnits:
    def test_formats_cedis(self):
        assert format_minor_units(5500, "GHS") == "GH₵ 55.00"

    def test_formats_with_thousands_separator(self):
        assert format_minor_units(123456, "USD") == "$ 1,234.56"

    def test_unknown_currency_uses_code(self):
        assert format_minor_units(250, "KES") == "KES 2.50"

    def test_zero_decimal_currency_has_no_fraction(self):
        assert format_minor_units(1000, "JPY") == "JPY 1,000"
        assert format_minor_units(2500, "XOF") == "XOF 2,500"

    def test_unlisted_currency_keeps_two_places(self):
        assert format_minor_units(1999, "CAD") == "CAD 19.99"


class TestTaggedAmounts:
    def test_major_to_minor(self):
        assert MajorUnits(55, "ghs").to_minor() == MinorUnits(5500, "GHS")

    def test_minor_to_major(self):
        assert MinorUnits(5550, "GHS").to_major().value == 55.5

    def test_minor_units_must_be_whole(self):
        with pytest.raises(InvalidAmount):
            MinorUnits(55.5, "GHS")

    def test_minor_units_accept_whole_float(self):
        assert MinorUnits(5500.0, "GHS").value == 5500

    def test_negative_rejected(self):
        with pytest.raises(InvalidAmount):
            MajorUnits(-1, "GHS")
