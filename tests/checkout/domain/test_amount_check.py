"""Tests for the cart-total vs. collected-amount cross-check."""

from checkout.payment.amounts import AmountCheck, check_amount


class TestAmountCheck:
    def test_exact_match(self):
        check = check_amount(expected=5500, actual=5500, currency="GHS", tolerance=100)
        assert check.delta == 0
        assert check.mismatch is False
        assert check.within_tolerance is True

    def test_small_overpayment_is_within_tolerance(self):
        check = check_amount(expected=5500, actual=5600, currency="GHS", tolerance=100)
        assert check.delta == 100
        assert check.mismatch is True
        assert check.within_tolerance is True

    def test_underpayment_outside_tolerance(self):
        check = check_amount(expected=5500, actual=3000, currency="GHS", tolerance=100)
        assert check.delta == -2500
        assert check.mismatch is True
        assert check.within_tolerance is False

    def test_zero_tolerance(self):
        check = AmountCheck(expected=5500, actual=5501, currency="GHS", tolerance=0)
        assert check.within_tolerance is False

    def test_to_dict(self):
        check = AmountCheck(expected=5500, actual=5600, currency="GHS", tolerance=100)
        assert check.to_dict() == {
            "expected": 5500,
            "actual": 5600,
            "currency": "GHS",
            "tolerance": 100,
            "delta": 100,
            "mismatch": True,
            "within_tolerance": True,
        }
