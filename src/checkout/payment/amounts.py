"""Amount cross-check between a cart total and what the gateway collected."""

from dataclasses import asdict, dataclass

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AmountCheck:
    """Outcome of comparing the expected and the verified amount, both in minor units.

    A mismatch is a warning record: it is stored on the order and never stops
    materialization. ``within_tolerance`` says whether the difference is small
    enough to be rounding noise.
    """

    expected: int
    actual: int
    currency: str
    tolerance: int

    @property
    def delta(self) -> int:
        return self.actual - self.expected

    @property
    def mismatch(self) -> bool:
        return self.delta != 0

    @property
    def within_tolerance(self) -> bool:
        return abs(self.delta) <= self.tolerance

    def to_dict(self) -> dict:
        return {**asdict(self), "delta": self.delta, "mismatch": self.mismatch, "within_tolerance": self.within_tolerance}


def check_amount(expected: int, actual: int, currency: str, tolerance: int, **log_context) -> AmountCheck:
    check = AmountCheck(expected=expected, actual=actual, currency=currency, tolerance=tolerance)
    if check.mismatch:
        logger.warning(
            "payment_amount_mismatch",
            expected=expected,
            actual=actual,
            delta=check.delta,
            currency=currency,
            within_tolerance=check.within_tolerance,
            **log_context,
        )
    return check
