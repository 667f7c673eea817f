"""Checkout error taxonomy.

Every error carries a stable machine-readable ``code`` and the HTTP status the
API layer answers with. There is no amount-mismatch error: a mismatch is
recorded on the order and never aborts a reconciliation.
"""


class CheckoutError(Exception):
    """Base class for all reconciliation and checkout failures."""

    code = "checkout_error"
    status_code = 400

    def __init__(self, message: str | None = None, **context) -> None:
        self.message = message or self.default_message()
        self.context = context
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return cls.__doc__.strip().splitlines()[0] if cls.__doc__ else cls.code

    def to_dict(self) -> dict:
        payload = {"error": self.code, "message": self.message}
        if self.context:
            payload["details"] = self.context
        return payload


class CartNotFound(CheckoutError):
    """The cart does not exist."""

    code = "cart_not_found"
    status_code = 404


class OrderNotFound(CheckoutError):
    """The order does not exist."""

    code = "order_not_found"
    status_code = 404


class UnknownProvider(CheckoutError):
    """No payment provider is registered under this name."""

    code = "unknown_provider"
    status_code = 404


class EmptyCart(CheckoutError):
    """The cart has no line items."""

    code = "empty_cart"


class MissingCartReference(CheckoutError):
    """The payment carries no cart reference and needs manual reconciliation."""

    code = "missing_cart_reference"


class InvalidAmount(CheckoutError, ValueError):
    """The amount is not a finite, non-negative number."""

    code = "invalid_amount"


class VerificationRejected(CheckoutError):
    """The gateway rejected the transaction lookup."""

    code = "verification_rejected"


class PaymentNotSuccessful(CheckoutError):
    """The gateway does not report the payment as successful."""

    code = "payment_not_successful"


class InvalidSignature(CheckoutError):
    """The webhook signature is missing or does not match."""

    code = "invalid_signature"


class GatewayUnreachable(CheckoutError):
    """The payment gateway could not be reached."""

    code = "gateway_unreachable"
    status_code = 503


class GatewayNotConfigured(GatewayUnreachable):
    """The payment gateway is not configured."""

    code = "gateway_not_configured"


class MaterializationFailed(CheckoutError):
    """The order could not be persisted; the cart is intact and the call can be retried."""

    code = "materialization_failed"
    status_code = 500
