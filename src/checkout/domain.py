"""Checkout bounded context — carts, orders and payment reconciliation.

Customers fill a ShoppingCart (CQRS), pay through a hosted gateway, and the
reconciliation engine turns each paid cart into exactly one Order (CQRS).
"""

import structlog
from protean.domain import Domain

from checkout.utils.logging import configure_logging

configure_logging()

checkout = Domain(name="checkout")

logger = structlog.get_logger(__name__)
