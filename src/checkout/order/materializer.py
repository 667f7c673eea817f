"""Order materializer — turns a paid cart into its order.

Runs inside the reconciliation command's unit of work. The order insert and
the cart deletion commit together; if either fails, the unit of work rolls
back and the cart stays available for a retry.
"""

import structlog
from protean.utils.globals import current_domain

from checkout.cart.cart import ShoppingCart
from checkout.order.order import Order
from checkout.order.queries import next_display_id

logger = structlog.get_logger(__name__)


def materialize(cart, payment, addresses, amount_check, completed_via) -> Order:
    """Create the order for ``cart`` and dispose of the cart.

    Does not dispatch notifications: the caller does that after commit.
    """
    order = Order.place(
        cart=cart,
        payment=payment,
        addresses=addresses,
        amount_check=amount_check,
        completed_via=completed_via,
        display_id=next_display_id(),
    )

    current_domain.repository_for(Order).add(order)
    current_domain.repository_for(ShoppingCart)._dao.delete(cart)

    logger.info(
        "order_materialized",
        order_id=str(order.id),
        display_id=order.display_id,
        cart_id=str(cart.id),
        provider=payment.provider,
        reference=payment.reference,
        completed_via=completed_via,
        address_source=addresses.source.value,
    )
    return order
