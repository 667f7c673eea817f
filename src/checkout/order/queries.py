"""Order lookups shared by reconciliation and the HTTP API."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.errors import OrderNotFound
from checkout.order.order import Order


def get_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError as exc:
        raise OrderNotFound(f"Order {order_id} not found", order_id=str(order_id)) from exc


def find_order_by_payment_key(payment_key: str) -> Order | None:
    repo = current_domain.repository_for(Order)
    matches = repo._dao.query.filter(payment_key=payment_key).all().items
    if not matches:
        return None
    # Reload through the repository so the aggregate comes back with its entities
    return repo.get(matches[0].id)


def find_order_by_reference(provider: str, reference: str) -> Order | None:
    return find_order_by_payment_key(f"{provider}:{reference}")


def find_order_by_cart(cart_id) -> Order | None:
    repo = current_domain.repository_for(Order)
    matches = repo._dao.query.filter(cart_id=str(cart_id)).all().items
    return repo.get(matches[0].id) if matches else None


def orders_for_customer(customer_id, limit: int = 50) -> list[Order]:
    repo = current_domain.repository_for(Order)
    matches = repo._dao.query.filter(customer_id=str(customer_id)).order_by("-display_id").limit(limit).all().items
    return [repo.get(match.id) for match in matches]


def next_display_id() -> int:
    latest = current_domain.repository_for(Order)._dao.query.order_by("-display_id").limit(1).all().items
    return (latest[0].display_id + 1) if latest else 1
