"""Order fulfillment — command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.order import FulfillmentStatus, Order


@checkout.command(part_of="Order")
class RecordFulfillment:
    order_id = Identifier(required=True)
    fulfillment_status = String(required=True, choices=FulfillmentStatus)


@checkout.command_handler(part_of=Order)
class OrderFulfillmentHandler:
    @handle(RecordFulfillment)
    def record_fulfillment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_fulfillment(command.fulfillment_status)
        repo.add(order)
