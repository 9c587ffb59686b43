"""Customer ratings for completed orders."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.repository import load_order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class RateOrder:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True)
    review = String(max_length=1000)


@ordering.command_handler(part_of=Order)
class RateOrderHandler:
    @handle(RateOrder)
    def rate_order(self, command):
        order = load_order(command.order_id)
        order.rate(command.user_id, command.rating, command.review)
        current_domain.repository_for(Order).add(order)

        logger.info("Order rated", order_id=str(order.id), rating=command.rating)
