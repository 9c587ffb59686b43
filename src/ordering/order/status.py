"""Order status updates by staff — command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.access import is_admin
from ordering.domain import ordering
from ordering.exceptions import InsufficientRoleError
from ordering.order.order import Order
from ordering.order.repository import load_order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    actor_role = String(required=True, max_length=20)
    notes = Text()


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        if not is_admin(command.actor_role):
            raise InsufficientRoleError({"role": ["Only admins can change order status"]})

        order = load_order(command.order_id)
        previous = order.status
        order.advance_status(command.status, actor="admin", notes=command.notes)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
        )
