"""Order cancellation — customer and staff paths.

The two paths are deliberately separate commands: the customer path is
time-boxed by the cancellation window, the staff path is not.
"""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, StatusActor
from ordering.order.repository import load_order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    """Customer self-service cancellation."""

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    as_of = DateTime()  # Optional: defaults to now


@ordering.command(part_of="Order")
class StaffCancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    cancelled_by = String(choices=StatusActor, default=StatusActor.ADMIN.value)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id)
        order.cancel_by_customer(command.user_id, command.reason, now=command.as_of)
        current_domain.repository_for(Order).add(order)
        logger.info("Order cancelled by customer", order_id=str(order.id), refund_status=order.refund_status)

    @handle(StaffCancelOrder)
    def staff_cancel_order(self, command):
        order = load_order(command.order_id)
        order.cancel_by_staff(command.reason, actor=command.cancelled_by or StatusActor.ADMIN.value)
        current_domain.repository_for(Order).add(order)
        logger.info("Order cancelled by staff", order_id=str(order.id), cancelled_by=order.cancelled_by)
