"""Customer notifications for order confirmation and status changes.

Dispatch is fire-and-forget: a failing channel is logged and never fails
the order flow that raised the event.
"""

import structlog
from protean.utils.mixins import handle

from ordering.domain import ordering
from ordering.notifications import get_dispatcher
from ordering.order.events import OrderConfirmed, OrderStatusChanged
from ordering.order.order import Order

logger = structlog.get_logger(__name__)

_STATUS_MESSAGES = {
    "confirmed": "Your order has been confirmed.",
    "preparing": "The store is preparing your order.",
    "ready": "Your order is ready for pickup.",
    "picked_up": "Your order has been picked up.",
    "completed": "Your order is complete. Thank you!",
    "cancelled": "Your order has been cancelled.",
}


def _dispatch(user_id: str, kind: str, title: str, body: str, data: dict) -> None:
    try:
        get_dispatcher().dispatch(user_id=user_id, kind=kind, title=title, body=body, data=data)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Notification dispatch failed", user_id=user_id, kind=kind, error=str(exc))


@ordering.event_handler(part_of=Order)
class OrderNotificationHandler:
    @handle(OrderConfirmed)
    def on_order_confirmed(self, event: OrderConfirmed) -> None:
        _dispatch(
            user_id=str(event.user_id),
            kind="order_confirmed",
            title=f"Order {event.order_number} confirmed",
            body=f"We received your payment of {event.total:.2f}.",
            data={"order_id": str(event.order_id)},
        )

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        # Payment confirmation already produced its own message
        if event.new_status == "confirmed" and event.changed_by == "system":
            return
        _dispatch(
            user_id=str(event.user_id),
            kind="order_status_changed",
            title=f"Order {event.order_number} update",
            body=_STATUS_MESSAGES.get(event.new_status, f"Your order is now {event.new_status}."),
            data={
                "order_id": str(event.order_id),
                "previous_status": event.previous_status,
                "new_status": event.new_status,
            },
        )
