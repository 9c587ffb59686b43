"""Tests for the customer notification event handler."""

from datetime import UTC, datetime

from ordering.order.events import OrderConfirmed, OrderStatusChanged
from ordering.order.notifications import OrderNotificationHandler

_NOW = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)


def _status_changed(new_status, changed_by="store", previous_status="confirmed"):
    return OrderStatusChanged(
        order_id="order-001",
        order_number="ORD-ABC-1234",
        user_id="user-001",
        previous_status=previous_status,
        new_status=new_status,
        changed_by=changed_by,
        changed_at=_NOW,
    )


class TestOrderNotificationHandler:
    def test_order_confirmed(self, dispatcher):
        OrderNotificationHandler().on_order_confirmed(
            OrderConfirmed(
                order_id="order-001",
                order_number="ORD-ABC-1234",
                user_id="user-001",
                transaction_id="TXN-1",
                total=11.30,
                confirmed_at=_NOW,
            )
        )
        message = dispatcher.sent[-1]
        assert message["user_id"] == "user-001"
        assert message["kind"] == "order_confirmed"
        assert "11.30" in message["body"]

    def test_ready_for_pickup(self, dispatcher):
        OrderNotificationHandler().on_order_status_changed(_status_changed("ready", previous_status="preparing"))
        message = dispatcher.sent[-1]
        assert message["kind"] == "order_status_changed"
        assert message["body"] == "Your order is ready for pickup."
        assert message["data"]["new_status"] == "ready"

    def test_payment_confirmation_not_sent_twice(self, dispatcher):
        OrderNotificationHandler().on_order_status_changed(
            _status_changed("confirmed", changed_by="system", previous_status="pending_payment")
        )
        assert dispatcher.sent == []

    def test_failing_channel_does_not_raise(self, dispatcher):
        dispatcher.should_fail = True
        OrderNotificationHandler().on_order_status_changed(_status_changed("preparing"))
        assert dispatcher.sent == []
