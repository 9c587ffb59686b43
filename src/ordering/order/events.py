"""Domain events for the Order aggregate.

All events are versioned, immutable facts. ``OrderConfirmed`` and
``OrderStatusChanged`` drive customer notifications.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A checkout session was converted into an order awaiting payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    store_id = Identifier()
    checkout_session_id = Identifier(required=True)
    payment_method = String(required=True)
    total = Float(required=True)
    currency = String(default="USD")
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderConfirmed:
    """Payment completed and the store can start preparing the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    transaction_id = String()
    total = Float(required=True)
    confirmed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = String(required=True)
    notes = Text()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String(required=True)
    cancelled_by = String(required=True)
    refund_amount = Float()
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class RefundCompleted:
    __version__ = 1

    order_id = Identifier(required=True)
    refund_amount = Float(required=True)
    refund_reference = String()
    refunded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderRated:
    """The customer rated a completed order."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True)
    review = Text()
    rated_at = DateTime(required=True)
