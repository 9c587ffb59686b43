"""Domain events for the CheckoutSession aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="CheckoutSession")
class CheckoutStarted:
    __version__ = 1

    session_id = Identifier(required=True)
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    total = Float(required=True)
    expires_at = DateTime(required=True)


@ordering.event(part_of="CheckoutSession")
class CheckoutCouponApplied:
    __version__ = 1

    session_id = Identifier(required=True)
    code = String(required=True)
    discount = Float(required=True)
    total = Float(required=True)


@ordering.event(part_of="CheckoutSession")
class CheckoutCouponRemoved:
    __version__ = 1

    session_id = Identifier(required=True)
    code = String(required=True)
    total = Float(required=True)


@ordering.event(part_of="CheckoutSession")
class CheckoutConfirmed:
    """The session was converted into an order and is now consumed."""

    __version__ = 1

    session_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
