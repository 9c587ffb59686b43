"""Domain events for promo codes and their usage ledger."""

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="PromoCode")
class PromoCodeCreated:
    __version__ = 1

    promo_code_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    discount_value = Float(required=True)


@ordering.event(part_of="PromoCodeUsage")
class PromoCodeRedeemed:
    """A confirmed checkout consumed one use of a promo code."""

    __version__ = 1

    usage_id = Identifier(required=True)
    promo_code_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    discount_amount = Float(required=True)
    used_at = DateTime(required=True)
