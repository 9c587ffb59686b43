"""PromoCodeUsage aggregate — the append-only redemption ledger.

Exactly one row is written per confirmed order that used a coupon
(``order_id`` is unique). Limits are enforced by counting rows, never by a
counter on the code, so a re-check at confirmation time always sees every
redemption committed before it.
"""

from protean.fields import DateTime, Float, Identifier, String

from ordering.coupon.events import PromoCodeRedeemed
from ordering.domain import ordering
from ordering.utils.clock import utcnow


@ordering.aggregate
class PromoCodeUsage:
    promo_code_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = String(required=True, max_length=100, unique=True)
    discount_amount = Float(default=0.0, min_value=0.0)
    used_at = DateTime()

    @classmethod
    def record(cls, promo_code_id, user_id, order_id, discount_amount: float):
        now = utcnow()
        usage = cls(
            promo_code_id=promo_code_id,
            user_id=user_id,
            order_id=str(order_id),
            discount_amount=discount_amount,
            used_at=now,
        )
        usage.raise_(
            PromoCodeRedeemed(
                usage_id=str(usage.id),
                promo_code_id=str(promo_code_id),
                user_id=str(user_id),
                order_id=str(order_id),
                discount_amount=discount_amount,
                used_at=now,
            )
        )
        return usage


@ordering.repository(part_of=PromoCodeUsage)
class PromoCodeUsageRepository:
    def count_for_code(self, promo_code_id) -> int:
        return len(self._dao.query.filter(promo_code_id=str(promo_code_id)).all().items)

    def count_for_user(self, promo_code_id, user_id) -> int:
        return len(self._dao.query.filter(promo_code_id=str(promo_code_id), user_id=str(user_id)).all().items)

    def find_by_order(self, order_id) -> PromoCodeUsage | None:
        rows = self._dao.query.filter(order_id=str(order_id)).all().items
        return rows[0] if rows else None
