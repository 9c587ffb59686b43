"""PromoCode aggregate — discount rules a customer can redeem at checkout.

Codes are stored upper-cased and trimmed, so look-ups are case-insensitive.
Redemptions are not counted on the code itself; they are rows in the
PromoCodeUsage ledger, counted whenever a limit has to be checked.
"""

import json
from datetime import datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from ordering.coupon.events import PromoCodeCreated
from ordering.domain import ordering
from ordering.pricing import CouponTerms, DiscountType
from ordering.utils.clock import as_utc, utcnow


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


@ordering.aggregate
class PromoCode:
    code = String(required=True, max_length=50, unique=True)
    description = Text()
    discount_type = String(choices=DiscountType, required=True)
    discount_value = Float(required=True, min_value=0.0)
    min_order_amount = Float(default=0.0, min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    usage_limit = Integer(min_value=0)  # None means unlimited
    user_usage_limit = Integer(min_value=0)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    is_active = Boolean(default=True)
    applicable_store_ids = Text()  # JSON array; empty means every store
    applicable_category_ids = Text()  # JSON array; empty means every category
    created_at = DateTime()

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_until and as_utc(self.valid_until) <= as_utc(self.valid_from):
            raise ValidationError({"valid_until": ["valid_until must be after valid_from"]})

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @classmethod
    def create(
        cls,
        code: str,
        discount_type: str,
        discount_value: float,
        valid_from: datetime,
        valid_until: datetime,
        description: str | None = None,
        min_order_amount: float = 0.0,
        max_discount_amount: float | None = None,
        usage_limit: int | None = None,
        user_usage_limit: int | None = None,
        is_active: bool = True,
        applicable_store_ids: list[str] | None = None,
        applicable_category_ids: list[str] | None = None,
    ):
        promo = cls(
            code=normalize_code(code),
            description=description,
            discount_type=discount_type,
            discount_value=discount_value,
            min_order_amount=min_order_amount or 0.0,
            max_discount_amount=max_discount_amount,
            usage_limit=usage_limit,
            user_usage_limit=user_usage_limit,
            valid_from=valid_from,
            valid_until=valid_until,
            is_active=is_active,
            applicable_store_ids=json.dumps([str(s) for s in applicable_store_ids or []]),
            applicable_category_ids=json.dumps([str(c) for c in applicable_category_ids or []]),
            created_at=utcnow(),
        )
        promo.raise_(
            PromoCodeCreated(
                promo_code_id=str(promo.id),
                code=promo.code,
                discount_type=promo.discount_type,
                discount_value=promo.discount_value,
            )
        )
        return promo

    @property
    def store_ids(self) -> list[str]:
        return json.loads(self.applicable_store_ids) if self.applicable_store_ids else []

    @property
    def category_ids(self) -> list[str]:
        return json.loads(self.applicable_category_ids) if self.applicable_category_ids else []

    def is_live(self, at: datetime | None = None) -> bool:
        """Active and inside ``[valid_from, valid_until)``."""
        at = as_utc(at or utcnow())
        return bool(self.is_active) and as_utc(self.valid_from) <= at < as_utc(self.valid_until)

    def applies_to(self, store_id, category_ids) -> bool:
        if self.store_ids and str(store_id) not in self.store_ids:
            return False
        if self.category_ids:
            wanted = set(self.category_ids)
            return any(str(c) in wanted for c in category_ids if c)
        return True

    def terms(self) -> CouponTerms:
        return CouponTerms(
            discount_type=self.discount_type,
            discount_value=self.discount_value,
            max_discount_amount=self.max_discount_amount,
        )

    def deactivate(self) -> None:
        self.is_active = False
