"""Coupon eligibility — the ordered checks run when a coupon is applied.

The order matters and is part of the contract: unknown code, then expiry,
then store/category restrictions, then usage limits, then minimum order.
A customer therefore sees "expired" for an expired code even when their
basket is also below the minimum.
"""

from datetime import datetime

from protean.utils.globals import current_domain

from ordering.coupon.promo_code import PromoCode
from ordering.coupon.usage import PromoCodeUsage
from ordering.exceptions import (
    CouponExpiredError,
    CouponMinOrderError,
    CouponNotApplicableError,
    CouponNotFoundError,
    CouponUsageLimitError,
)


def find_promo_code(code: str) -> PromoCode:
    promo = current_domain.repository_for(PromoCode).find_by_code(code)
    if promo is None:
        raise CouponNotFoundError({"code": [f"Promo code {code!r} does not exist"]})
    return promo


def ensure_usage_available(promo: PromoCode, user_id) -> None:
    """Count the ledger and reject when either limit is already reached."""
    usage_repo = current_domain.repository_for(PromoCodeUsage)

    if promo.usage_limit is not None and usage_repo.count_for_code(promo.id) >= promo.usage_limit:
        raise CouponUsageLimitError({"code": [f"Promo code {promo.code} has reached its usage limit"]})

    if promo.user_usage_limit is not None and usage_repo.count_for_user(promo.id, user_id) >= promo.user_usage_limit:
        raise CouponUsageLimitError({"code": [f"You have already used promo code {promo.code}"]})


def assess_coupon(
    code: str,
    user_id,
    store_id,
    category_ids,
    subtotal: float,
    at: datetime | None = None,
) -> PromoCode:
    """Return the promo code when it may be applied, raise otherwise."""
    promo = find_promo_code(code)

    if not promo.is_live(at):
        raise CouponExpiredError({"code": [f"Promo code {promo.code} is expired or inactive"]})

    if not promo.applies_to(store_id, category_ids):
        raise CouponNotApplicableError({"code": [f"Promo code {promo.code} does not apply to this order"]})

    ensure_usage_available(promo, user_id)

    if subtotal < (promo.min_order_amount or 0.0):
        raise CouponMinOrderError(
            {"code": [f"Minimum order amount for {promo.code} is {promo.min_order_amount:.2f}"]}
        )

    return promo
