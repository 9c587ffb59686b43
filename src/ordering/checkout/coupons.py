"""Coupons on a checkout session — apply and remove.

Applying a coupon only prices it into the session. The redemption is
written to the usage ledger when the session is confirmed.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.checkout.repository import load_session
from ordering.checkout.session import CheckoutSession
from ordering.coupon.eligibility import assess_coupon
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="CheckoutSession")
class ApplyCoupon:
    user_id = Identifier(required=True)
    session_id = Identifier(required=True)
    code = String(required=True, max_length=50)


@ordering.command(part_of="CheckoutSession")
class RemoveCoupon:
    user_id = Identifier(required=True)
    session_id = Identifier(required=True)


@ordering.command_handler(part_of=CheckoutSession)
class CheckoutCouponHandler:
    @handle(ApplyCoupon)
    def apply_coupon(self, command):
        session = load_session(command.session_id, command.user_id)
        promo = assess_coupon(
            code=command.code,
            user_id=command.user_id,
            store_id=session.store_id,
            category_ids=session.category_ids,
            subtotal=session.totals.subtotal,
        )
        session.apply_coupon(promo)
        current_domain.repository_for(CheckoutSession).add(session)

        logger.info(
            "Coupon applied to checkout",
            session_id=str(session.id),
            code=promo.code,
            discount=session.totals.discount,
        )
        return session.totals.to_dict()

    @handle(RemoveCoupon)
    def remove_coupon(self, command):
        session = load_session(command.session_id, command.user_id)
        session.remove_coupon()
        current_domain.repository_for(CheckoutSession).add(session)
        return session.totals.to_dict()
