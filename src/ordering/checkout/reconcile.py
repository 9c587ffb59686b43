"""Checkout repair — finish a confirmation that stopped after the order was written.

Every step checks before it writes, so running the command on a fully
confirmed checkout changes nothing.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.checkout.session import CheckoutSession
from ordering.coupon.usage import PromoCodeUsage
from ordering.domain import ordering
from ordering.order.repository import load_order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="CheckoutSession")
class ReconcileCheckout:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=CheckoutSession)
class ReconcileCheckoutHandler:
    @handle(ReconcileCheckout)
    def reconcile_checkout(self, command):
        order = load_order(command.order_id)
        repaired = []

        if order.promo_code_id:
            usage_repo = current_domain.repository_for(PromoCodeUsage)
            if usage_repo.find_by_order(order.id) is None:
                usage_repo.add(
                    PromoCodeUsage.record(
                        promo_code_id=order.promo_code_id,
                        user_id=order.user_id,
                        order_id=order.id,
                        discount_amount=order.totals.discount,
                    )
                )
                repaired.append("promo_code_usage")

        if order.cart_id:
            cart_repo = current_domain.repository_for(ShoppingCart)
            try:
                cart = cart_repo.get(order.cart_id)
            except ObjectNotFoundError:
                cart = None
            if cart is not None and cart.is_active and cart.items:
                cart.mark_checked_out(order.id)
                cart_repo.add(cart)
                repaired.append("cart")

        session_repo = current_domain.repository_for(CheckoutSession)
        try:
            session = session_repo.get(order.checkout_session_id)
        except ObjectNotFoundError:
            session = None
        if session is not None and session.is_open:
            session.mark_confirmed(order.id)
            session_repo.add(session)
            repaired.append("checkout_session")

        if repaired:
            logger.warning("Reconciled partially confirmed checkout", order_id=str(order.id), repaired=repaired)
        return repaired
