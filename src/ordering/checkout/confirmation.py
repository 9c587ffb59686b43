"""Confirming checkout — convert a session into exactly one Order.

The steps run strictly in this order inside one unit of work:

    1. re-validate the snapshot (own arithmetic, source cart unchanged,
       catalog prices and availability unchanged) and recount the coupon
       ledger
    2. create the Order (PENDING_PAYMENT / payment PENDING)
    3. write the PromoCodeUsage row, when a coupon was applied
    4. mark the cart checked out
    5. mark the session confirmed

A second confirmation of the same session fails at the session guard
(the session is consumed) and, failing that, at the unique
``checkout_session_id`` on orders. If a provider without multi-document
transactions stops after step 2, ReconcileCheckout finishes steps 3 to 5.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.inspection import inspect_lines
from ordering.checkout.repository import load_session
from ordering.checkout.session import CheckoutSession
from ordering.coupon.eligibility import ensure_usage_available
from ordering.coupon.promo_code import PromoCode
from ordering.coupon.usage import PromoCodeUsage
from ordering.domain import ordering
from ordering.exceptions import CartInvalidError, SessionNotFoundError
from ordering.order.order import Order
from ordering.payment.methods import normalize_payment_method

logger = structlog.get_logger(__name__)


@ordering.command(part_of="CheckoutSession")
class ConfirmCheckout:
    user_id = Identifier(required=True)
    session_id = Identifier(required=True)
    payment_method = String(required=True, max_length=20)


def snapshot_problems(session: CheckoutSession, cart: ShoppingCart | None) -> list[str]:
    problems = list(session.arithmetic_errors())

    if cart is None or not cart.is_active:
        problems.append("Cart is no longer active")
    elif cart.fingerprint() != session.cart_fingerprint:
        problems.append("Cart changed after checkout started")

    problems.extend(issue.message for issue in inspect_lines(session.lines, store_id=session.store_id))
    return problems


@ordering.command_handler(part_of=CheckoutSession)
class ConfirmCheckoutHandler:
    @handle(ConfirmCheckout)
    def confirm_checkout(self, command):
        session = load_session(command.session_id, command.user_id)
        payment_method = normalize_payment_method(command.payment_method)

        order_repo = current_domain.repository_for(Order)
        if order_repo.find_by_session(session.id) is not None:
            raise SessionNotFoundError({"session_id": [f"Checkout session {session.id} not found"]})

        # 1. Re-validate
        cart_repo = current_domain.repository_for(ShoppingCart)
        try:
            cart = cart_repo.get(session.cart_id)
        except ObjectNotFoundError:
            cart = None

        problems = snapshot_problems(session, cart)
        if problems:
            raise CartInvalidError({"cart": problems})

        promo = None
        if session.coupon:
            promo = current_domain.repository_for(PromoCode).get(session.coupon.promo_code_id)
            ensure_usage_available(promo, command.user_id)

        # 2. Order
        order = Order.place(session, payment_method=payment_method)
        order_repo.add(order)

        # 3. Ledger
        if promo is not None:
            current_domain.repository_for(PromoCodeUsage).add(
                PromoCodeUsage.record(
                    promo_code_id=promo.id,
                    user_id=command.user_id,
                    order_id=order.id,
                    discount_amount=session.totals.discount,
                )
            )

        # 4. Cart
        cart.mark_checked_out(order.id)
        cart_repo.add(cart)

        # 5. Session
        session.mark_confirmed(order.id)
        current_domain.repository_for(CheckoutSession).add(session)

        logger.info(
            "Checkout confirmed",
            session_id=str(session.id),
            order_id=str(order.id),
            order_number=order.order_number,
            total=order.totals.total,
            coupon=session.coupon.code if session.coupon else None,
        )
        return str(order.id)
