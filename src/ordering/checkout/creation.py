"""Starting checkout — snapshot the active cart into a CheckoutSession."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.inspection import inspect_lines
from ordering.checkout.session import CheckoutSession
from ordering.delivery import get_delivery_calculator
from ordering.domain import ordering
from ordering.exceptions import CartInvalidError, EmptyCartError

logger = structlog.get_logger(__name__)


@ordering.command(part_of="CheckoutSession")
class CreateCheckoutSession:
    user_id = Identifier(required=True)


@ordering.command_handler(part_of=CheckoutSession)
class CreateCheckoutSessionHandler:
    @handle(CreateCheckoutSession)
    def create_checkout_session(self, command):
        cart = current_domain.repository_for(ShoppingCart).find_active(command.user_id)
        if cart is None or cart.is_expired() or not cart.items:
            raise EmptyCartError({"cart": ["Cart is empty"]})

        issues = inspect_lines(cart.items, store_id=cart.store_id)
        if issues:
            raise CartInvalidError({"cart": [issue.message for issue in issues]})

        delivery_fee = get_delivery_calculator().quote(cart.delivery_address_id)
        session = CheckoutSession.start(cart, delivery_fee=delivery_fee)
        current_domain.repository_for(CheckoutSession).add(session)

        logger.info(
            "Checkout session created",
            session_id=str(session.id),
            user_id=str(command.user_id),
            total=session.totals.total,
        )
        return str(session.id)
