"""Cart abandonment detection — command and handler for sweeping expired carts.

Triggered periodically by an external scheduler (cron, K8s CronJob) through
the maintenance API endpoint. Active carts whose TTL has elapsed are
abandoned one by one through AbandonCart, so a failure on one cart does not
stop the sweep.
"""

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.management import AbandonCart
from ordering.domain import ordering
from ordering.utils.clock import utcnow

logger = structlog.get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class DetectAbandonedCarts:
    """Abandon active carts whose TTL elapsed before ``as_of``."""

    as_of = DateTime()  # Optional: defaults to now


@ordering.command_handler(part_of=ShoppingCart)
class DetectAbandonedCartsHandler:
    @handle(DetectAbandonedCarts)
    def detect_abandoned_carts(self, command):
        as_of = command.as_of or utcnow()
        logger.info("Checking for abandoned carts", as_of=as_of.isoformat())

        expired = current_domain.repository_for(ShoppingCart).find_expired(as_of)
        if not expired:
            logger.info("No abandoned carts found")
            return 0

        abandoned_count = 0
        for cart in expired:
            try:
                current_domain.process(AbandonCart(cart_id=str(cart.id)), asynchronous=False)
                abandoned_count += 1
                logger.info(
                    "Marked cart as abandoned",
                    cart_id=str(cart.id),
                    user_id=str(cart.user_id),
                    item_count=cart.item_count,
                    expires_at=str(cart.expires_at),
                )
            except (ValidationError, InvalidOperationError) as exc:
                logger.warning("Failed to abandon cart", cart_id=str(cart.id), error=str(exc))

        logger.info("Cart abandonment detection complete", abandoned_count=abandoned_count)
        return abandoned_count
