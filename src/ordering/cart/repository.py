"""Repository for the ShoppingCart aggregate."""

from datetime import datetime

from ordering.cart.cart import CartStatus, ShoppingCart
from ordering.domain import ordering
from ordering.utils.clock import as_utc


@ordering.repository(part_of=ShoppingCart)
class ShoppingCartRepository:
    def find_active(self, user_id) -> ShoppingCart | None:
        """Return the user's active cart, or None."""
        carts = self._dao.query.filter(active_owner_id=str(user_id)).all().items
        return carts[0] if carts else None

    def find_expired(self, as_of: datetime) -> list[ShoppingCart]:
        active = self._dao.query.filter(status=CartStatus.ACTIVE.value).all().items
        return [cart for cart in active if cart.expires_at and as_utc(cart.expires_at) <= as_utc(as_of)]
