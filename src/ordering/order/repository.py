"""Repository for the Order aggregate."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.exceptions import OrderNotFoundError
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def find_by_session(self, checkout_session_id) -> Order | None:
        orders = self._dao.query.filter(checkout_session_id=str(checkout_session_id)).all().items
        return orders[0] if orders else None

    def search(self, offset: int = 0, limit: int = 20, **criteria):
        """Newest first. ``criteria`` are exact-match filters; None values are ignored."""
        filters = {field: str(value) for field, value in criteria.items() if value is not None}
        query = self._dao.query
        if filters:
            query = query.filter(**filters)
        return query.order_by("-created_at").offset(offset).limit(limit).all()


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFoundError({"order_id": [f"Order {order_id} not found"]}) from exc
