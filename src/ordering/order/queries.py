"""Read-side helpers for orders."""

from math import ceil

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.access import is_admin
from ordering.order.order import Order, OrderStatus
from ordering.order.repository import load_order

MAX_PAGE_SIZE = 100


def get_order(order_id, user_id, role: str | None = None) -> Order:
    order = load_order(order_id)
    order.assert_visible_to(user_id, role)
    return order


def get_order_tracking(order_id, user_id, role: str | None = None) -> dict:
    """Order number, current status and the status history in the order it happened."""
    return get_order(order_id, user_id, role).tracking()


def list_orders(
    user_id,
    role: str | None = None,
    status: str | None = None,
    store_id: str | None = None,
    owner_id: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """Page through orders, newest first.

    Customers only ever see their own orders. Admins see everyone's and may
    narrow the list to one customer with ``owner_id``.
    """
    if status is not None and status not in {s.value for s in OrderStatus}:
        raise ValidationError({"status": [f"Unknown status '{status}'"]})
    if page < 1:
        raise ValidationError({"page": ["Page must be at least 1"]})
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError({"limit": [f"Limit must be between 1 and {MAX_PAGE_SIZE}"]})

    owner = owner_id if is_admin(role) else user_id
    results = current_domain.repository_for(Order).search(
        offset=(page - 1) * limit,
        limit=limit,
        user_id=owner,
        status=status,
        store_id=store_id,
    )

    return {
        "orders": [
            {
                **order.summary(),
                "user_id": str(order.user_id),
                "store_id": str(order.store_id) if order.store_id else None,
                "created_at": order.created_at,
                "rating": order.rating,
            }
            for order in results.items
        ],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": results.total,
            "pages": ceil(results.total / limit) if results.total else 0,
        },
    }
