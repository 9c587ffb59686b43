"""Read-side helpers for the cart: current cart, summary and validation."""

from protean.utils.globals import current_domain

from ordering import settings
from ordering.cart.cart import ShoppingCart
from ordering.cart.inspection import CartIssue, inspect_lines


def get_active_cart(user_id) -> ShoppingCart | None:
    cart = current_domain.repository_for(ShoppingCart).find_active(user_id)
    if cart is None or cart.is_expired():
        return None
    return cart


def get_cart_summary(user_id) -> dict:
    cart = get_active_cart(user_id)
    if cart is None:
        return {
            "cart_id": None,
            "item_count": 0,
            "subtotal": 0.0,
            "discount": 0.0,
            "tax": 0.0,
            "delivery_fee": 0.0,
            "total": 0.0,
            "currency": settings.currency(),
        }

    totals = cart.totals
    return {
        "cart_id": str(cart.id),
        "item_count": cart.item_count,
        "subtotal": totals.subtotal,
        "discount": totals.discount,
        "tax": totals.tax,
        "delivery_fee": totals.delivery_fee,
        "total": totals.total,
        "currency": totals.currency,
    }


def validate_cart(user_id) -> list[CartIssue]:
    """Describe everything that would stop the cart from checking out. Never raises."""
    cart = get_active_cart(user_id)
    if cart is None or not cart.items:
        return [CartIssue(code="cart_empty", message="Cart is empty")]
    return inspect_lines(cart.items, store_id=cart.store_id)
