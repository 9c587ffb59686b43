"""Cart management — opening, clearing, address, notes and abandonment.

Also hosts the helpers every cart handler shares: locating the active cart,
opening a fresh one when the old one expired, and re-pricing after a change.
"""

from datetime import datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.delivery import get_delivery_calculator
from ordering.domain import ordering
from ordering.exceptions import CartNotFoundError

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------
def reprice(cart: ShoppingCart) -> None:
    cart.refresh_totals(get_delivery_calculator().quote(cart.delivery_address_id))


def load_or_open_cart(repo, user_id, store_id=None, now: datetime | None = None) -> tuple[ShoppingCart, bool]:
    """Return ``(cart, opened)`` for the user's usable active cart.

    An active cart past its TTL is abandoned and persisted first. A newly
    opened cart is NOT persisted; the caller adds it after mutating it.
    """
    cart = repo.find_active(user_id)
    if cart is not None and cart.is_expired(now):
        logger.info("Abandoning expired cart", cart_id=str(cart.id), user_id=str(user_id))
        cart.abandon(reason="expired", now=now)
        repo.add(cart)
        cart = None

    if cart is None:
        return ShoppingCart.create(user_id=user_id, store_id=store_id, now=now), True
    return cart, False


def require_active_cart(repo, user_id) -> ShoppingCart:
    cart = repo.find_active(user_id)
    if cart is None or cart.is_expired():
        raise CartNotFoundError({"cart": [f"No active cart for user {user_id}"]})
    return cart


def process_cart_command(command):
    """Process a cart command, absorbing one lost race on cart creation.

    Two concurrent requests may both find no active cart and both try to
    open one. The storage layer rejects the second insert on the unique
    ``active_owner_id``; re-running the command then finds the winner's cart.
    """
    try:
        return current_domain.process(command, asynchronous=False)
    except ValidationError as exc:
        if "active_owner_id" not in (exc.messages or {}):
            raise
        logger.info(
            "Active cart created concurrently, retrying on the existing cart",
            user_id=str(command.user_id),
            command=command.__class__.__name__,
        )
        return current_domain.process(command, asynchronous=False)


def get_or_create_active_cart(user_id, store_id=None) -> ShoppingCart:
    """Return the user's active cart, creating one when missing or expired."""
    repo = current_domain.repository_for(ShoppingCart)
    cart = repo.find_active(user_id)
    if cart is not None and not cart.is_expired():
        return cart

    cart_id = process_cart_command(OpenCart(user_id=user_id, store_id=store_id))
    return repo.get(cart_id)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@ordering.command(part_of="ShoppingCart")
class OpenCart:
    user_id = Identifier(required=True)
    store_id = Identifier()


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    user_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class SetCartDeliveryAddress:
    user_id = Identifier(required=True)
    address_id = Identifier()


@ordering.command(part_of="ShoppingCart")
class SetCartNotes:
    user_id = Identifier(required=True)
    notes = Text()


@ordering.command(part_of="ShoppingCart")
class AbandonCart:
    """Mark a cart as abandoned."""

    cart_id = Identifier(required=True)
    reason = String(max_length=100, default="expired")


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(OpenCart)
    def open_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart, opened = load_or_open_cart(repo, command.user_id, command.store_id)
        if opened:
            reprice(cart)
            repo.add(cart)
            logger.info("Opened cart", cart_id=str(cart.id), user_id=str(command.user_id))
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = require_active_cart(repo, command.user_id)
        cart.clear()
        reprice(cart)
        repo.add(cart)

    @handle(SetCartDeliveryAddress)
    def set_delivery_address(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = require_active_cart(repo, command.user_id)
        cart.set_delivery_address(command.address_id)
        reprice(cart)
        repo.add(cart)

    @handle(SetCartNotes)
    def set_notes(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = require_active_cart(repo, command.user_id)
        cart.set_notes(command.notes)
        repo.add(cart)

    @handle(AbandonCart)
    def abandon_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.abandon(reason=command.reason or "expired")
        repo.add(cart)
