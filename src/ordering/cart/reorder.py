"""Reorder — refill the active cart from a previous order at today's prices.

Items whose product disappeared, became unavailable, or lost an add-on are
skipped and reported back. A cart bound to a different store is emptied and
rebound to the order's store first.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart, normalize_add_on_ids
from ordering.cart.inspection import resolve_unit_price
from ordering.cart.management import load_or_open_cart, reprice
from ordering.catalog import get_catalog
from ordering.domain import ordering
from ordering.order.repository import load_order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class Reorder:
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class ReorderHandler:
    @handle(Reorder)
    def reorder(self, command):
        order = load_order(command.order_id)
        order.assert_owned_by(command.user_id)

        repo = current_domain.repository_for(ShoppingCart)
        cart, _ = load_or_open_cart(repo, command.user_id, store_id=order.store_id)
        if cart.items and str(cart.store_id) != str(order.store_id):
            cart.clear()

        catalog = get_catalog()
        added, skipped = [], []
        for item in order.items:
            product = catalog.get_product(str(item.product_id))
            if product is None or not product.is_available:
                skipped.append(str(item.product_id))
                continue

            add_on_ids = normalize_add_on_ids(item.add_on_ids)
            try:
                unit_price = resolve_unit_price(catalog, product, add_on_ids)
            except ValidationError:
                skipped.append(str(item.product_id))
                continue

            cart.add_item(
                product_id=product.product_id,
                store_id=product.store_id,
                unit_price=unit_price,
                quantity=item.quantity,
                product_name=product.name,
                category_id=product.category_id,
                customization=item.customization,
                add_on_ids=add_on_ids,
                notes=item.notes,
            )
            added.append(str(item.product_id))

        reprice(cart)
        repo.add(cart)

        logger.info("Reordered into cart", order_id=str(order.id), cart_id=str(cart.id), skipped=skipped)
        return {"cart_id": str(cart.id), "added_product_ids": added, "skipped_product_ids": skipped}
