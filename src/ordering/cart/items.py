"""Cart item management — commands and handler."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart, normalize_add_on_ids
from ordering.cart.inspection import resolve_unit_price
from ordering.cart.management import load_or_open_cart, reprice, require_active_cart
from ordering.catalog import get_catalog
from ordering.domain import ordering
from ordering.exceptions import ProductNotFoundError
from ordering.shared.customization import Customization

logger = structlog.get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class AddItemToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    customization = Text()  # JSON object: size, sugar_level, ice_level, coffee_level
    add_on_ids = Text()  # JSON array
    notes = Text()


@ordering.command(part_of="ShoppingCart")
class UpdateCartItemQuantity:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class RemoveCartItem:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddItemToCart)
    def add_item_to_cart(self, command):
        catalog = get_catalog()
        product = catalog.get_product(str(command.product_id))
        if product is None:
            raise ProductNotFoundError({"product_id": [f"Product {command.product_id} does not exist"]})
        if not product.is_available:
            raise ValidationError({"product_id": [f"{product.name} is currently unavailable"]})

        store = catalog.get_store(product.store_id)
        if store is None or not store.is_active:
            raise ValidationError({"store_id": ["Store is not accepting orders"]})

        add_on_ids = normalize_add_on_ids(command.add_on_ids)
        unit_price = resolve_unit_price(catalog, product, add_on_ids)
        customization = Customization.from_dict(json.loads(command.customization) if command.customization else None)

        repo = current_domain.repository_for(ShoppingCart)
        cart, opened = load_or_open_cart(repo, command.user_id, store_id=product.store_id)
        item = cart.add_item(
            product_id=product.product_id,
            store_id=product.store_id,
            unit_price=unit_price,
            quantity=command.quantity,
            product_name=product.name,
            category_id=product.category_id,
            customization=customization,
            add_on_ids=add_on_ids,
            notes=command.notes,
        )
        reprice(cart)
        repo.add(cart)

        logger.info(
            "Added item to cart",
            cart_id=str(cart.id),
            user_id=str(command.user_id),
            product_id=product.product_id,
            opened_cart=opened,
        )
        return str(item.id)

    @handle(UpdateCartItemQuantity)
    def update_cart_item_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = require_active_cart(repo, command.user_id)
        cart.update_item_quantity(item_id=command.item_id, quantity=command.quantity)
        reprice(cart)
        repo.add(cart)

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = require_active_cart(repo, command.user_id)
        cart.remove_item(item_id=command.item_id)
        reprice(cart)
        repo.add(cart)
