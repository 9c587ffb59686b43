"""Application tests for cart commands and queries."""

import json
from datetime import timedelta

import pytest
from ordering.cart.cart import CartStatus, ShoppingCart
from ordering.cart.items import AddItemToCart, RemoveCartItem, UpdateCartItemQuantity
from ordering.cart.management import (
    ClearCart,
    OpenCart,
    SetCartDeliveryAddress,
    SetCartNotes,
    get_or_create_active_cart,
    process_cart_command,
)
from ordering.cart.queries import get_active_cart, get_cart_summary, validate_cart
from ordering.exceptions import CartNotFoundError, ProductNotFoundError
from ordering.utils.clock import utcnow
from protean import current_domain
from protean.exceptions import ValidationError


def _add(user_id="user-001", product_id="prod-latte", quantity=1, **kwargs):
    command = AddItemToCart(user_id=user_id, product_id=product_id, quantity=quantity, **kwargs)
    return process_cart_command(command)


def _active(user_id="user-001"):
    return current_domain.repository_for(ShoppingCart).find_active(user_id)


def _carts_for(user_id):
    return current_domain.repository_for(ShoppingCart)._dao.query.filter(user_id=user_id).all().items


class TestAddItemToCart:
    def test_creates_cart_on_first_add(self):
        item_id = _add(quantity=2)
        cart = _active()
        assert cart is not None
        assert str(cart.items[0].id) == item_id
        assert cart.store_id == "store-001"
        assert cart.totals.subtotal == 10.00
        assert cart.totals.delivery_fee == 2.50

    def test_price_includes_add_ons(self):
        _add(add_on_ids=json.dumps(["addon-shot", "addon-pearls"]))
        assert _active().items[0].unit_price == 6.25

    def test_customization_is_stored(self):
        _add(customization=json.dumps({"size": "large", "ice_level": "less"}))
        custom = _active().items[0].customization
        assert custom.size == "large"
        assert custom.ice_level == "less"

    def test_price_is_locked_at_add_time(self, catalog):
        _add()
        catalog.set_price("prod-latte", 6.00)
        assert _active().items[0].unit_price == 5.00

    def test_missing_product(self):
        with pytest.raises(ProductNotFoundError):
            _add(product_id="prod-ghost")

    def test_unavailable_product(self, catalog):
        catalog.set_availability("prod-latte", False)
        with pytest.raises(ValidationError):
            _add()

    def test_inactive_store(self, catalog):
        catalog.add_store("store-001", is_active=False)
        with pytest.raises(ValidationError):
            _add()

    def test_unknown_add_on(self):
        with pytest.raises(ValidationError):
            _add(add_on_ids=json.dumps(["addon-ghost"]))

    def test_other_store_rejected(self):
        _add()
        with pytest.raises(ValidationError) as exc:
            _add(product_id="prod-mocha")
        assert "Cannot add items from different stores" in exc.value.messages["store_id"]


class TestOneActiveCart:
    def test_repeated_adds_share_one_cart(self):
        for product_id in ("prod-latte", "prod-tea", "prod-latte", "prod-tea", "prod-latte"):
            _add(product_id=product_id)
        active = [c for c in _carts_for("user-001") if c.status == CartStatus.ACTIVE.value]
        assert len(active) == 1
        assert active[0].item_count == 5

    def test_open_cart_returns_existing(self):
        first = current_domain.process(OpenCart(user_id="user-001"), asynchronous=False)
        second = current_domain.process(OpenCart(user_id="user-001"), asynchronous=False)
        assert first == second

    def test_expired_cart_replaced_on_add(self):
        _add()
        cart = _active()
        cart.expires_at = utcnow() - timedelta(minutes=1)
        current_domain.repository_for(ShoppingCart).add(cart)

        _add(product_id="prod-tea")
        old = current_domain.repository_for(ShoppingCart).get(cart.id)
        assert old.status == CartStatus.ABANDONED.value
        new = _active()
        assert new.id != cart.id
        assert [i.product_id for i in new.items] == ["prod-tea"]

    def test_get_or_create_active_cart(self):
        cart = get_or_create_active_cart("user-002")
        assert get_or_create_active_cart("user-002").id == cart.id


def _lose_first_lookup(monkeypatch):
    """Make the next ``find_active`` miss, as if another request opened the cart in between."""
    repo_class = type(current_domain.repository_for(ShoppingCart))
    original = repo_class.find_active
    lookups = []

    def find_active(self, user_id):
        lookups.append(user_id)
        if len(lookups) == 1:
            return None
        return original(self, user_id)

    monkeypatch.setattr(repo_class, "find_active", find_active)
    return lookups


def _competing_cart(user_id="user-001"):
    cart = ShoppingCart.create(user_id=user_id, store_id="store-001")
    current_domain.repository_for(ShoppingCart).add(cart)
    return cart


class TestConcurrentCartCreation:
    def test_add_item_retries_onto_existing_cart(self, monkeypatch):
        winner = _competing_cart()
        lookups = _lose_first_lookup(monkeypatch)

        item_id = _add(quantity=2)

        assert len(lookups) >= 2
        active = [c for c in _carts_for("user-001") if c.status == CartStatus.ACTIVE.value]
        assert [c.id for c in active] == [winner.id]
        assert [str(i.id) for i in active[0].items] == [item_id]
        assert active[0].item_count == 2

    def test_open_cart_retries_onto_existing_cart(self, monkeypatch):
        winner = _competing_cart("user-003")
        _lose_first_lookup(monkeypatch)

        cart_id = process_cart_command(OpenCart(user_id="user-003"))

        assert cart_id == str(winner.id)
        assert len(_carts_for("user-003")) == 1

    def test_other_validation_errors_are_not_retried(self, catalog, monkeypatch):
        catalog.set_availability("prod-latte", False)
        lookups = _lose_first_lookup(monkeypatch)

        with pytest.raises(ValidationError) as exc_info:
            _add()

        assert "product_id" in exc_info.value.messages
        assert lookups == []


class TestCartMutations:
    def test_update_quantity_reprices(self):
        item_id = _add()
        current_domain.process(
            UpdateCartItemQuantity(user_id="user-001", item_id=item_id, quantity=3),
            asynchronous=False,
        )
        cart = _active()
        assert cart.items[0].quantity == 3
        assert cart.totals.subtotal == 15.00

    def test_remove_item(self):
        item_id = _add()
        current_domain.process(RemoveCartItem(user_id="user-001", item_id=item_id), asynchronous=False)
        assert _active().items == []
        assert _active().totals.total == 0.0

    def test_clear(self):
        _add()
        _add(product_id="prod-tea")
        current_domain.process(ClearCart(user_id="user-001"), asynchronous=False)
        assert _active().items == []

    def test_address_and_notes(self):
        _add()
        current_domain.process(SetCartDeliveryAddress(user_id="user-001", address_id="addr-001"), asynchronous=False)
        current_domain.process(SetCartNotes(user_id="user-001", notes="No straw"), asynchronous=False)
        cart = _active()
        assert cart.delivery_address_id == "addr-001"
        assert cart.notes == "No straw"

    def test_mutation_without_cart(self):
        with pytest.raises(CartNotFoundError):
            current_domain.process(ClearCart(user_id="user-404"), asynchronous=False)


class TestCartQueries:
    def test_summary_without_cart(self):
        summary = get_cart_summary("user-404")
        assert summary["cart_id"] is None
        assert summary["total"] == 0.0

    def test_summary(self):
        _add(quantity=2)
        summary = get_cart_summary("user-001")
        assert summary["item_count"] == 2
        assert summary["total"] == 13.50

    def test_expired_cart_is_not_returned(self):
        _add()
        cart = _active()
        cart.expires_at = utcnow() - timedelta(seconds=1)
        current_domain.repository_for(ShoppingCart).add(cart)
        assert get_active_cart("user-001") is None

    def test_validate_empty(self):
        assert [issue.code for issue in validate_cart("user-404")] == ["cart_empty"]

    def test_validate_clean_cart(self):
        _add()
        assert validate_cart("user-001") == []

    def test_validate_reports_drift(self, catalog):
        _add()
        _add(product_id="prod-tea")
        catalog.set_price("prod-latte", 5.50)
        catalog.set_availability("prod-tea", False)
        issues = {issue.code: issue for issue in validate_cart("user-001")}
        assert set(issues) == {"price_changed", "product_unavailable"}
        assert issues["price_changed"].locked_price == 5.00
        assert issues["price_changed"].current_price == 5.50

    def test_validate_inactive_store(self, catalog):
        _add()
        catalog.add_store("store-001", is_active=False)
        assert "store_inactive" in [issue.code for issue in validate_cart("user-001")]
