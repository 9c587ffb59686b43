"""Shopping Cart aggregate — the mutable pre-checkout basket.

A user owns at most one *active* cart, and an active cart is bound to a
single store. Every mutation re-prices the cart through the pricing engine so
the persisted totals always describe the persisted items.

One-active-cart-per-user is enforced at storage level through
``active_owner_id``: it holds the user id while the cart is active and
``closed:<cart_id>`` once it is checked out or abandoned, so a unique index
on that column only ever collides between two active carts.
"""

import hashlib
import json
from datetime import datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering import settings
from ordering.cart.events import (
    CartAbandoned,
    CartCheckedOut,
    CartCleared,
    CartItemAdded,
    CartItemQuantityChanged,
    CartItemRemoved,
)
from ordering.domain import ordering
from ordering.pricing import calculate_totals, line_total
from ordering.shared.customization import Customization, customization_key
from ordering.shared.totals import Totals
from ordering.utils.clock import as_utc, utcnow


class CartStatus(Enum):
    ACTIVE = "active"
    CHECKED_OUT = "checked_out"
    ABANDONED = "abandoned"


def normalize_add_on_ids(add_on_ids) -> list[str]:
    if not add_on_ids:
        return []
    if isinstance(add_on_ids, str):
        add_on_ids = json.loads(add_on_ids)
    return sorted(str(add_on_id) for add_on_id in add_on_ids)


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    category_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    customization = ValueObject(Customization)
    add_on_ids = Text()  # JSON array, sorted
    notes = Text()
    unit_price = Float(required=True, min_value=0.0)  # locked at add time
    total_price = Float(default=0.0)
    added_at = DateTime()

    @property
    def add_on_list(self) -> list[str]:
        return normalize_add_on_ids(self.add_on_ids)

    def matches(self, product_id, customization, add_on_ids) -> bool:
        return (
            str(self.product_id) == str(product_id)
            and customization_key(self.customization) == customization_key(customization)
            and self.add_on_list == normalize_add_on_ids(add_on_ids)
        )

    def snapshot(self) -> dict:
        return {
            "item_id": str(self.id),
            "product_id": str(self.product_id),
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "customization": customization_key(self.customization),
            "add_on_ids": self.add_on_list,
        }


@ordering.aggregate
class ShoppingCart:
    user_id = Identifier(required=True)
    store_id = Identifier()
    items = HasMany(CartItem)
    totals = ValueObject(Totals)
    delivery_address_id = Identifier()
    notes = Text()
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    active_owner_id = String(max_length=100, unique=True)
    expires_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def active_cart_is_owned_by_its_user(self):
        if self.status == CartStatus.ACTIVE.value and self.active_owner_id != str(self.user_id):
            raise ValidationError({"active_owner_id": ["Active cart must be keyed by its owner"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, store_id=None, now: datetime | None = None):
        now = now or utcnow()
        return cls(
            user_id=user_id,
            store_id=store_id,
            status=CartStatus.ACTIVE.value,
            active_owner_id=str(user_id),
            totals=Totals.empty(),
            expires_at=now + timedelta(hours=settings.cart_ttl_hours()),
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_active(self) -> bool:
        return self.status == CartStatus.ACTIVE.value

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def is_expired(self, as_of: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return as_utc(self.expires_at) <= as_utc(as_of or utcnow())

    def find_item(self, item_id) -> CartItem:
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    def fingerprint(self) -> str:
        """Digest of the priced contents, used to detect edits after checkout started."""
        lines = sorted((item.snapshot() for item in self.items), key=lambda line: line["item_id"])
        payload = json.dumps({"store_id": str(self.store_id), "lines": lines}, sort_keys=True)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def _assert_active(self, action: str) -> None:
        if not self.is_active:
            raise ValidationError({"status": [f"Cannot {action}: cart is {self.status}"]})

    def _touch(self, now: datetime | None = None) -> datetime:
        now = now or utcnow()
        self.updated_at = now
        self.expires_at = now + timedelta(hours=settings.cart_ttl_hours())
        return now

    def add_item(
        self,
        product_id,
        store_id,
        unit_price: float,
        quantity: int,
        product_name: str | None = None,
        category_id=None,
        customization: Customization | None = None,
        add_on_ids=None,
        notes: str | None = None,
    ):
        """Add a line, or grow the identical line already in the cart.

        An empty cart is rebound to the product's store. A non-empty cart
        only accepts products from its own store.
        """
        self._assert_active("add items")
        if self.items and self.store_id and str(self.store_id) != str(store_id):
            raise ValidationError({"store_id": ["Cannot add items from different stores"]})
        if not self.items:
            self.store_id = store_id

        add_on_ids = normalize_add_on_ids(add_on_ids)
        now = self._touch()

        existing = next((i for i in self.items if i.matches(product_id, customization, add_on_ids)), None)
        if existing:
            existing.quantity += quantity
            existing.total_price = line_total(existing.quantity, existing.unit_price)
            item = existing
        else:
            item = CartItem(
                product_id=product_id,
                product_name=product_name,
                category_id=category_id,
                quantity=quantity,
                customization=customization,
                add_on_ids=json.dumps(add_on_ids),
                notes=notes,
                unit_price=unit_price,
                total_price=line_total(quantity, unit_price),
                added_at=now,
            )
            self.add_items(item)

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                item_id=str(item.id),
                product_id=str(product_id),
                quantity=quantity,
                unit_price=item.unit_price,
            )
        )
        return item

    def update_item_quantity(self, item_id, quantity: int) -> None:
        self._assert_active("update quantities")
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = self.find_item(item_id)
        previous_quantity = item.quantity
        item.quantity = quantity
        item.total_price = line_total(quantity, item.unit_price)
        self._touch()

        self.raise_(
            CartItemQuantityChanged(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, item_id) -> None:
        self._assert_active("remove items")
        item = self.find_item(item_id)
        self.remove_items(item)
        self._touch()

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self) -> None:
        self._assert_active("clear")
        for item in list(self.items):
            self.remove_items(item)
        self._touch()

        self.raise_(CartCleared(cart_id=str(self.id), user_id=str(self.user_id)))

    def set_delivery_address(self, address_id) -> None:
        self._assert_active("set the delivery address")
        self.delivery_address_id = address_id
        self._touch()

    def set_notes(self, notes: str | None) -> None:
        self._assert_active("set notes")
        self.notes = notes
        self._touch()

    def refresh_totals(self, delivery_fee: float) -> Totals:
        """Re-run the pricing engine over the current items."""
        self.totals = Totals.from_breakdown(calculate_totals(self.items, delivery_fee=delivery_fee))
        return self.totals

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def _close(self, status: CartStatus, now: datetime) -> None:
        self.status = status.value
        self.active_owner_id = f"closed:{self.id}"
        self.updated_at = now

    def mark_checked_out(self, order_id) -> None:
        self._assert_active("check out")
        if not self.items:
            raise ValidationError({"cart": ["Cannot check out an empty cart"]})

        self._close(CartStatus.CHECKED_OUT, utcnow())
        self.raise_(CartCheckedOut(cart_id=str(self.id), user_id=str(self.user_id), order_id=str(order_id)))

    def abandon(self, reason: str = "expired", now: datetime | None = None) -> None:
        self._assert_active("abandon")
        now = now or utcnow()
        self._close(CartStatus.ABANDONED, now)
        self.raise_(
            CartAbandoned(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                abandoned_at=now,
                reason=reason,
            )
        )
