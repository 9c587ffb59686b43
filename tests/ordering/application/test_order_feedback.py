"""Application tests for order listing, ratings and internal notes."""

from datetime import timedelta

import pytest
from ordering.cart.items import AddItemToCart
from ordering.cart.management import process_cart_command
from ordering.checkout.confirmation import ConfirmCheckout
from ordering.checkout.creation import CreateCheckoutSession
from ordering.exceptions import (
    InsufficientRoleError,
    OrderNotFoundError,
    OrderNotRateableError,
    UnauthorizedOrderAccessError,
)
from ordering.order.notes import AddInternalNote
from ordering.order.order import Order
from ordering.order.queries import list_orders
from ordering.order.rating import RateOrder
from ordering.order.status import UpdateOrderStatus
from ordering.payment.processing import MockCompletePayment
from ordering.utils.clock import utcnow
from protean import current_domain
from protean.exceptions import ValidationError


def _place_order(user_id="user-001", product_id="prod-latte"):
    process_cart_command(AddItemToCart(user_id=user_id, product_id=product_id, quantity=1))
    session_id = current_domain.process(CreateCheckoutSession(user_id=user_id), asynchronous=False)
    return current_domain.process(
        ConfirmCheckout(user_id=user_id, session_id=session_id, payment_method="cash"),
        asynchronous=False,
    )


def _completed_order(user_id="user-001"):
    order_id = _place_order(user_id)
    current_domain.process(MockCompletePayment(order_id=order_id), asynchronous=False)
    for status in ("preparing", "ready", "picked_up", "completed"):
        current_domain.process(
            UpdateOrderStatus(order_id=order_id, status=status, actor_role="admin"), asynchronous=False
        )
    return order_id


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _backdate(order_id, minutes):
    order = _order(order_id)
    order.created_at = utcnow() - timedelta(minutes=minutes)
    current_domain.repository_for(Order).add(order)


def _rate(order_id, user_id="user-001", rating=5, review=None):
    return current_domain.process(
        RateOrder(order_id=order_id, user_id=user_id, rating=rating, review=review), asynchronous=False
    )


class TestListOrders:
    def test_customer_sees_only_own_orders_newest_first(self):
        older = _place_order("user-001")
        newer = _place_order("user-001")
        _place_order("user-002")
        _backdate(older, 30)
        _backdate(newer, 5)

        result = list_orders("user-001", "customer")

        assert [o["id"] for o in result["orders"]] == [newer, older]
        assert {o["user_id"] for o in result["orders"]} == {"user-001"}
        assert result["pagination"] == {"page": 1, "limit": 20, "total": 2, "pages": 1}

    def test_customer_cannot_widen_view_with_owner_filter(self):
        _place_order("user-001")
        _place_order("user-002")

        result = list_orders("user-001", "customer", owner_id="user-002")

        assert {o["user_id"] for o in result["orders"]} == {"user-001"}

    def test_admin_sees_everyone(self):
        _place_order("user-001")
        _place_order("user-002")

        assert list_orders("admin-001", "admin")["pagination"]["total"] == 2

    def test_admin_narrows_to_one_customer(self):
        _place_order("user-001")
        mine = _place_order("user-002")

        result = list_orders("admin-001", "admin", owner_id="user-002")

        assert [o["id"] for o in result["orders"]] == [mine]

    def test_status_filter(self):
        pending = _place_order("user-001")
        paid = _place_order("user-001")
        current_domain.process(MockCompletePayment(order_id=paid), asynchronous=False)

        confirmed = list_orders("user-001", status="confirmed")["orders"]
        assert [o["id"] for o in confirmed] == [paid]
        waiting = list_orders("user-001", status="pending_payment")["orders"]
        assert [o["id"] for o in waiting] == [pending]

    def test_store_filter(self):
        latte = _place_order("user-001", "prod-latte")
        _place_order("user-002", "prod-mocha")

        result = list_orders("admin-001", "admin", store_id="store-001")

        assert [o["id"] for o in result["orders"]] == [latte]
        assert result["orders"][0]["store_id"] == "store-001"

    def test_pagination(self):
        order_ids = [_place_order("user-001") for _ in range(5)]
        for age, order_id in enumerate(order_ids):
            _backdate(order_id, 50 - age)

        first = list_orders("user-001", page=1, limit=2)
        third = list_orders("user-001", page=3, limit=2)

        assert [o["id"] for o in first["orders"]] == [order_ids[4], order_ids[3]]
        assert [o["id"] for o in third["orders"]] == [order_ids[0]]
        assert third["pagination"] == {"page": 3, "limit": 2, "total": 5, "pages": 3}

    def test_no_orders(self):
        result = list_orders("user-404")
        assert result["orders"] == []
        assert result["pagination"]["pages"] == 0

    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"status": "bogus"}, "status"),
            ({"page": 0}, "page"),
            ({"limit": 0}, "limit"),
            ({"limit": 101}, "limit"),
        ],
    )
    def test_invalid_arguments(self, kwargs, field):
        with pytest.raises(ValidationError) as exc_info:
            list_orders("user-001", **kwargs)
        assert field in exc_info.value.messages


class TestRateOrder:
    def test_rating_is_stored(self):
        order_id = _completed_order()
        _rate(order_id, rating=4, review="Lovely foam")

        order = _order(order_id)
        assert order.rating == 4
        assert order.review == "Lovely foam"
        assert order.rated_at is not None
        assert list_orders("user-001")["orders"][0]["rating"] == 4

    def test_unfinished_order_rejected(self):
        order_id = _place_order()
        with pytest.raises(OrderNotRateableError):
            _rate(order_id)
        assert _order(order_id).rating is None

    def test_second_rating_rejected(self):
        order_id = _completed_order()
        _rate(order_id, rating=2)
        with pytest.raises(OrderNotRateableError):
            _rate(order_id, rating=5)
        assert _order(order_id).rating == 2

    def test_out_of_range_rejected(self):
        order_id = _completed_order()
        with pytest.raises(ValidationError):
            _rate(order_id, rating=6)

    def test_other_customer_rejected(self):
        order_id = _completed_order()
        with pytest.raises(UnauthorizedOrderAccessError):
            _rate(order_id, user_id="user-002")

    def test_unknown_order(self):
        with pytest.raises(OrderNotFoundError):
            _rate("missing")


class TestInternalNotes:
    def test_admin_adds_notes(self):
        order_id = _place_order()
        current_domain.process(
            AddInternalNote(order_id=order_id, note="Regular customer", actor_role="admin"), asynchronous=False
        )
        result = current_domain.process(
            AddInternalNote(order_id=order_id, note="Prefers oat milk", actor_role="admin"), asynchronous=False
        )

        lines = result.split("\n")
        assert lines[0].endswith("Regular customer")
        assert lines[1].endswith("Prefers oat milk")
        assert _order(order_id).internal_notes == result

    @pytest.mark.parametrize("role", ["customer", "store"])
    def test_non_admin_rejected(self, role):
        order_id = _place_order()
        with pytest.raises(InsufficientRoleError):
            current_domain.process(
                AddInternalNote(order_id=order_id, note="Hi", actor_role=role), asynchronous=False
            )
        assert _order(order_id).internal_notes is None

    def test_unknown_order(self):
        with pytest.raises(OrderNotFoundError):
            current_domain.process(
                AddInternalNote(order_id="missing", note="Hi", actor_role="admin"), asynchronous=False
            )
