"""Application tests for staff status updates, cancellation, refunds and order queries."""

from datetime import timedelta

import pytest
from ordering.cart.items import AddItemToCart
from ordering.cart.management import process_cart_command
from ordering.checkout.confirmation import ConfirmCheckout
from ordering.checkout.creation import CreateCheckoutSession
from ordering.exceptions import (
    CancellationWindowExpiredError,
    InsufficientRoleError,
    InvalidTransitionError,
    OrderNotFoundError,
    RefundNotPendingError,
    UnauthorizedOrderAccessError,
)
from ordering.order.cancellation import CancelOrder, StaffCancelOrder
from ordering.order.order import Order
from ordering.order.queries import get_order, get_order_tracking
from ordering.order.refund import CompleteRefund
from ordering.order.status import UpdateOrderStatus
from ordering.payment.processing import MockCompletePayment
from ordering.utils.clock import utcnow
from protean import current_domain


def _place_order(user_id="user-001"):
    process_cart_command(AddItemToCart(user_id=user_id, product_id="prod-latte", quantity=2))
    session_id = current_domain.process(CreateCheckoutSession(user_id=user_id), asynchronous=False)
    return current_domain.process(
        ConfirmCheckout(user_id=user_id, session_id=session_id, payment_method="cash"),
        asynchronous=False,
    )


def _paid_order(user_id="user-001"):
    order_id = _place_order(user_id)
    current_domain.process(MockCompletePayment(order_id=order_id), asynchronous=False)
    return order_id


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _set_status(order_id, status, role="admin", notes=None):
    current_domain.process(
        UpdateOrderStatus(order_id=order_id, status=status, actor_role=role, notes=notes),
        asynchronous=False,
    )


class TestUpdateOrderStatus:
    def test_admin_advances_status(self):
        order_id = _paid_order()
        _set_status(order_id, "preparing")
        _set_status(order_id, "ready")
        order = _order(order_id)
        assert order.status == "ready"
        assert order.history()[-1].changed_by == "admin"

    @pytest.mark.parametrize("role", ["customer", "store"])
    def test_non_admin_rejected(self, role):
        order_id = _paid_order()
        with pytest.raises(InsufficientRoleError):
            _set_status(order_id, "preparing", role=role)
        assert _order(order_id).status == "confirmed"

    def test_invalid_transition(self):
        order_id = _paid_order()
        with pytest.raises(InvalidTransitionError):
            _set_status(order_id, "completed")

    def test_unpaid_order_cannot_be_confirmed(self):
        order_id = _place_order()
        with pytest.raises(InvalidTransitionError):
            _set_status(order_id, "confirmed")

    def test_unknown_order(self):
        with pytest.raises(OrderNotFoundError):
            _set_status("order-404", "preparing")


class TestCancellation:
    def test_customer_cancels_within_window(self):
        order_id = _place_order()
        current_domain.process(
            CancelOrder(order_id=order_id, user_id="user-001", reason="Ordered by mistake"),
            asynchronous=False,
        )
        order = _order(order_id)
        assert order.status == "cancelled"
        assert order.refund_status is None

    def test_customer_too_late_but_admin_succeeds(self):
        order_id = _place_order()
        later = utcnow() + timedelta(minutes=10)

        with pytest.raises(CancellationWindowExpiredError):
            current_domain.process(
                CancelOrder(order_id=order_id, user_id="user-001", reason="Too slow", as_of=later),
                asynchronous=False,
            )
        assert _order(order_id).status == "pending_payment"

        current_domain.process(
            StaffCancelOrder(order_id=order_id, reason="Customer called the store", cancelled_by="admin"),
            asynchronous=False,
        )
        order = _order(order_id)
        assert order.status == "cancelled"
        assert order.cancelled_by == "admin"

    def test_customer_cannot_cancel_others_order(self):
        order_id = _place_order()
        with pytest.raises(UnauthorizedOrderAccessError):
            current_domain.process(
                CancelOrder(order_id=order_id, user_id="user-002", reason="Not mine"),
                asynchronous=False,
            )

    def test_paid_cancellation_creates_pending_refund(self):
        order_id = _paid_order()
        current_domain.process(StaffCancelOrder(order_id=order_id, reason="Out of milk"), asynchronous=False)
        order = _order(order_id)
        assert order.refund_status == "pending"
        assert order.refund_amount == 13.50


class TestCompleteRefund:
    def test_refund_through_gateway(self, gateway):
        order_id = _paid_order()
        current_domain.process(StaffCancelOrder(order_id=order_id, reason="Out of milk"), asynchronous=False)

        result = current_domain.process(CompleteRefund(order_id=order_id), asynchronous=False)

        assert result["success"]
        assert result["refund_status"] == "completed"
        order = _order(order_id)
        assert order.payment_status == "refunded"
        assert order.refund_reference == result["refund_reference"]
        refund_call = next(call for call in gateway.calls if call["method"] == "create_refund")
        assert refund_call["amount"] == 13.50

    def test_declined_refund_marked_failed(self, gateway):
        order_id = _paid_order()
        current_domain.process(StaffCancelOrder(order_id=order_id, reason="Out of milk"), asynchronous=False)
        gateway.configure(should_succeed=False, failure_reason="Refund window closed")

        result = current_domain.process(CompleteRefund(order_id=order_id), asynchronous=False)

        assert not result["success"]
        assert _order(order_id).refund_status == "failed"

    def test_provider_error_marked_failed(self, gateway):
        order_id = _paid_order()
        current_domain.process(StaffCancelOrder(order_id=order_id, reason="Out of milk"), asynchronous=False)
        gateway.configure(raise_error=True)

        result = current_domain.process(CompleteRefund(order_id=order_id), asynchronous=False)

        assert not result["success"]
        assert _order(order_id).refund_status == "failed"

    def test_no_pending_refund(self):
        order_id = _place_order()
        with pytest.raises(RefundNotPendingError):
            current_domain.process(CompleteRefund(order_id=order_id), asynchronous=False)


class TestOrderQueries:
    def test_owner_sees_order(self):
        order_id = _place_order()
        assert str(get_order(order_id, "user-001").id) == order_id

    def test_staff_sees_any_order(self):
        order_id = _place_order()
        assert str(get_order(order_id, "staff-1", role="store").id) == order_id

    def test_other_customer_rejected(self):
        order_id = _place_order()
        with pytest.raises(UnauthorizedOrderAccessError):
            get_order(order_id, "user-002")

    def test_tracking_history(self):
        order_id = _paid_order()
        _set_status(order_id, "preparing")
        tracking = get_order_tracking(order_id, "user-001")
        assert tracking["status"] == "preparing"
        assert [row["status"] for row in tracking["history"]] == ["pending_payment", "confirmed", "preparing"]
