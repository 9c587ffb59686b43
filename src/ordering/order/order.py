"""Order aggregate — a confirmed checkout travelling to pickup.

State Machine:
    PENDING_PAYMENT → CONFIRMED → PREPARING → READY → PICKED_UP → COMPLETED
    CANCELLED from any non-terminal state (customer only before pickup and
    inside the cancellation window; store/admin/system at any time)

Payment status runs alongside: PENDING → PROCESSING → COMPLETED, or FAILED,
and REFUNDED once a refund for a cancelled, paid order has gone through.

Every status change appends an OrderStatusHistory row; rows are never
edited or removed.
"""

from datetime import datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering import settings
from ordering.access import is_staff
from ordering.domain import ordering
from ordering.exceptions import (
    AlreadyPaidError,
    CancellationWindowExpiredError,
    InvalidPaymentStateError,
    InvalidTransitionError,
    OrderNotRateableError,
    RefundNotPendingError,
    UnauthorizedOrderAccessError,
)
from ordering.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderPlaced,
    OrderRated,
    OrderStatusChanged,
    PaymentFailed,
    RefundCompleted,
)
from ordering.shared.customization import Customization
from ordering.shared.totals import Totals
from ordering.utils.clock import as_utc, utcnow
from ordering.utils.identifiers import order_number


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING_PAYMENT = "pending_payment"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    PICKED_UP = "picked_up"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class RefundStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class StatusActor(Enum):
    SYSTEM = "system"
    CUSTOMER = "customer"
    STORE = "store"
    ADMIN = "admin"


# Forward transitions driven by payment and staff. Cancellation has its own
# guarded paths below.
_VALID_TRANSITIONS = {
    OrderStatus.PENDING_PAYMENT: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.PICKED_UP, OrderStatus.CANCELLED},
    OrderStatus.PICKED_UP: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_TERMINAL_STATES = {OrderStatus.COMPLETED, OrderStatus.CANCELLED}

# States from which the customer may still cancel on their own
_CUSTOMER_CANCELLABLE_STATES = {
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line of the order, copied from the checkout snapshot with its locked price."""

    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    category_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    customization = ValueObject(Customization)
    add_on_ids = Text()
    notes = Text()
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)


@ordering.entity(part_of="Order")
class OrderStatusHistory:
    status = String(choices=OrderStatus, required=True)
    previous_status = String(max_length=50)
    changed_by = String(choices=StatusActor, required=True)
    notes = Text()
    sequence = Integer(required=True, min_value=1)
    changed_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier(required=True)
    store_id = Identifier()
    cart_id = Identifier()
    checkout_session_id = String(max_length=100, unique=True)
    items = HasMany(OrderItem)
    totals = ValueObject(Totals)
    promo_code_id = Identifier()
    coupon_code = String(max_length=50)
    loyalty_points_used = Integer(default=0, min_value=0)
    loyalty_points_earned = Integer(default=0, min_value=0)
    delivery_address_id = Identifier()
    notes = Text()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING_PAYMENT.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(max_length=20)
    payment_provider_transaction_id = String(max_length=255)
    payment_failure_reason = String(max_length=500)
    actual_ready_time = DateTime()
    picked_up_at = DateTime()
    completed_at = DateTime()
    cancellation_reason = String(max_length=500)
    cancelled_by = String(choices=StatusActor)
    cancelled_at = DateTime()
    refund_amount = Float(min_value=0.0)
    refund_status = String(choices=RefundStatus)
    refund_reference = String(max_length=255)
    rating = Integer(min_value=1, max_value=5)
    review = Text()
    rated_at = DateTime()
    internal_notes = Text()
    status_history = HasMany(OrderStatusHistory)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, session, payment_method: str, now: datetime | None = None):
        """Build an order from a checkout session. Status starts at PENDING_PAYMENT."""
        now = now or utcnow()
        order = cls(
            order_number=order_number(now),
            user_id=session.user_id,
            store_id=session.store_id,
            cart_id=session.cart_id,
            checkout_session_id=str(session.id),
            totals=session.totals,
            promo_code_id=session.coupon.promo_code_id if session.coupon else None,
            coupon_code=session.coupon.code if session.coupon else None,
            delivery_address_id=session.delivery_address_id,
            notes=session.notes,
            status=OrderStatus.PENDING_PAYMENT.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=payment_method,
            created_at=now,
            updated_at=now,
        )
        for line in session.lines:
            order.add_items(
                OrderItem(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    category_id=line.category_id,
                    quantity=line.quantity,
                    customization=line.customization,
                    add_on_ids=line.add_on_ids,
                    notes=line.notes,
                    unit_price=line.unit_price,
                    total_price=line.total_price,
                )
            )
        order._append_history(OrderStatus.PENDING_PAYMENT, None, StatusActor.SYSTEM, "Order placed", now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(order.user_id),
                store_id=str(order.store_id) if order.store_id else None,
                checkout_session_id=str(session.id),
                payment_method=payment_method,
                total=order.totals.total,
                currency=order.totals.currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in _TERMINAL_STATES

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.COMPLETED.value

    def history(self) -> list[OrderStatusHistory]:
        return sorted(self.status_history, key=lambda row: row.sequence)

    def assert_owned_by(self, user_id) -> None:
        if str(self.user_id) != str(user_id):
            raise UnauthorizedOrderAccessError({"order_id": ["Order belongs to another user"]})

    def assert_visible_to(self, user_id, role: str | None) -> None:
        if is_staff(role):
            return
        self.assert_owned_by(user_id)

    # -------------------------------------------------------------------
    # Status machinery
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(
                {"status": [f"Cannot transition from {current.value} to {target.value}"]}
            )

    def _append_history(self, status, previous, actor, notes, now) -> None:
        self.add_status_history(
            OrderStatusHistory(
                status=status.value,
                previous_status=previous.value if previous else None,
                changed_by=actor.value,
                notes=notes,
                sequence=len(self.status_history) + 1,
                changed_at=now,
            )
        )

    def _change_status(self, target: OrderStatus, actor: StatusActor, notes: str | None, now: datetime) -> None:
        previous = OrderStatus(self.status)
        self.status = target.value
        self.updated_at = now

        if target == OrderStatus.READY:
            self.actual_ready_time = now
        elif target == OrderStatus.PICKED_UP:
            self.picked_up_at = now
        elif target == OrderStatus.COMPLETED:
            self.completed_at = now
        elif target == OrderStatus.CANCELLED:
            self.cancelled_at = now

        self._append_history(target, previous, actor, notes, now)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=str(self.user_id),
                previous_status=previous.value,
                new_status=target.value,
                changed_by=actor.value,
                notes=notes,
                changed_at=now,
            )
        )

    def advance_status(self, target: str, actor: str = StatusActor.ADMIN.value, notes: str | None = None):
        """Staff-driven forward transition. Cancellation goes through ``cancel_by_staff``."""
        try:
            target_status = OrderStatus(target)
        except ValueError as exc:
            allowed = ", ".join(status.value for status in OrderStatus)
            raise ValidationError({"status": [f"Unknown status '{target}'. Expected one of: {allowed}"]}) from exc

        if target_status == OrderStatus.CANCELLED:
            return self.cancel_by_staff(reason=notes, actor=actor)

        self._assert_can_transition(target_status)
        if target_status == OrderStatus.CONFIRMED and not self.is_paid:
            raise InvalidTransitionError({"status": ["Order cannot be confirmed before payment completes"]})

        previous = self.status
        self._change_status(
            target_status,
            StatusActor(actor),
            notes or f"Status changed from {previous} to {target_status.value} by {actor}",
            utcnow(),
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def begin_payment(self) -> None:
        """PENDING → PROCESSING; the guard that keeps a second intent from being opened."""
        if self.is_paid:
            raise AlreadyPaidError({"payment_status": ["Order is already paid"]})
        if self.payment_status != PaymentStatus.PENDING.value:
            raise InvalidPaymentStateError(
                {"payment_status": [f"Cannot start payment while payment is {self.payment_status}"]}
            )
        if self.status != OrderStatus.PENDING_PAYMENT.value:
            raise InvalidPaymentStateError({"status": [f"Cannot start payment for a {self.status} order"]})

        self.payment_status = PaymentStatus.PROCESSING.value
        self.updated_at = utcnow()

    def assert_accepts_payment(self) -> None:
        """Checked before the provider is asked to verify or capture anything."""
        if self.is_paid:
            raise AlreadyPaidError({"payment_status": ["Order is already paid"]})
        if self.status != OrderStatus.PENDING_PAYMENT.value:
            raise InvalidPaymentStateError({"status": [f"Cannot accept payment for a {self.status} order"]})

    def record_payment_success(self, transaction_id: str, actor: str = StatusActor.SYSTEM.value) -> None:
        self.assert_accepts_payment()

        now = utcnow()
        self.payment_status = PaymentStatus.COMPLETED.value
        self.payment_provider_transaction_id = transaction_id
        self.payment_failure_reason = None
        self._change_status(OrderStatus.CONFIRMED, StatusActor(actor), "Payment completed", now)

        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=str(self.user_id),
                transaction_id=transaction_id,
                total=self.totals.total,
                confirmed_at=now,
            )
        )

    def record_payment_failure(self, reason: str) -> None:
        if self.is_paid:
            raise AlreadyPaidError({"payment_status": ["Order is already paid"]})

        now = utcnow()
        self.payment_status = PaymentStatus.FAILED.value
        self.payment_failure_reason = reason
        self.updated_at = now

        self.raise_(PaymentFailed(order_id=str(self.id), reason=reason, failed_at=now))

    # -------------------------------------------------------------------
    # Cancellation and refunds
    # -------------------------------------------------------------------
    def cancel_by_customer(self, user_id, reason: str, now: datetime | None = None) -> None:
        """Self-service cancellation, limited to the owner and the cancellation window."""
        now = now or utcnow()
        self.assert_owned_by(user_id)

        current = OrderStatus(self.status)
        if current not in _CUSTOMER_CANCELLABLE_STATES:
            raise InvalidTransitionError({"status": [f"Cannot cancel an order that is {current.value}"]})

        window = timedelta(minutes=settings.cancellation_window_minutes())
        if as_utc(now) - as_utc(self.created_at) > window:
            raise CancellationWindowExpiredError(
                {"order_id": [f"Orders can only be cancelled within {settings.cancellation_window_minutes()} minutes"]}
            )

        self._cancel(reason, StatusActor.CUSTOMER, now)

    def cancel_by_staff(self, reason: str | None, actor: str = StatusActor.ADMIN.value) -> None:
        """Store, admin or system cancellation. No time guard, but terminal states stay terminal."""
        actor = StatusActor(actor)
        if actor == StatusActor.CUSTOMER:
            raise ValidationError({"cancelled_by": ["Customers cancel through the customer path"]})
        if self.is_terminal:
            raise InvalidTransitionError({"status": [f"Cannot cancel an order that is {self.status}"]})
        self._cancel(reason, actor, utcnow())

    def _cancel(self, reason: str | None, actor: StatusActor, now: datetime) -> None:
        if not reason or not reason.strip():
            raise ValidationError({"reason": ["A cancellation reason is required"]})

        self.cancellation_reason = reason
        self.cancelled_by = actor.value
        if self.is_paid:
            self.refund_amount = self.totals.total
            self.refund_status = RefundStatus.PENDING.value

        self._change_status(OrderStatus.CANCELLED, actor, f"Cancelled by {actor.value}: {reason}", now)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                reason=reason,
                cancelled_by=actor.value,
                refund_amount=self.refund_amount,
                cancelled_at=now,
            )
        )

    def assert_refund_pending(self) -> None:
        if self.status != OrderStatus.CANCELLED.value or self.refund_status != RefundStatus.PENDING.value:
            raise RefundNotPendingError({"refund_status": ["Order has no pending refund"]})

    def complete_refund(self, refund_reference: str | None) -> None:
        self.assert_refund_pending()

        now = utcnow()
        self.refund_status = RefundStatus.COMPLETED.value
        self.refund_reference = refund_reference
        self.payment_status = PaymentStatus.REFUNDED.value
        self.updated_at = now

        self.raise_(
            RefundCompleted(
                order_id=str(self.id),
                refund_amount=self.refund_amount,
                refund_reference=refund_reference,
                refunded_at=now,
            )
        )

    def fail_refund(self) -> None:
        self.assert_refund_pending()
        self.refund_status = RefundStatus.FAILED.value
        self.updated_at = utcnow()

    # -------------------------------------------------------------------
    # Feedback and staff notes
    # -------------------------------------------------------------------
    def rate(self, user_id, rating: int, review: str | None = None, now: datetime | None = None) -> None:
        """Owner rates a completed order once, 1 to 5 stars with an optional review."""
        now = now or utcnow()
        self.assert_owned_by(user_id)
        if rating is None or not 1 <= rating <= 5:
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})
        if self.status != OrderStatus.COMPLETED.value:
            raise OrderNotRateableError({"status": ["Only completed orders can be rated"]})
        if self.rating is not None:
            raise OrderNotRateableError({"rating": ["Order has already been rated"]})

        self.rating = rating
        self.review = review.strip() if review and review.strip() else None
        self.rated_at = now
        self.updated_at = now

        self.raise_(
            OrderRated(
                order_id=str(self.id),
                user_id=str(self.user_id),
                rating=rating,
                review=self.review,
                rated_at=now,
            )
        )

    def add_internal_note(self, note: str, now: datetime | None = None) -> None:
        """Append a timestamped staff-only note. Earlier notes are kept."""
        if not note or not note.strip():
            raise ValidationError({"notes": ["Notes are required"]})

        now = now or utcnow()
        entry = f"[{as_utc(now).isoformat()}] {note.strip()}"
        self.internal_notes = f"{self.internal_notes}\n{entry}" if self.internal_notes else entry
        self.updated_at = now

    # -------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------
    def summary(self) -> dict:
        return {
            "id": str(self.id),
            "order_number": self.order_number,
            "status": self.status,
            "payment_status": self.payment_status,
            "total": self.totals.total if self.totals else 0.0,
        }

    def view_for(self, role: str | None) -> dict:
        """Full order document; internal notes only for staff."""
        data = self.to_dict()
        if not is_staff(role):
            data.pop("internal_notes", None)
        return data

    def tracking(self) -> dict:
        return {
            "order_id": str(self.id),
            "order_number": self.order_number,
            "status": self.status,
            "payment_status": self.payment_status,
            "actual_ready_time": self.actual_ready_time,
            "picked_up_at": self.picked_up_at,
            "completed_at": self.completed_at,
            "history": [
                {
                    "status": row.status,
                    "previous_status": row.previous_status,
                    "changed_by": row.changed_by,
                    "notes": row.notes,
                    "changed_at": row.changed_at,
                }
                for row in self.history()
            ],
        }
