"""CheckoutSession aggregate — an expiring, priced snapshot of a cart.

The session freezes the cart lines at the moment checkout starts, then lets
the customer apply or remove a coupon against that snapshot. Confirming the
session turns it into an Order exactly once; afterwards it is consumed and
behaves as if it no longer exists.

Lifecycle:
    open ──(apply/remove coupon)──▶ open ──confirm──▶ confirmed
    open ──(TTL passes)──▶ expired (checked passively on every access)
"""

import json
from datetime import datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering import settings
from ordering.cart.cart import ShoppingCart, normalize_add_on_ids
from ordering.checkout.events import (
    CheckoutConfirmed,
    CheckoutCouponApplied,
    CheckoutCouponRemoved,
    CheckoutStarted,
)
from ordering.domain import ordering
from ordering.exceptions import SessionExpiredError, SessionNotFoundError, UnauthorizedSessionAccessError
from ordering.pricing import CouponTerms, calculate_totals, line_total
from ordering.shared.customization import Customization
from ordering.shared.totals import Totals
from ordering.utils.clock import as_utc, utcnow


class SessionStatus(Enum):
    OPEN = "open"
    CONFIRMED = "confirmed"


@ordering.value_object(part_of="CheckoutSession")
class AppliedCoupon:
    promo_code_id = Identifier(required=True)
    code = String(required=True, max_length=50)
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True)
    max_discount_amount = Float()

    def terms(self) -> CouponTerms:
        return CouponTerms(
            discount_type=self.discount_type,
            discount_value=self.discount_value,
            max_discount_amount=self.max_discount_amount,
        )


@ordering.entity(part_of="CheckoutSession")
class CheckoutLine:
    cart_item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    category_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    customization = ValueObject(Customization)
    add_on_ids = Text()
    notes = Text()
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)

    @property
    def add_on_list(self) -> list[str]:
        return normalize_add_on_ids(self.add_on_ids)


@ordering.aggregate
class CheckoutSession:
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    store_id = Identifier()
    lines = HasMany(CheckoutLine)
    delivery_address_id = Identifier()
    notes = Text()
    coupon = ValueObject(AppliedCoupon)
    totals = ValueObject(Totals)
    cart_fingerprint = String(max_length=64)
    status = String(choices=SessionStatus, default=SessionStatus.OPEN.value)
    order_id = Identifier()
    expires_at = DateTime(required=True)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def start(cls, cart: ShoppingCart, delivery_fee: float, now: datetime | None = None):
        now = now or utcnow()
        session = cls(
            user_id=cart.user_id,
            cart_id=cart.id,
            store_id=cart.store_id,
            delivery_address_id=cart.delivery_address_id,
            notes=cart.notes,
            cart_fingerprint=cart.fingerprint(),
            status=SessionStatus.OPEN.value,
            expires_at=now + timedelta(minutes=settings.checkout_session_minutes()),
            created_at=now,
            updated_at=now,
        )
        for item in cart.items:
            session.add_lines(
                CheckoutLine(
                    cart_item_id=item.id,
                    product_id=item.product_id,
                    product_name=item.product_name,
                    category_id=item.category_id,
                    quantity=item.quantity,
                    customization=item.customization,
                    add_on_ids=json.dumps(item.add_on_list),
                    notes=item.notes,
                    unit_price=item.unit_price,
                    total_price=line_total(item.quantity, item.unit_price),
                )
            )
        session.refresh_totals(delivery_fee)

        session.raise_(
            CheckoutStarted(
                session_id=str(session.id),
                user_id=str(session.user_id),
                cart_id=str(cart.id),
                total=session.totals.total,
                expires_at=session.expires_at,
            )
        )
        return session

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.OPEN.value

    @property
    def category_ids(self) -> list[str]:
        return [str(line.category_id) for line in self.lines if line.category_id]

    def is_expired(self, as_of: datetime | None = None) -> bool:
        return as_utc(self.expires_at) <= as_utc(as_of or utcnow())

    def assert_usable_by(self, user_id, as_of: datetime | None = None) -> None:
        """Raise unless ``user_id`` may still act on this session."""
        if str(self.user_id) != str(user_id):
            raise UnauthorizedSessionAccessError({"session_id": ["Checkout session belongs to another user"]})
        if not self.is_open:
            raise SessionNotFoundError({"session_id": [f"Checkout session {self.id} not found"]})
        if self.is_expired(as_of):
            raise SessionExpiredError({"session_id": ["Checkout session has expired"]})

    def arithmetic_errors(self) -> list[str]:
        """Re-derive line and session totals and report any drift from what is stored."""
        errors = []
        for line in self.lines:
            if abs(line_total(line.quantity, line.unit_price) - line.total_price) > 0.005:
                errors.append(f"Line {line.id} total does not match quantity x unit price")

        expected = calculate_totals(
            self.lines,
            coupon=self.coupon.terms() if self.coupon else None,
            delivery_fee=self.totals.delivery_fee,
        )
        if abs(expected.total - self.totals.total) > 0.005:
            errors.append("Session totals do not match its lines")
        return errors

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def refresh_totals(self, delivery_fee: float | None = None) -> Totals:
        if delivery_fee is None:
            delivery_fee = self.totals.delivery_fee if self.totals else 0.0
        breakdown = calculate_totals(
            self.lines,
            coupon=self.coupon.terms() if self.coupon else None,
            delivery_fee=delivery_fee,
        )
        self.totals = Totals.from_breakdown(breakdown)
        return self.totals

    def apply_coupon(self, promo) -> None:
        if not self.is_open:
            raise ValidationError({"status": ["Coupons can only be applied to an open checkout"]})

        self.coupon = AppliedCoupon(
            promo_code_id=promo.id,
            code=promo.code,
            discount_type=promo.discount_type,
            discount_value=promo.discount_value,
            max_discount_amount=promo.max_discount_amount,
        )
        self.refresh_totals()
        self.updated_at = utcnow()

        self.raise_(
            CheckoutCouponApplied(
                session_id=str(self.id),
                code=promo.code,
                discount=self.totals.discount,
                total=self.totals.total,
            )
        )

    def remove_coupon(self) -> None:
        if not self.is_open:
            raise ValidationError({"status": ["Coupons can only be removed from an open checkout"]})
        if self.coupon is None:
            return

        code = self.coupon.code
        self.coupon = None
        self.refresh_totals()
        self.updated_at = utcnow()

        self.raise_(CheckoutCouponRemoved(session_id=str(self.id), code=code, total=self.totals.total))

    def mark_confirmed(self, order_id) -> None:
        if not self.is_open:
            raise SessionNotFoundError({"session_id": [f"Checkout session {self.id} not found"]})

        self.status = SessionStatus.CONFIRMED.value
        self.order_id = order_id
        self.updated_at = utcnow()

        self.raise_(
            CheckoutConfirmed(
                session_id=str(self.id),
                user_id=str(self.user_id),
                order_id=str(order_id),
            )
        )
