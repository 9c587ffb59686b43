"""Application tests for promo codes: creation, application at checkout and the usage ledger."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from ordering.cart.items import AddItemToCart
from ordering.cart.management import process_cart_command
from ordering.checkout.confirmation import ConfirmCheckout
from ordering.checkout.coupons import ApplyCoupon, RemoveCoupon
from ordering.checkout.creation import CreateCheckoutSession
from ordering.coupon.creation import CreatePromoCode
from ordering.coupon.promo_code import PromoCode
from ordering.coupon.usage import PromoCodeUsage
from ordering.exceptions import (
    CouponExpiredError,
    CouponMinOrderError,
    CouponNotApplicableError,
    CouponNotFoundError,
    CouponUsageLimitError,
)
from ordering.order.order import Order
from ordering.utils.clock import utcnow
from protean import current_domain
from protean.exceptions import ValidationError


def _create_promo(**overrides):
    now = utcnow()
    defaults = {
        "code": "SAVE20",
        "discount_type": "percentage",
        "discount_value": 20,
        "min_order_amount": 5,
        "max_discount_amount": 10,
        "valid_from": now - timedelta(days=1),
        "valid_until": now + timedelta(days=30),
    }
    defaults.update(overrides)
    return current_domain.process(CreatePromoCode(**defaults), asynchronous=False)


def _session(user_id="user-001", product_id="prod-latte", quantity=2):
    process_cart_command(AddItemToCart(user_id=user_id, product_id=product_id, quantity=quantity))
    return current_domain.process(CreateCheckoutSession(user_id=user_id), asynchronous=False)


def _apply(session_id, code="SAVE20", user_id="user-001"):
    return current_domain.process(ApplyCoupon(user_id=user_id, session_id=session_id, code=code), asynchronous=False)


def _confirm(session_id, user_id="user-001"):
    return current_domain.process(
        ConfirmCheckout(user_id=user_id, session_id=session_id, payment_method="cash"),
        asynchronous=False,
    )


def _usages():
    return current_domain.repository_for(PromoCodeUsage)._dao.query.all().items


class TestCreatePromoCode:
    def test_persists_normalized_code(self):
        promo_id = _create_promo(code="welcome5", discount_type="fixed", discount_value=5)
        promo = current_domain.repository_for(PromoCode).get(promo_id)
        assert promo.code == "WELCOME5"

    def test_duplicate_code_rejected(self):
        _create_promo()
        with pytest.raises(ValidationError):
            _create_promo(code="save20")

    def test_restrictions_stored(self):
        promo_id = _create_promo(applicable_store_ids=json.dumps(["store-002"]))
        assert current_domain.repository_for(PromoCode).get(promo_id).store_ids == ["store-002"]


class TestApplyCoupon:
    def test_applies_discount(self):
        _create_promo()
        totals = _apply(_session())
        assert totals["subtotal"] == 10.00
        assert totals["discount"] == 2.00
        assert totals["tax"] == 0.80
        assert totals["total"] == 11.30

    def test_lookup_is_case_insensitive(self):
        _create_promo()
        assert _apply(_session(), code="save20")["discount"] == 2.00

    def test_unknown_code(self):
        with pytest.raises(CouponNotFoundError):
            _apply(_session(), code="NOPE")

    def test_expired_code(self):
        now = utcnow()
        _create_promo(
            code="EXPIRED50",
            discount_value=50,
            min_order_amount=0,
            valid_from=now - timedelta(days=30),
            valid_until=now - timedelta(days=1),
        )
        with pytest.raises(CouponExpiredError):
            _apply(_session(quantity=10), code="EXPIRED50")

    def test_inactive_code_counts_as_expired(self):
        _create_promo(is_active=False)
        with pytest.raises(CouponExpiredError):
            _apply(_session())

    def test_not_yet_valid(self):
        _create_promo(valid_from=datetime(2099, 1, 1, tzinfo=UTC), valid_until=datetime(2099, 2, 1, tzinfo=UTC))
        with pytest.raises(CouponExpiredError):
            _apply(_session())

    def test_minimum_order(self):
        _create_promo(min_order_amount=20)
        with pytest.raises(CouponMinOrderError):
            _apply(_session())

    def test_store_restriction(self):
        _create_promo(applicable_store_ids=json.dumps(["store-002"]))
        with pytest.raises(CouponNotApplicableError):
            _apply(_session())

    def test_category_restriction(self):
        _create_promo(applicable_category_ids=json.dumps(["cat-tea"]))
        with pytest.raises(CouponNotApplicableError):
            _apply(_session())
        # A tea in the same cart makes the code applicable
        assert _apply(_session(product_id="prod-tea", quantity=1))["discount"] > 0

    def test_remove_coupon(self):
        _create_promo()
        session_id = _session()
        _apply(session_id)
        totals = current_domain.process(RemoveCoupon(user_id="user-001", session_id=session_id), asynchronous=False)
        assert totals["discount"] == 0.0
        assert totals["total"] == 13.50


class TestUsageLedger:
    def test_confirmation_records_one_usage(self):
        _create_promo()
        session_id = _session()
        _apply(session_id)
        order_id = _confirm(session_id)

        usages = _usages()
        assert len(usages) == 1
        assert usages[0].order_id == order_id
        assert usages[0].discount_amount == 2.00
        order = current_domain.repository_for(Order).get(order_id)
        assert order.coupon_code == "SAVE20"
        assert order.totals.total == 11.30

    def test_global_limit_race_between_two_users(self):
        _create_promo(usage_limit=1)
        first = _session(user_id="user-a")
        second = _session(user_id="user-b")
        _apply(first, user_id="user-a")
        _apply(second, user_id="user-b")

        _confirm(first, user_id="user-a")
        with pytest.raises(CouponUsageLimitError):
            _confirm(second, user_id="user-b")

        assert len(_usages()) == 1
        assert len(current_domain.repository_for(Order)._dao.query.all().items) == 1

    def test_exhausted_code_cannot_be_applied(self):
        _create_promo(usage_limit=1)
        first = _session(user_id="user-a")
        _apply(first, user_id="user-a")
        _confirm(first, user_id="user-a")

        with pytest.raises(CouponUsageLimitError):
            _apply(_session(user_id="user-b"), user_id="user-b")

    def test_per_user_limit(self):
        _create_promo(user_usage_limit=1)
        first = _session()
        _apply(first)
        _confirm(first)

        with pytest.raises(CouponUsageLimitError):
            _apply(_session())
        # Another user is unaffected
        assert _apply(_session(user_id="user-b"), user_id="user-b")["discount"] == 2.00
