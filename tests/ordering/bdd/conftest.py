"""Shared BDD fixtures and Given steps for the Ordering domain."""

from datetime import timedelta

import pytest
from ordering.cart.items import AddItemToCart
from ordering.cart.management import process_cart_command
from ordering.coupon.creation import CreatePromoCode
from ordering.utils.clock import utcnow
from protean import current_domain
from pytest_bdd import given, parsers


@pytest.fixture()
def checkout_context():
    """Mutable state carried between steps of one scenario."""
    return {"user_id": None, "session_id": None, "order_id": None, "error": None}


def _create_promo(code, percent, valid_from, valid_until, min_order=0.0, cap=None):
    current_domain.process(
        CreatePromoCode(
            code=code,
            discount_type="percentage",
            discount_value=percent,
            min_order_amount=min_order,
            max_discount_amount=cap,
            valid_from=valid_from,
            valid_until=valid_until,
        ),
        asynchronous=False,
    )


@given(parsers.cfparse('the product "{product_id}" costs {price:f} at store "{store_id}"'))
def _(catalog, product_id, price, store_id):
    catalog.add_product(product_id, store_id, price, category_id="cat-coffee")


@given(
    parsers.cfparse(
        'a promo code "{code}" gives {percent:d} percent off with a minimum order of {min_order:f} and a cap of {cap:f}'
    )
)
def _(code, percent, min_order, cap):
    now = utcnow()
    _create_promo(code, percent, now - timedelta(days=1), now + timedelta(days=30), min_order=min_order, cap=cap)


@given(parsers.cfparse('an expired promo code "{code}" gives {percent:d} percent off'))
def _(code, percent):
    now = utcnow()
    _create_promo(code, percent, now - timedelta(days=60), now - timedelta(days=1))


@given(parsers.cfparse('the customer "{user_id}" has {quantity:d} of "{product_id}" in the cart'))
def _(checkout_context, user_id, quantity, product_id):
    checkout_context["user_id"] = user_id
    process_cart_command(AddItemToCart(user_id=user_id, product_id=product_id, quantity=quantity))
