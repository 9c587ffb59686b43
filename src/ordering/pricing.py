"""Pricing engine — pure arithmetic for carts, checkout sessions and orders.

All computation happens in ``Decimal`` with half-up rounding to cents, and
results are handed back as floats because that is how money is persisted on
the aggregates. Nothing in here touches a repository.

Rules:
    subtotal = sum(quantity * unit_price)
    discount = percentage: min(subtotal * value / 100, max_discount_amount)
               fixed:      min(value, subtotal)
               never more than the subtotal
    tax      = (subtotal - discount) * tax_rate
    total    = max(0, subtotal - discount + tax + delivery_fee)

The delivery fee is only charged on a non-empty basket.
"""

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Protocol

from ordering import settings

CENT = Decimal("0.01")
ZERO = Decimal("0")


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PricedItem(Protocol):
    quantity: int
    unit_price: float


@dataclass(frozen=True)
class PricedLine:
    quantity: int
    unit_price: float


@dataclass(frozen=True)
class CouponTerms:
    discount_type: str
    discount_value: float
    max_discount_amount: float | None = None


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: float
    discount: float
    tax: float
    delivery_fee: float
    total: float

    def to_dict(self) -> dict:
        return asdict(self)


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price: float) -> float:
    return float(round_money(to_decimal(unit_price) * quantity))


def compute_subtotal(lines: Iterable[PricedItem]) -> Decimal:
    subtotal = sum((to_decimal(line.unit_price) * line.quantity for line in lines), ZERO)
    return round_money(subtotal)


def compute_discount(subtotal, coupon: CouponTerms | None) -> float:
    """Return the discount a coupon grants on ``subtotal``, capped at the subtotal."""
    subtotal = to_decimal(subtotal)
    if coupon is None or subtotal <= ZERO:
        return 0.0

    value = max(to_decimal(coupon.discount_value), ZERO)
    if DiscountType(coupon.discount_type) == DiscountType.PERCENTAGE:
        discount = subtotal * value / Decimal(100)
        if coupon.max_discount_amount is not None:
            discount = min(discount, to_decimal(coupon.max_discount_amount))
    else:
        discount = value

    return float(round_money(min(discount, subtotal)))


def calculate_totals(
    lines: Iterable[PricedItem],
    coupon: CouponTerms | None = None,
    delivery_fee: float = 0.0,
    tax_rate: float | None = None,
) -> PriceBreakdown:
    lines = list(lines)
    rate = to_decimal(settings.tax_rate() if tax_rate is None else tax_rate)

    subtotal = compute_subtotal(lines)
    discount = to_decimal(compute_discount(subtotal, coupon))
    tax = round_money((subtotal - discount) * rate)
    fee = round_money(to_decimal(delivery_fee)) if lines else ZERO
    total = max(subtotal - discount + tax + fee, ZERO)

    return PriceBreakdown(
        subtotal=float(subtotal),
        discount=float(discount),
        tax=float(tax),
        delivery_fee=float(fee),
        total=float(round_money(total)),
    )
