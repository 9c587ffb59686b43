"""Totals value object shared by carts, checkout sessions and orders."""

from protean.fields import Float, String

from ordering import settings
from ordering.domain import ordering
from ordering.pricing import PriceBreakdown


@ordering.value_object
class Totals:
    """Monetary summary of a basket, as produced by the pricing engine."""

    subtotal = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")

    @classmethod
    def from_breakdown(cls, breakdown: PriceBreakdown, currency: str | None = None) -> "Totals":
        return cls(currency=currency or settings.currency(), **breakdown.to_dict())

    @classmethod
    def empty(cls, currency: str | None = None) -> "Totals":
        return cls(currency=currency or settings.currency())
