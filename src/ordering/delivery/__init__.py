"""Delivery fee calculator factory."""

from ordering.delivery.flat_rate import FlatRateDeliveryCalculator
from ordering.delivery.port import DeliveryFeeCalculator

_current_calculator: DeliveryFeeCalculator | None = None


def get_delivery_calculator() -> DeliveryFeeCalculator:
    """Return the active calculator. Defaults to FlatRateDeliveryCalculator."""
    global _current_calculator
    if _current_calculator is None:
        _current_calculator = FlatRateDeliveryCalculator()
    return _current_calculator


def set_delivery_calculator(calculator: DeliveryFeeCalculator) -> None:
    global _current_calculator
    _current_calculator = calculator


def reset_delivery_calculator() -> None:
    global _current_calculator
    _current_calculator = None
