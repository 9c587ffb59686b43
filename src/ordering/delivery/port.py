"""Delivery fee calculator port."""

from abc import ABC, abstractmethod


class DeliveryFeeCalculator(ABC):
    @abstractmethod
    def quote(self, address_id: str | None) -> float:
        """Return the delivery fee for an address (or the default fee when None)."""
        ...
