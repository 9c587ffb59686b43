"""Flat-rate delivery calculator: every address costs the configured base fee."""

from ordering import settings
from ordering.delivery.port import DeliveryFeeCalculator


class FlatRateDeliveryCalculator(DeliveryFeeCalculator):
    def __init__(self, fee: float | None = None) -> None:
        self.fee = fee
        self.quotes: list[str | None] = []

    def quote(self, address_id: str | None) -> float:
        self.quotes.append(address_id)
        return settings.delivery_base_fee() if self.fee is None else self.fee
