"""PaymentIntent aggregate — one attempt to collect payment for an order."""

from enum import Enum

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering
from ordering.utils.clock import utcnow


class IntentStatus(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@ordering.aggregate
class PaymentIntent:
    order_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    payment_method = String(required=True, max_length=20)
    provider_reference = String(required=True, max_length=100)
    status = String(choices=IntentStatus, default=IntentStatus.PENDING.value)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(cls, order_id, amount: float, currency: str, payment_method: str, provider_reference: str):
        now = utcnow()
        return cls(
            order_id=order_id,
            amount=amount,
            currency=currency,
            payment_method=payment_method,
            provider_reference=provider_reference,
            status=IntentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    def settle(self, succeeded: bool) -> None:
        self.status = IntentStatus.SUCCEEDED.value if succeeded else IntentStatus.FAILED.value
        self.updated_at = utcnow()


@ordering.repository(part_of=PaymentIntent)
class PaymentIntentRepository:
    def pending_for_order(self, order_id) -> list[PaymentIntent]:
        return (
            self._dao.query.filter(order_id=str(order_id), status=IntentStatus.PENDING.value).all().items
        )
