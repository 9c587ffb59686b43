"""Configurable fake payment provider for development and testing.

Simulates the provider without external calls. It can be told to approve,
decline, or blow up, which covers the three outcomes payment confirmation
has to handle. Every call is recorded in ``calls``.
"""

from uuid import uuid4

from ordering.gateway.port import (
    IntentResult,
    PaymentGateway,
    PaymentGatewayError,
    RefundResult,
    VerificationResult,
)
from ordering.utils.clock import utcnow
from ordering.utils.identifiers import intent_reference


class FakeGateway(PaymentGateway):
    """Configurable fake payment provider."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment declined"
        self.raise_error: bool = False
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Payment declined",
        raise_error: bool = False,
    ) -> None:
        """Configure provider behaviour at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_error = raise_error

    def _maybe_fail(self) -> None:
        if self.raise_error:
            raise PaymentGatewayError("Payment provider unavailable")

    def create_intent(self, order_id: str, amount: float, currency: str, payment_method: str) -> IntentResult:
        self.calls.append(
            {
                "method": "create_intent",
                "order_id": order_id,
                "amount": amount,
                "currency": currency,
                "payment_method": payment_method,
            }
        )
        self._maybe_fail()
        reference = intent_reference(payment_method, utcnow())
        return IntentResult(reference=reference)

    def verify_payment(
        self,
        order_id: str,
        amount: float,
        payment_method: str,
        transaction_id: str | None,
    ) -> VerificationResult:
        self.calls.append(
            {
                "method": "verify_payment",
                "order_id": order_id,
                "amount": amount,
                "payment_method": payment_method,
                "transaction_id": transaction_id,
            }
        )
        self._maybe_fail()
        if self.should_succeed:
            return VerificationResult(success=True, transaction_id=transaction_id or f"fake_txn_{uuid4().hex[:12]}")
        return VerificationResult(success=False, failure_reason=self.failure_reason)

    def create_refund(self, transaction_id: str | None, amount: float, reason: str) -> RefundResult:
        self.calls.append(
            {
                "method": "create_refund",
                "transaction_id": transaction_id,
                "amount": amount,
                "reason": reason,
            }
        )
        self._maybe_fail()
        if self.should_succeed:
            return RefundResult(success=True, refund_reference=f"fake_ref_{uuid4().hex[:12]}")
        return RefundResult(success=False, failure_reason=self.failure_reason)
