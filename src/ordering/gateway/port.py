"""Payment provider port (abstract interface).

Defines the contract every provider adapter (ABA, ACLEDA, Wing, cash desk)
must implement. Adapters return structured results for business outcomes
such as a declined payment, and raise ``PaymentGatewayError`` only when the
provider could not be reached or answered with garbage.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class PaymentGatewayError(Exception):
    """The provider failed to process the request (timeout, outage, bad response)."""


@dataclass(frozen=True)
class IntentResult:
    """A payment intent registered with the provider."""

    reference: str
    status: str = "requires_confirmation"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying a customer's payment with the provider."""

    success: bool
    transaction_id: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    success: bool
    refund_reference: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment provider interface."""

    @abstractmethod
    def create_intent(self, order_id: str, amount: float, currency: str, payment_method: str) -> IntentResult:
        """Register an intent to collect ``amount`` for an order."""
        ...

    @abstractmethod
    def verify_payment(
        self,
        order_id: str,
        amount: float,
        payment_method: str,
        transaction_id: str | None,
    ) -> VerificationResult:
        """Confirm with the provider that the customer's payment went through."""
        ...

    @abstractmethod
    def create_refund(self, transaction_id: str | None, amount: float, reason: str) -> RefundResult:
        """Return ``amount`` to the customer for a previously collected payment."""
        ...
