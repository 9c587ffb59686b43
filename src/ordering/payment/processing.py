"""Payment processing — intents, confirmation and development-only mock payments.

Double charging is prevented at two points: opening an intent moves the
order's payment status PENDING → PROCESSING (a second intent is refused),
and confirmation refuses, before the provider is contacted, any order that
is already paid or no longer awaiting payment.

Provider failures come in two shapes. A *decline* is a structured result and
simply marks the payment FAILED. A *processing error* is any exception from
the adapter; the payment is still marked FAILED and committed, and the
result carries ``error="PaymentProcessingError"`` so the HTTP edge can
report the provider outage after the failed state is durable.
"""

from dataclasses import asdict, dataclass, field

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering import settings
from ordering.access import is_admin
from ordering.domain import ordering
from ordering.exceptions import MockPaymentUnavailableError, PaymentProcessingError
from ordering.gateway import get_gateway
from ordering.gateway.port import PaymentGatewayError
from ordering.order.order import Order
from ordering.order.repository import load_order
from ordering.payment.intent import PaymentIntent
from ordering.payment.methods import normalize_payment_method
from ordering.utils.clock import utcnow
from ordering.utils.identifiers import mock_transaction_id

logger = structlog.get_logger(__name__)

PROCESSING_ERROR = "PaymentProcessingError"


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    message: str
    order: dict = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@ordering.command(part_of="Order")
class CreatePaymentIntent:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)


@ordering.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    user_id = Identifier()  # None when confirmed by a trusted provider callback
    payment_method = String(max_length=20)
    provider_transaction_id = String(max_length=255)


@ordering.command(part_of="Order")
class MockCompletePayment:
    order_id = Identifier(required=True)
    user_id = Identifier()  # None for internal tooling
    actor_role = String(max_length=20)


def _settle_intents(order_id, succeeded: bool) -> None:
    repo = current_domain.repository_for(PaymentIntent)
    for intent in repo.pending_for_order(order_id):
        intent.settle(succeeded)
        repo.add(intent)


@ordering.command_handler(part_of=Order)
class PaymentHandler:
    @handle(CreatePaymentIntent)
    def create_payment_intent(self, command):
        order = load_order(command.order_id)
        order.assert_owned_by(command.user_id)
        order.begin_payment()

        try:
            intent_result = get_gateway().create_intent(
                order_id=str(order.id),
                amount=order.totals.total,
                currency=order.totals.currency,
                payment_method=order.payment_method,
            )
        except PaymentGatewayError as exc:
            # Nothing is persisted, so the order stays PENDING and the intent can be retried
            logger.error("Payment intent could not be created", order_id=str(order.id), error=str(exc))
            raise PaymentProcessingError("Payment provider is unavailable", order_id=str(order.id)) from exc

        intent = PaymentIntent.open(
            order_id=order.id,
            amount=order.totals.total,
            currency=order.totals.currency,
            payment_method=order.payment_method,
            provider_reference=intent_result.reference,
        )

        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(PaymentIntent).add(intent)

        logger.info("Payment intent created", order_id=str(order.id), reference=intent_result.reference)
        return {
            "intent_id": str(intent.id),
            "provider_reference": intent.provider_reference,
            "amount": intent.amount,
            "currency": intent.currency,
            "payment_method": intent.payment_method,
        }

    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = load_order(command.order_id)
        if command.user_id is not None:
            order.assert_owned_by(command.user_id)
        order.assert_accepts_payment()

        payment_method = (
            normalize_payment_method(command.payment_method) if command.payment_method else order.payment_method
        )

        try:
            verification = get_gateway().verify_payment(
                order_id=str(order.id),
                amount=order.totals.total,
                payment_method=payment_method,
                transaction_id=command.provider_transaction_id,
            )
        except Exception as exc:
            logger.exception("Payment provider error", order_id=str(order.id), error=str(exc))
            order.record_payment_failure(f"Provider error: {exc}")
            repo.add(order)
            _settle_intents(order.id, succeeded=False)
            return PaymentResult(
                success=False,
                message="Payment could not be processed",
                order=order.summary(),
                error=PROCESSING_ERROR,
            )

        if verification.success:
            order.record_payment_success(verification.transaction_id)
            message = "Payment completed"
        else:
            order.record_payment_failure(verification.failure_reason or "Payment declined")
            message = verification.failure_reason or "Payment declined"

        repo.add(order)
        _settle_intents(order.id, succeeded=verification.success)

        logger.info(
            "Payment confirmation processed",
            order_id=str(order.id),
            success=verification.success,
            payment_status=order.payment_status,
        )
        return PaymentResult(success=verification.success, message=message, order=order.summary())

    @handle(MockCompletePayment)
    def mock_complete_payment(self, command):
        if settings.is_production():
            raise MockPaymentUnavailableError({"order_id": ["Mock payments are disabled in production"]})

        order = load_order(command.order_id)
        if command.user_id is not None and not is_admin(command.actor_role):
            order.assert_owned_by(command.user_id)

        order.record_payment_success(mock_transaction_id(utcnow()))
        current_domain.repository_for(Order).add(order)
        _settle_intents(order.id, succeeded=True)

        logger.info("Mock payment completed", order_id=str(order.id))
        return PaymentResult(success=True, message="Mock payment completed", order=order.summary())
