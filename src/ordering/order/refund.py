"""Refund completion — settles the refund a paid cancellation left pending."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.gateway import get_gateway
from ordering.gateway.port import PaymentGatewayError
from ordering.order.order import Order
from ordering.order.repository import load_order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CompleteRefund:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class CompleteRefundHandler:
    @handle(CompleteRefund)
    def complete_refund(self, command):
        order = load_order(command.order_id)
        order.assert_refund_pending()

        try:
            result = get_gateway().create_refund(
                transaction_id=order.payment_provider_transaction_id,
                amount=order.refund_amount,
                reason=order.cancellation_reason or "Order cancelled",
            )
        except PaymentGatewayError as exc:
            logger.error("Refund failed at provider", order_id=str(order.id), error=str(exc))
            order.fail_refund()
            current_domain.repository_for(Order).add(order)
            return {"success": False, "refund_status": order.refund_status, "failure_reason": str(exc)}

        if result.success:
            order.complete_refund(result.refund_reference)
        else:
            order.fail_refund()
        current_domain.repository_for(Order).add(order)

        logger.info("Refund processed", order_id=str(order.id), refund_status=order.refund_status)
        return {
            "success": result.success,
            "refund_status": order.refund_status,
            "refund_reference": result.refund_reference,
            "failure_reason": result.failure_reason,
        }
