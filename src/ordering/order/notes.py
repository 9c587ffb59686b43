"""Staff-only internal notes on an order."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.access import is_admin
from ordering.domain import ordering
from ordering.exceptions import InsufficientRoleError
from ordering.order.order import Order
from ordering.order.repository import load_order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class AddInternalNote:
    order_id = Identifier(required=True)
    note = Text(required=True)
    actor_role = String(required=True, max_length=20)


@ordering.command_handler(part_of=Order)
class InternalNotesHandler:
    @handle(AddInternalNote)
    def add_internal_note(self, command):
        if not is_admin(command.actor_role):
            raise InsufficientRoleError({"role": ["Only admins can add internal notes"]})

        order = load_order(command.order_id)
        order.add_internal_note(command.note)
        current_domain.repository_for(Order).add(order)

        logger.info("Internal note added", order_id=str(order.id))
        return order.internal_notes
