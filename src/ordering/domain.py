"""Ordering bounded context — carts, checkout, payments and pickup orders.

Customers fill a store-bound cart, snapshot it into an expiring checkout
session, and confirm it into an Order. The Order then moves through payment
and the pickup fulfillment state machine driven by store staff.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
