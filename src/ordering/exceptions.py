"""Error taxonomy for the ordering context.

Every error belongs to exactly one category, and the HTTP layer maps the
category (not the individual class) to a status code:

- validation: subclasses of Protean's ``ValidationError`` (400)
- not found: subclasses of ``ObjectNotFoundError`` (404)
- authorization: ``AccessDeniedError`` (403)
- state conflict: ``StateConflictError`` (409), never retried
- external dependency: ``ExternalDependencyError`` (502)

All domain errors carry a Protean-style ``messages`` dict keyed by field.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
class EmptyCartError(ValidationError):
    pass


class CartInvalidError(ValidationError):
    """The cart (or its checkout snapshot) no longer matches the catalog."""


class CouponExpiredError(ValidationError):
    pass


class CouponMinOrderError(ValidationError):
    pass


class CouponUsageLimitError(ValidationError):
    pass


class CouponNotApplicableError(ValidationError):
    pass


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class CartNotFoundError(ObjectNotFoundError):
    pass


class ProductNotFoundError(ObjectNotFoundError):
    pass


class SessionNotFoundError(ObjectNotFoundError):
    pass


class CouponNotFoundError(ObjectNotFoundError):
    pass


class OrderNotFoundError(ObjectNotFoundError):
    pass


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------
class AccessDeniedError(InvalidOperationError):
    pass


class UnauthorizedOrderAccessError(AccessDeniedError):
    pass


class UnauthorizedSessionAccessError(AccessDeniedError):
    pass


class InsufficientRoleError(AccessDeniedError):
    pass


class MockPaymentUnavailableError(AccessDeniedError):
    pass


# ---------------------------------------------------------------------------
# State conflict
# ---------------------------------------------------------------------------
class StateConflictError(InvalidOperationError):
    pass


class SessionExpiredError(StateConflictError):
    pass


class AlreadyPaidError(StateConflictError):
    pass


class InvalidPaymentStateError(StateConflictError):
    pass


class InvalidTransitionError(StateConflictError):
    pass


class CancellationWindowExpiredError(StateConflictError):
    pass


class RefundNotPendingError(StateConflictError):
    pass


class OrderNotRateableError(StateConflictError):
    pass


# ---------------------------------------------------------------------------
# External dependency
# ---------------------------------------------------------------------------
class ExternalDependencyError(Exception):
    def __init__(self, message: str, order_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.order_id = order_id


class PaymentProcessingError(ExternalDependencyError):
    """The payment provider could not process the request."""
