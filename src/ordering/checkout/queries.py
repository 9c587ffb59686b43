"""Read-side checkout helpers: pre-flight validation, session view, charges, methods."""

from dataclasses import asdict, dataclass, field
from datetime import datetime

from ordering import settings
from ordering.cart.inspection import inspect_lines
from ordering.cart.queries import get_active_cart
from ordering.checkout.repository import load_session
from ordering.checkout.session import CheckoutSession
from ordering.delivery import get_delivery_calculator
from ordering.payment.methods import PAYMENT_METHODS


@dataclass
class CheckoutValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def validate_checkout(user_id) -> CheckoutValidation:
    """Pre-flight check before creating a session."""
    cart = get_active_cart(user_id)
    if cart is None or not cart.items:
        return CheckoutValidation(valid=False, errors=["Cart is empty"])

    errors = [issue.message for issue in inspect_lines(cart.items, store_id=cart.store_id)]
    warnings = []
    if not cart.delivery_address_id:
        warnings.append("No delivery address selected; the default delivery fee applies")

    return CheckoutValidation(valid=not errors, errors=errors, warnings=warnings)


def get_checkout_session(user_id, session_id, as_of: datetime | None = None) -> CheckoutSession:
    return load_session(session_id, user_id, as_of)


def calculate_delivery_charges(address_id) -> dict:
    return {
        "address_id": address_id,
        "delivery_fee": get_delivery_calculator().quote(address_id),
        "currency": settings.currency(),
    }


def list_payment_methods() -> list[dict]:
    return [dict(method) for method in PAYMENT_METHODS]
