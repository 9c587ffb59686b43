"""Payment methods accepted at checkout."""

from enum import Enum

from protean.exceptions import ValidationError


class PaymentMethod(Enum):
    ABA = "aba"
    ACLEDA = "acleda"
    WING = "wing"
    CASH = "cash"


PAYMENT_METHODS = [
    {"id": PaymentMethod.ABA.value, "name": "ABA Bank", "description": "Pay with ABA Mobile or KHQR"},
    {"id": PaymentMethod.ACLEDA.value, "name": "ACLEDA Bank", "description": "Pay with ACLEDA Unity ToanChet"},
    {"id": PaymentMethod.WING.value, "name": "Wing Money", "description": "Pay with a Wing wallet"},
    {"id": PaymentMethod.CASH.value, "name": "Cash", "description": "Cash on pickup"},
]


def normalize_payment_method(value: str | None) -> str:
    """Case-insensitive match against the accepted methods ("Cash" is "cash")."""
    method = (value or "").strip().lower()
    try:
        return PaymentMethod(method).value
    except ValueError:
        accepted = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError({"payment_method": [f"Unsupported payment method {value!r}; expected one of {accepted}"]})
