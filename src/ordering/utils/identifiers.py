"""Human-facing reference numbers (order numbers, provider references)."""

import secrets
import string
from datetime import datetime

_BASE36_DIGITS = string.digits + string.ascii_uppercase
_ALPHANUMERIC = string.ascii_uppercase + string.digits


def base36(number: int) -> str:
    encoded = ""
    while number:
        number, remainder = divmod(number, 36)
        encoded = _BASE36_DIGITS[remainder] + encoded
    return encoded or "0"


def random_code(length: int) -> str:
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def order_number(moment: datetime) -> str:
    """``ORD-<base36 millis>-<4 random>``, e.g. ``ORD-LXK3F2A1-7QZD``."""
    return f"ORD-{base36(millis(moment))}-{random_code(4)}"


def intent_reference(payment_method: str, moment: datetime) -> str:
    return f"{payment_method[:3].upper()}-INTENT-{base36(millis(moment))}-{random_code(6)}"


def mock_transaction_id(moment: datetime) -> str:
    return f"MOCK-{millis(moment)}-{random_code(6)}"
