"""Runtime settings for the ordering context, read from the environment.

Values are read on every call so tests and operators can change them with
plain environment variables, the same way ``PROTEAN_ENV`` selects the active
configuration overlay.
"""

import os


def environment() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()


def is_production() -> bool:
    return environment() == "production"


def tax_rate() -> float:
    return float(os.getenv("ORDERING_TAX_RATE", "0.10"))


def checkout_session_minutes() -> int:
    return int(os.getenv("ORDERING_CHECKOUT_SESSION_MINUTES", "15"))


def cancellation_window_minutes() -> int:
    return int(os.getenv("ORDERING_CANCELLATION_WINDOW_MINUTES", "5"))


def cart_ttl_hours() -> int:
    return int(os.getenv("ORDERING_CART_TTL_HOURS", "24"))


def delivery_base_fee() -> float:
    return float(os.getenv("ORDERING_DELIVERY_BASE_FEE", "2.50"))


def currency() -> str:
    return os.getenv("ORDERING_CURRENCY", "USD").upper()
