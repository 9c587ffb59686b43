"""Guarded loader for CheckoutSession aggregates."""

from datetime import datetime

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.checkout.session import CheckoutSession
from ordering.exceptions import SessionNotFoundError


def load_session(session_id, user_id, as_of: datetime | None = None) -> CheckoutSession:
    """Load a session the user may still act on, or raise the matching checkout error."""
    try:
        session = current_domain.repository_for(CheckoutSession).get(session_id)
    except ObjectNotFoundError as exc:
        raise SessionNotFoundError({"session_id": [f"Checkout session {session_id} not found"]}) from exc

    session.assert_usable_by(user_id, as_of)
    return session
