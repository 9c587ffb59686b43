"""Pickup Ordering FastAPI application.

Processes commands synchronously via HTTP inside the ordering domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects production behaviour (JSON logs, no mock payments).
from ordering.api.app import create_app
from ordering.domain import ordering
from ordering.utils.logging import configure_logging

configure_logging()
ordering.init()

app = create_app(ordering)
